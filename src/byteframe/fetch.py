"""Remote video retrieval.

Resolves an ``http(s)://`` locator to a local, seekable video file that the
container backend can read. The downloaded file lives in a temporary
directory that is removed when the ``fetched_video`` scope exits, whether
the decode succeeded or not.

Format policy: prefer formats tagged with the preferred quality label
(``144p`` by default), fall back to any video format, fail if there are
none, and among the candidates pick the one with the smallest declared
content length.
"""

from contextlib import contextmanager
import logging
import math
from pathlib import Path
import tempfile
from typing import Any, Dict, Iterator, List, Optional, Protocol, Sequence

import yt_dlp

logger = logging.getLogger(__name__)

__all__ = [
    "RemoteFetchError",
    "RemoteFetcher",
    "YtDlpFetcher",
    "DEFAULT_URL_PREFIXES",
    "is_remote",
    "select_format",
    "fetched_video",
]

DEFAULT_URL_PREFIXES = ("http://", "https://")


class RemoteFetchError(Exception):
    """Remote lookup, format selection or download failed."""

    pass


class RemoteFetcher(Protocol):
    """Downloads the video behind ``url`` into ``dest_dir`` and returns its path."""

    def download(self, url: str, dest_dir: Path) -> Path: ...


def is_remote(locator: str, prefixes: Sequence[str] = DEFAULT_URL_PREFIXES) -> bool:
    """Return True if ``locator`` starts with one of the remote scheme prefixes."""
    return any(str(locator).startswith(prefix) for prefix in prefixes)


# ============================================================================
# Format selection
# ============================================================================


def _quality_label(fmt: Dict[str, Any]) -> str:
    note = fmt.get("format_note")
    if note:
        return str(note)
    height = fmt.get("height")
    return f"{height}p" if height else ""


def _content_length(fmt: Dict[str, Any]) -> float:
    # Unknown sizes sort after every declared size
    size = fmt.get("filesize") or fmt.get("filesize_approx")
    return float(size) if size else math.inf


def _has_video(fmt: Dict[str, Any]) -> bool:
    return fmt.get("vcodec") != "none"


def select_format(formats: Sequence[Dict[str, Any]], preferred_quality: str = "144p") -> Dict[str, Any]:
    """Pick the format to download.

    Args:
        formats: Format descriptions as reported by yt-dlp
        preferred_quality: Quality label to prefer (e.g. "144p")

    Returns:
        The smallest preferred format, or the smallest video format when no
        format carries the preferred label

    Raises:
        RemoteFetchError: If no video formats are available
    """
    video_formats = [fmt for fmt in formats if _has_video(fmt)]
    candidates: List[Dict[str, Any]] = [fmt for fmt in video_formats if _quality_label(fmt) == preferred_quality]

    if not candidates:
        if video_formats:
            logger.debug(f"No '{preferred_quality}' format available, falling back to any video format")
        candidates = video_formats

    if not candidates:
        raise RemoteFetchError("No suitable video formats found")

    return min(candidates, key=_content_length)


# ============================================================================
# yt-dlp implementation
# ============================================================================


class YtDlpFetcher:
    """RemoteFetcher backed by yt-dlp."""

    def __init__(self, preferred_quality: str = "144p", ydl_options: Optional[Dict[str, Any]] = None):
        self.preferred_quality = preferred_quality
        self.ydl_options = {"quiet": True, "no_warnings": True, "noplaylist": True}
        if ydl_options:
            self.ydl_options.update(ydl_options)

    def download(self, url: str, dest_dir: Path) -> Path:
        """Download the selected format of ``url`` into ``dest_dir``.

        Raises:
            RemoteFetchError: If the video info, format or stream cannot be retrieved
        """
        try:
            with yt_dlp.YoutubeDL(self.ydl_options) as ydl:
                info = ydl.extract_info(url, download=False)
        except yt_dlp.utils.DownloadError as e:
            raise RemoteFetchError(f"Failed to get video info for {url}: {e}") from e

        fmt = select_format(info.get("formats") or [], self.preferred_quality)
        output_path = Path(dest_dir) / f"remote.{fmt.get('ext') or 'mp4'}"
        logger.info(f"Downloading format {fmt.get('format_id')} ({_quality_label(fmt) or 'unknown quality'}) from {url}")

        options = dict(self.ydl_options, format=fmt["format_id"], outtmpl=str(output_path))
        try:
            with yt_dlp.YoutubeDL(options) as ydl:
                ydl.download([url])
        except yt_dlp.utils.DownloadError as e:
            output_path.unlink(missing_ok=True)
            raise RemoteFetchError(f"Failed to download video from {url}: {e}") from e

        if not output_path.exists():
            raise RemoteFetchError(f"Download completed but output file not found: {output_path}")

        return output_path


@contextmanager
def fetched_video(url: str, fetcher: Optional[RemoteFetcher] = None) -> Iterator[Path]:
    """Download ``url`` to a temporary location and remove it on exit.

    Example:
        with fetched_video("https://www.youtube.com/watch?v=...") as local:
            decode_file(local, out_path, ChannelMode.TRIPLE)
    """
    fetcher = fetcher or YtDlpFetcher()
    with tempfile.TemporaryDirectory(prefix="byteframe-") as tmp:
        local_path = fetcher.download(url, Path(tmp))
        logger.debug(f"Fetched {url} to {local_path}")
        yield local_path
