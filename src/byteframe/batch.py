"""Batch driver for encode and decode runs.

Applies the file transcoder to a single file, to every direct entry of a
directory, or (decode only) to a remote video locator. Directory runs are
resilient: a failing entry is logged and recorded in the BatchReport, and
the run continues. Failures of a single-file or URL run, of the directory
listing itself and of output directory creation propagate to the caller.

Output naming:
    encode  name.ext -> <output_dir>/name.ext.mkv
    decode  name.mkv -> <output_dir>/name.decoded
    decode  URL      -> <output_dir>/youtube.decoded

Directory entries are processed in lexicographic order; sub-directories are
skipped silently.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from byteframe.codec import SizeMismatchError
from byteframe.config import Settings
from byteframe.domain import BatchItemResult, BatchReport, TranscodeJob
from byteframe.fetch import RemoteFetcher, YtDlpFetcher, fetched_video, is_remote
from byteframe.transcode import TranscodeError, decode_file, run_job
from byteframe.utils import time_block
from byteframe.video import OpenCVBackend, VideoBackend

logger = logging.getLogger(__name__)

__all__ = [
    "BatchError",
    "encoded_name",
    "decoded_name",
    "run_encode",
    "run_decode",
]

# Errors that skip a single directory entry instead of aborting the run
ITEM_ERRORS = (TranscodeError, SizeMismatchError, OSError)


class BatchError(Exception):
    """Input path, directory listing or output directory is unusable."""

    pass


# ============================================================================
# Naming
# ============================================================================


def encoded_name(input_name: str, container_ext: str) -> str:
    """``report.pdf`` -> ``report.pdf.mkv``."""
    return f"{input_name}.{container_ext}"


def decoded_name(container_name: str, container_ext: str, decoded_ext: str) -> str:
    """``report.pdf.mkv`` -> ``report.pdf.decoded``."""
    suffix = f".{container_ext}"
    if container_name.endswith(suffix):
        container_name = container_name[: -len(suffix)]
    return f"{container_name}.{decoded_ext}"


# ============================================================================
# Helpers
# ============================================================================


def _prepare_output_dir(output_dir: Path) -> None:
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise BatchError(f"Error creating output directory {output_dir}: {e}") from e


def _list_entries(directory: Path) -> List[Path]:
    """Direct, non-directory entries of ``directory`` in lexicographic order."""
    try:
        entries = sorted(directory.iterdir(), key=lambda p: p.name)
    except OSError as e:
        raise BatchError(f"Error reading directory {directory}: {e}") from e
    return [entry for entry in entries if not entry.is_dir()]


def _failed(source: Path, output_path: Path, error: Exception) -> BatchItemResult:
    return BatchItemResult(source=str(source), output_path=output_path, success=False, error=str(error))


def _succeeded(source: Union[Path, str], output_path: Path) -> BatchItemResult:
    return BatchItemResult(source=str(source), output_path=output_path, success=True)


# ============================================================================
# Encode
# ============================================================================


def run_encode(
    input_path: Union[Path, str],
    output_dir: Union[Path, str],
    settings: Optional[Settings] = None,
    backend: Optional[VideoBackend] = None,
) -> BatchReport:
    """Encode a file, or every file of a directory, into containers.

    Args:
        input_path: File or directory to encode
        output_dir: Directory receiving the containers (created if absent)
        settings: Codec, naming and manifest settings (default: Settings())
        backend: Container backend (default: OpenCV with settings.codec.fourcc)

    Returns:
        BatchReport with one item per processed file

    Raises:
        BatchError: If the input is inaccessible, the directory cannot be
            listed or the output directory cannot be created
        TranscodeError: If a single-file encode fails
    """
    settings = settings or Settings()
    backend = backend or OpenCVBackend(settings.codec.fourcc)
    input_path = Path(input_path)
    output_dir = Path(output_dir)

    _prepare_output_dir(output_dir)

    if not input_path.exists():
        raise BatchError(f"Error accessing input path: {input_path} does not exist")

    def job_for(source: Path) -> TranscodeJob:
        return TranscodeJob(
            input_path=source,
            output_path=output_dir / encoded_name(source.name, settings.naming.container_ext),
            geometry=settings.codec.geometry,
            fps=settings.codec.fps,
        )

    if not input_path.is_dir():
        job = job_for(input_path)
        with time_block(f"Encoding {input_path.name}", logger):
            run_job(job, backend=backend, write_manifest=settings.manifest.enabled)
        logger.info(f"Encoded {input_path} into {job.output_path}")
        return BatchReport(operation="encode", items=[_succeeded(input_path, job.output_path)])

    items: List[BatchItemResult] = []
    for entry in _list_entries(input_path):
        job = job_for(entry)
        logger.info(f"Processing: {entry}")
        try:
            run_job(job, backend=backend, write_manifest=settings.manifest.enabled)
        except ITEM_ERRORS as e:
            logger.error(f"Error encoding {entry}: {e}")
            items.append(_failed(entry, job.output_path, e))
            continue
        logger.info(f"Encoded {entry} into {job.output_path}")
        items.append(_succeeded(entry, job.output_path))

    return BatchReport(operation="encode", items=items)


# ============================================================================
# Decode
# ============================================================================


def run_decode(
    input_path: Union[Path, str],
    output_dir: Union[Path, str],
    settings: Optional[Settings] = None,
    backend: Optional[VideoBackend] = None,
    fetcher: Optional[RemoteFetcher] = None,
) -> BatchReport:
    """Decode a container, a directory of containers, or a remote video.

    Args:
        input_path: Container file, directory or ``http(s)://`` locator
        output_dir: Directory receiving decoded files (created if absent)
        settings: Codec, naming, fetch and manifest settings (default: Settings())
        backend: Container backend (default: OpenCV)
        fetcher: Remote fetcher (default: yt-dlp with settings.fetch.preferred_quality)

    Returns:
        BatchReport with one item per processed container

    Raises:
        BatchError: If the input is inaccessible, the directory cannot be
            listed or the output directory cannot be created
        TranscodeError: If a single-file or URL decode fails
        RemoteFetchError: If the remote video cannot be retrieved
    """
    settings = settings or Settings()
    backend = backend or OpenCVBackend(settings.codec.fourcc)
    naming = settings.naming
    mode = settings.codec.mode
    trim = settings.manifest.trim_padding
    output_dir = Path(output_dir)

    _prepare_output_dir(output_dir)

    if is_remote(str(input_path), settings.fetch.url_prefixes):
        url = str(input_path)
        output_path = output_dir / f"{naming.url_output_name}.{naming.decoded_ext}"
        fetcher = fetcher or YtDlpFetcher(settings.fetch.preferred_quality)
        logger.info(f"Decoding from URL: {url}")
        with fetched_video(url, fetcher) as local_path:
            decode_file(local_path, output_path, mode, backend=backend, trim_padding=trim)
        logger.info(f"Decoded video from {url} into {output_path}")
        return BatchReport(operation="decode", items=[_succeeded(url, output_path)])

    input_path = Path(input_path)
    if not input_path.exists():
        raise BatchError(f"Error accessing input path: {input_path} does not exist")

    if not input_path.is_dir():
        output_path = output_dir / decoded_name(input_path.name, naming.container_ext, naming.decoded_ext)
        logger.info(f"Decoding: {input_path}")
        with time_block(f"Decoding {input_path.name}", logger):
            decode_file(input_path, output_path, mode, backend=backend, trim_padding=trim)
        logger.info(f"Decoded {input_path} into {output_path}")
        return BatchReport(operation="decode", items=[_succeeded(input_path, output_path)])

    items: List[BatchItemResult] = []
    for entry in _list_entries(input_path):
        if not entry.name.endswith(f".{naming.container_ext}"):
            continue
        output_path = output_dir / decoded_name(entry.name, naming.container_ext, naming.decoded_ext)
        logger.info(f"Processing: {entry}")
        try:
            decode_file(entry, output_path, mode, backend=backend, trim_padding=trim)
        except ITEM_ERRORS as e:
            logger.error(f"Error decoding {entry}: {e}")
            items.append(_failed(entry, output_path, e))
            continue
        logger.info(f"Decoded {entry} into {output_path}")
        items.append(_succeeded(entry, output_path))

    return BatchReport(operation="decode", items=items)
