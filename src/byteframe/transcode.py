"""File transcoder: one file into one container, and back.

``encode_file`` reads a whole file, chunks and packs it and writes every
frame, in order, into a freshly created lossless container. ``decode_file``
reads frames back until the container is exhausted, unpacks them in arrival
order and writes the concatenation.

The frame stream carries no header, so decoding a padded file yields the
original bytes followed by the zero padding. A JSON sidecar manifest
(``<container>.json``) written on encode records the true length and the
channel mode; decode uses it to reject a channel-mode mismatch and, only
when asked to, to trim the padding.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from byteframe.codec import encode_frames, padding_length, unpack_frame
from byteframe.domain import ChannelMode, ContainerInfo, ContainerManifest, DecodedFile, EncodedFile, FrameGeometry, TranscodeJob
from byteframe.utils import read_json, write_json
from byteframe.video import ContainerError, OpenCVBackend, VideoBackend, iter_frames, open_reader, open_writer

logger = logging.getLogger(__name__)

__all__ = [
    "TranscodeError",
    "MANIFEST_SUFFIX",
    "manifest_path_for",
    "read_manifest",
    "encode_file",
    "run_job",
    "decode_file",
    "inspect_container",
]

MANIFEST_SUFFIX = ".json"


class TranscodeError(OSError):
    """A file could not be encoded into or decoded from a container."""

    pass


# ============================================================================
# Sidecar manifest
# ============================================================================


def manifest_path_for(container_path: Path) -> Path:
    """Sidecar path for a container: ``name.ext.mkv`` -> ``name.ext.mkv.json``."""
    container_path = Path(container_path)
    return container_path.with_name(container_path.name + MANIFEST_SUFFIX)


def read_manifest(container_path: Path) -> Optional[ContainerManifest]:
    """Load the sidecar manifest of a container, or None if there is none.

    Raises:
        TranscodeError: If the sidecar exists but is unreadable or invalid
    """
    path = manifest_path_for(container_path)
    if not path.is_file():
        return None

    try:
        return ContainerManifest.model_validate(read_json(path))
    except (OSError, ValueError) as e:
        # JSONDecodeError and ValidationError are both ValueErrors
        raise TranscodeError(f"Invalid manifest {path}: {e}") from e


# ============================================================================
# Encode
# ============================================================================


def encode_file(
    input_path: Union[Path, str],
    output_path: Union[Path, str],
    geometry: FrameGeometry,
    fps: float,
    backend: Optional[VideoBackend] = None,
    write_manifest: bool = True,
) -> EncodedFile:
    """Encode one file into a lossless video container.

    Args:
        input_path: File to encode (read fully into memory)
        output_path: Container to create (overwritten if present)
        geometry: Frame resolution and channel mode
        fps: Container frame rate
        backend: Container backend (default: OpenCV FFV1)
        write_manifest: Write a ``<container>.json`` sidecar

    Returns:
        EncodedFile metadata

    Raises:
        TranscodeError: If the input cannot be read or the container cannot
            be created or written. A failed write may leave a truncated
            container behind.
    """
    input_path = Path(input_path)
    output_path = Path(output_path)
    backend = backend or OpenCVBackend()

    try:
        data = input_path.read_bytes()
    except OSError as e:
        raise TranscodeError(f"Failed to read input file {input_path}: {e}") from e

    frame_count = 0
    try:
        with open_writer(backend, output_path, fps, geometry.width, geometry.height) as writer:
            for index, frame in enumerate(encode_frames(data, geometry)):
                try:
                    writer.write(frame)
                except OSError as e:
                    raise TranscodeError(f"Error writing frame {index} to {output_path}: {e}") from e
                frame_count += 1
    except ContainerError as e:
        raise TranscodeError(f"Failed to create video writer for {output_path}: {e}") from e

    padding = padding_length(len(data), geometry.chunk_size)
    logger.debug(f"Wrote {frame_count} frames ({len(data)} bytes + {padding} padding) to {output_path}")

    manifest_path = None
    if write_manifest:
        manifest = ContainerManifest(
            source_name=input_path.name,
            original_length=len(data),
            padding=padding,
            width=geometry.width,
            height=geometry.height,
            fps=fps,
            mode=geometry.mode,
            frame_count=frame_count,
            chunk_size=geometry.chunk_size,
        )
        manifest_path = manifest_path_for(output_path)
        try:
            write_json(manifest_path, manifest.model_dump(mode="json"))
        except OSError as e:
            raise TranscodeError(f"Failed to write manifest {manifest_path}: {e}") from e
    else:
        # A sidecar from an earlier encode no longer describes this container
        stale = manifest_path_for(output_path)
        try:
            stale.unlink(missing_ok=True)
        except OSError as e:
            raise TranscodeError(f"Failed to remove stale manifest {stale}: {e}") from e

    return EncodedFile(
        input_path=input_path,
        output_path=output_path,
        frame_count=frame_count,
        original_length=len(data),
        padding=padding,
        manifest_path=manifest_path,
    )


def run_job(job: TranscodeJob, backend: Optional[VideoBackend] = None, write_manifest: bool = True) -> EncodedFile:
    """Run one encode TranscodeJob."""
    return encode_file(job.input_path, job.output_path, job.geometry, job.fps, backend=backend, write_manifest=write_manifest)


# ============================================================================
# Decode
# ============================================================================


def decode_file(
    source: Union[Path, str],
    output_path: Union[Path, str],
    mode: ChannelMode,
    backend: Optional[VideoBackend] = None,
    trim_padding: bool = False,
) -> DecodedFile:
    """Decode a container back into the bytes it carries.

    Args:
        source: Local container (a downloaded remote video is local too)
        output_path: File to write
        mode: Channel mode the container was encoded with
        backend: Container backend (default: OpenCV)
        trim_padding: Truncate output to the length recorded in the sidecar
            manifest. Without a manifest the padding is kept.

    Returns:
        DecodedFile metadata

    Raises:
        TranscodeError: If the source cannot be opened, its manifest
            disagrees with ``mode``, or the output cannot be written
        SizeMismatchError: If a frame does not match the manifest geometry
    """
    source_path = Path(source)
    output_path = Path(output_path)
    backend = backend or OpenCVBackend()

    manifest = read_manifest(source_path)
    geometry = None
    if manifest is not None:
        if manifest.mode is not mode:
            raise TranscodeError(f"{source_path} was encoded in {manifest.mode.value} mode, refusing to decode it in {mode.value} mode")
        geometry = manifest.geometry

    chunks: List[bytes] = []
    try:
        with open_reader(backend, source_path) as reader:
            for frame in iter_frames(reader):
                chunks.append(unpack_frame(frame, mode, geometry))
    except ContainerError as e:
        raise TranscodeError(f"Failed to open video {source_path}: {e}") from e

    data = b"".join(chunks)

    trimmed = False
    if trim_padding:
        if manifest is None:
            logger.warning(f"No manifest for {source_path}, keeping padding")
        else:
            if len(data) < manifest.original_length:
                logger.warning(f"{source_path} decoded to {len(data)} bytes, manifest records {manifest.original_length}")
            data = data[: manifest.original_length]
            trimmed = True

    try:
        output_path.write_bytes(data)
    except OSError as e:
        raise TranscodeError(f"Failed to write output file {output_path}: {e}") from e

    return DecodedFile(source=str(source), output_path=output_path, frame_count=len(chunks), byte_count=len(data), trimmed=trimmed)


# ============================================================================
# Inspect
# ============================================================================


def inspect_container(path: Union[Path, str], backend: Optional[VideoBackend] = None) -> ContainerInfo:
    """Count frames and report geometry of a container, plus its manifest if any.

    Raises:
        TranscodeError: If the container cannot be opened or its manifest is invalid
    """
    path = Path(path)
    backend = backend or OpenCVBackend()
    manifest = read_manifest(path)

    frame_count = 0
    width = height = None
    try:
        with open_reader(backend, path) as reader:
            for frame in iter_frames(reader):
                if frame_count == 0:
                    height, width = frame.shape[:2]
                frame_count += 1
    except ContainerError as e:
        raise TranscodeError(f"Failed to open video {path}: {e}") from e

    if manifest is not None and manifest.frame_count != frame_count:
        logger.warning(f"{path} holds {frame_count} frames, manifest records {manifest.frame_count}")

    return ContainerInfo(path=path, frame_count=frame_count, width=width, height=height, manifest=manifest)
