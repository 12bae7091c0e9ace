"""Frame container adapter.

Narrow protocols between the codec and whatever library stores frames in a
video container, plus the OpenCV implementation used in production. The
transcoder only ever talks to ``VideoBackend``, so tests can substitute an
in-memory frame store.

Write side: ``open_writer(path, fps, width, height)`` accepts
``height x width x 3`` uint8 frames. Read side: ``open_reader(path)`` yields
the same frames and signals the end of the stream with ``None``.

Example:
    backend = OpenCVBackend()
    with open_writer(backend, Path("out.mkv"), 30.0, 640, 480) as writer:
        writer.write(frame)
    with open_reader(backend, Path("out.mkv")) as reader:
        for frame in iter_frames(reader):
            ...
"""

from contextlib import contextmanager
import logging
from pathlib import Path
from typing import Iterator, Optional, Protocol

import cv2
import numpy as np

from byteframe.domain import FRAME_CHANNELS

logger = logging.getLogger(__name__)

__all__ = [
    "ContainerError",
    "FrameWriter",
    "FrameReader",
    "VideoBackend",
    "OpenCVBackend",
    "open_writer",
    "open_reader",
    "iter_frames",
    "LOSSLESS_FOURCC",
]

LOSSLESS_FOURCC = "FFV1"


class ContainerError(OSError):
    """Video container cannot be created, opened or written."""

    pass


# ============================================================================
# Protocols
# ============================================================================


class FrameWriter(Protocol):
    """Open container accepting frames in order."""

    def write(self, frame: np.ndarray) -> None: ...

    def close(self) -> None: ...


class FrameReader(Protocol):
    """Open container returning frames in order, ``None`` once exhausted."""

    def read(self) -> Optional[np.ndarray]: ...

    def close(self) -> None: ...


class VideoBackend(Protocol):
    """Factory for container readers and writers.

    Implementations raise ContainerError when a container cannot be
    created or opened.
    """

    def open_writer(self, path: Path, fps: float, width: int, height: int) -> FrameWriter: ...

    def open_reader(self, path: Path) -> FrameReader: ...


# ============================================================================
# Scoped access
# ============================================================================


@contextmanager
def open_writer(backend: VideoBackend, path: Path, fps: float, width: int, height: int) -> Iterator[FrameWriter]:
    """Open a writer and close it on every exit path."""
    writer = backend.open_writer(path, fps, width, height)
    try:
        yield writer
    finally:
        writer.close()


@contextmanager
def open_reader(backend: VideoBackend, path: Path) -> Iterator[FrameReader]:
    """Open a reader and close it on every exit path."""
    reader = backend.open_reader(path)
    try:
        yield reader
    finally:
        reader.close()


def iter_frames(reader: FrameReader) -> Iterator[np.ndarray]:
    """Yield frames until the reader reports no more frames or an empty frame.

    The sequence is lazy and cannot be restarted.
    """
    while True:
        frame = reader.read()
        if frame is None or frame.size == 0:
            return
        yield frame


# ============================================================================
# OpenCV implementation
# ============================================================================


class OpenCVFrameWriter:
    """cv2.VideoWriter bound to one output container."""

    def __init__(self, path: Path, fourcc: str, fps: float, width: int, height: int):
        self.path = path
        self._shape = (height, width, FRAME_CHANNELS)
        self._writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*fourcc), float(fps), (width, height), True)
        if not self._writer.isOpened():
            self._writer.release()
            raise ContainerError(f"Failed to create video writer for {path} (codec {fourcc})")

    def write(self, frame: np.ndarray) -> None:
        if frame.shape != self._shape or frame.dtype != np.uint8:
            raise ContainerError(f"Frame shape {frame.shape} does not match container shape {self._shape}")
        self._writer.write(frame)

    def close(self) -> None:
        self._writer.release()


class OpenCVFrameReader:
    """cv2.VideoCapture bound to one input container."""

    def __init__(self, path: Path):
        self.path = path
        self._capture = cv2.VideoCapture(str(path))
        if not self._capture.isOpened():
            self._capture.release()
            raise ContainerError(f"Failed to open video: {path}")

    def read(self) -> Optional[np.ndarray]:
        ok, frame = self._capture.read()
        if not ok:
            return None
        return frame

    def close(self) -> None:
        self._capture.release()


class OpenCVBackend:
    """VideoBackend storing frames losslessly through OpenCV's FFmpeg writer."""

    def __init__(self, fourcc: str = LOSSLESS_FOURCC):
        if len(fourcc) != 4:
            raise ValueError(f"fourcc must be 4 characters, got '{fourcc}'")
        self.fourcc = fourcc

    def open_writer(self, path: Path, fps: float, width: int, height: int) -> OpenCVFrameWriter:
        logger.debug(f"Opening {self.fourcc} writer {path} ({width}x{height} @ {fps} fps)")
        return OpenCVFrameWriter(Path(path), self.fourcc, fps, width, height)

    def open_reader(self, path: Path) -> OpenCVFrameReader:
        logger.debug(f"Opening reader {path}")
        return OpenCVFrameReader(Path(path))
