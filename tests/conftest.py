"""Pytest configuration and shared fixtures for byteframe tests.

Provides:
- In-memory VideoBackend fake (frame store keyed by container path)
- Fake remote fetcher registering downloaded containers in the fake backend
- Temporary working directories and small-geometry settings
"""

from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import pytest

from byteframe.config import CodecConfig, Settings
from byteframe.video import ContainerError

# ============================================================================
# In-memory container backend
# ============================================================================


class MemoryFrameWriter:
    """Frame writer appending copies of frames to the backend store."""

    def __init__(self, backend: "MemoryBackend", path: Path, shape):
        self.backend = backend
        self.path = path
        self.shape = shape
        self.closed = False
        self.frames: List[np.ndarray] = []
        backend.containers[str(path)] = self.frames
        # A real container file exists as soon as the writer is opened
        path.write_bytes(b"")

    def write(self, frame: np.ndarray) -> None:
        if self.closed:
            raise ContainerError(f"Writer for {self.path} is closed")
        if self.backend.fail_on_frame is not None and len(self.frames) == self.backend.fail_on_frame:
            raise ContainerError(f"Simulated write failure on frame {len(self.frames)}")
        if frame.shape != self.shape:
            raise ContainerError(f"Frame shape {frame.shape} does not match {self.shape}")
        self.frames.append(frame.copy())

    def close(self) -> None:
        self.closed = True
        self.backend.closed.append(self.path)


class MemoryFrameReader:
    """Frame reader returning stored frames, then None."""

    def __init__(self, backend: "MemoryBackend", path: Path, frames: List[np.ndarray]):
        self.backend = backend
        self.path = path
        self._frames = frames
        self._index = 0

    def read(self) -> Optional[np.ndarray]:
        if self._index >= len(self._frames):
            return None
        frame = self._frames[self._index]
        self._index += 1
        return frame.copy()

    def close(self) -> None:
        self.backend.closed.append(self.path)


class MemoryBackend:
    """VideoBackend keeping every container's frames in memory."""

    def __init__(self, fourcc: str = "FFV1", fail_on_frame: Optional[int] = None):
        self.fourcc = fourcc
        self.fail_on_frame = fail_on_frame
        self.containers: Dict[str, List[np.ndarray]] = {}
        self.writers: List[MemoryFrameWriter] = []
        self.closed: List[Path] = []

    def open_writer(self, path: Path, fps: float, width: int, height: int) -> MemoryFrameWriter:
        path = Path(path)
        if not path.parent.is_dir():
            raise ContainerError(f"Failed to create video writer for {path}")
        writer = MemoryFrameWriter(self, path, (height, width, 3))
        self.writers.append(writer)
        return writer

    def open_reader(self, path: Path) -> MemoryFrameReader:
        path = Path(path)
        if str(path) not in self.containers:
            raise ContainerError(f"Failed to open video: {path}")
        return MemoryFrameReader(self, path, self.containers[str(path)])

    def add_container(self, path: Path, frames: List[np.ndarray]) -> Path:
        """Register a container file holding ``frames``."""
        path = Path(path)
        path.write_bytes(b"")
        self.containers[str(path)] = [frame.copy() for frame in frames]
        return path


@pytest.fixture
def memory_backend() -> MemoryBackend:
    """Fresh in-memory container backend."""
    return MemoryBackend()


@pytest.fixture
def backend_factory():
    """Build in-memory backends with custom failure injection."""
    return MemoryBackend


# ============================================================================
# Fake remote fetcher
# ============================================================================


class FakeFetcher:
    """RemoteFetcher that 'downloads' a prepared frame sequence."""

    def __init__(self, backend: MemoryBackend, frames: List[np.ndarray], error: Optional[Exception] = None):
        self.backend = backend
        self.frames = frames
        self.error = error
        self.downloads: List[Path] = []

    def download(self, url: str, dest_dir: Path) -> Path:
        if self.error is not None:
            raise self.error
        path = self.backend.add_container(Path(dest_dir) / "remote.mkv", self.frames)
        self.downloads.append(path)
        return path


@pytest.fixture
def fake_fetcher_factory(memory_backend: MemoryBackend):
    """Build a FakeFetcher bound to the shared memory backend."""

    def factory(frames: List[np.ndarray], error: Optional[Exception] = None) -> FakeFetcher:
        return FakeFetcher(memory_backend, frames, error)

    return factory


# ============================================================================
# Temporary Working Directories
# ============================================================================


@pytest.fixture
def tmp_work_dir(tmp_path: Path) -> Path:
    """Temporary working directory for test inputs and outputs.

    Structure:
        tmp_path/
        ├── input/
        └── output/   (not created; the batch driver creates it)
    """
    (tmp_path / "input").mkdir()
    return tmp_path


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def small_settings() -> Settings:
    """Settings with a 4x2 triple-channel geometry (24-byte chunks)."""
    return Settings(codec=CodecConfig(width=4, height=2, fps=30.0, mode="triple"))


@pytest.fixture
def single_channel_settings() -> Settings:
    """Settings with a 2x2 single-channel geometry (4-byte chunks)."""
    return Settings(codec=CodecConfig(width=2, height=2, fps=30.0, mode="single"))


@pytest.fixture(autouse=True)
def clean_byteframe_env(monkeypatch: pytest.MonkeyPatch):
    """Keep BYTEFRAME_* variables of the calling shell out of the tests."""
    import os

    for key in list(os.environ):
        if key.startswith("BYTEFRAME_"):
            monkeypatch.delenv(key)
