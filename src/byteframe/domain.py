"""Domain models for the byteframe codec.

Pydantic models describing the geometry of a frame, one transcode job, the
sidecar manifest written next to a container and the results reported by
the transcoder and the batch driver. All models are immutable (frozen) and
reject unknown fields.

Model Categories:
-----------------
1. **Codec parameters**:
   - ChannelMode: how many bytes each pixel carries (1 or 3)
   - FrameGeometry: width, height and channel mode of every frame

2. **Jobs and metadata**:
   - TranscodeJob: one (input, output) pair with fixed encoding parameters
   - ContainerManifest: sidecar describing how a container was produced

3. **Results**:
   - EncodedFile, DecodedFile: outcome of a single transcode
   - BatchItemResult, BatchReport: per-item outcomes of a batch run

Common Gotchas:
---------------
- Models are frozen - use .model_copy(update={...}) to create modified copies
- Frames always have three 8-bit channels; in single-channel mode only
  channel 0 carries data and the other two are zero
"""

from enum import Enum
from pathlib import Path
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, Field, model_validator

FRAME_CHANNELS = 3


class ChannelMode(str, Enum):
    """Channel-packing variant used for a container.

    The two variants are not interchangeable: a container encoded in one
    mode must be decoded in the same mode.
    """

    SINGLE = "single"
    TRIPLE = "triple"

    @property
    def bytes_per_pixel(self) -> int:
        return 1 if self is ChannelMode.SINGLE else 3


class FrameGeometry(BaseModel):
    """Resolution and channel packing shared by every frame of a container."""

    model_config = {"frozen": True, "extra": "forbid"}

    width: int = Field(gt=0)
    height: int = Field(gt=0)
    mode: ChannelMode = ChannelMode.TRIPLE

    @property
    def pixels_per_frame(self) -> int:
        return self.width * self.height

    @property
    def chunk_size(self) -> int:
        """Number of payload bytes carried by one frame."""
        return self.pixels_per_frame * self.mode.bytes_per_pixel

    @property
    def frame_shape(self) -> Tuple[int, int, int]:
        return (self.height, self.width, FRAME_CHANNELS)


class TranscodeJob(BaseModel):
    """One input/output pair plus the encoding parameters applied to it."""

    model_config = {"frozen": True, "extra": "forbid"}

    input_path: Path
    output_path: Path
    geometry: FrameGeometry
    fps: float = Field(gt=0)


class ContainerManifest(BaseModel):
    """Sidecar metadata written next to an encoded container.

    Records what the frame stream itself cannot: the true payload length
    and the channel mode the frames were packed with.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    source_name: str
    original_length: int = Field(ge=0)
    padding: int = Field(ge=0)
    width: int = Field(gt=0)
    height: int = Field(gt=0)
    fps: float = Field(gt=0)
    mode: ChannelMode
    frame_count: int = Field(ge=0)
    chunk_size: int = Field(gt=0)

    @model_validator(mode="after")
    def validate_layout(self) -> "ContainerManifest":
        """Check that length, padding and frame count describe the same stream."""
        expected_chunk = self.width * self.height * self.mode.bytes_per_pixel
        if self.chunk_size != expected_chunk:
            raise ValueError(f"chunk_size {self.chunk_size} does not match {self.width}x{self.height} in {self.mode.value} mode ({expected_chunk})")
        if self.original_length + self.padding != self.frame_count * self.chunk_size:
            raise ValueError(f"original_length + padding ({self.original_length + self.padding}) != frame_count * chunk_size ({self.frame_count * self.chunk_size})")
        return self

    @property
    def geometry(self) -> FrameGeometry:
        return FrameGeometry(width=self.width, height=self.height, mode=self.mode)


class EncodedFile(BaseModel):
    """Result of encoding one file into a container."""

    model_config = {"frozen": True, "extra": "forbid"}

    input_path: Path
    output_path: Path
    frame_count: int = Field(ge=0)
    original_length: int = Field(ge=0)
    padding: int = Field(ge=0)
    manifest_path: Optional[Path] = None


class DecodedFile(BaseModel):
    """Result of decoding one container (local or downloaded) into a file."""

    model_config = {"frozen": True, "extra": "forbid"}

    source: str
    output_path: Path
    frame_count: int = Field(ge=0)
    byte_count: int = Field(ge=0)
    trimmed: bool = False


class ContainerInfo(BaseModel):
    """What can be learned about a container without decoding its payload."""

    model_config = {"frozen": True, "extra": "forbid"}

    path: Path
    frame_count: int = Field(ge=0)
    width: Optional[int] = None
    height: Optional[int] = None
    manifest: Optional[ContainerManifest] = None


class BatchItemResult(BaseModel):
    """Outcome of one batch item."""

    model_config = {"frozen": True, "extra": "forbid"}

    source: str
    output_path: Optional[Path] = None
    success: bool
    error: Optional[str] = None


class BatchReport(BaseModel):
    """Per-item outcomes of one encode or decode invocation."""

    model_config = {"frozen": True, "extra": "forbid"}

    operation: Literal["encode", "decode"]
    items: List[BatchItemResult] = Field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for item in self.items if item.success)

    @property
    def failed(self) -> int:
        return sum(1 for item in self.items if not item.success)
