"""Byte/frame codec: chunking, pixel packing and unpacking.

Pure functions over explicit parameters. A byte stream is zero-padded to a
whole number of chunks, each chunk becomes one ``height x width x 3`` uint8
frame, and unpacking reverses the packing exactly.

Packing rule, per pixel ``i`` in row-major order:
    triple mode: channel-0, channel-1, channel-2 = chunk[3i], chunk[3i+1], chunk[3i+2]
    single mode: channel-0 = chunk[i], channel-1 = channel-2 = 0

Example:
    geometry = FrameGeometry(width=2, height=2, mode=ChannelMode.SINGLE)
    frames = list(encode_frames(b"\\xab" * 10, geometry))  # 3 frames
    decode_frames(frames, ChannelMode.SINGLE)  # 10 x 0xab + 2 x 0x00
"""

import math
from typing import Iterable, Iterator, List, Optional

import numpy as np

from byteframe.domain import FRAME_CHANNELS, ChannelMode, FrameGeometry

__all__ = [
    "SizeMismatchError",
    "chunk_count",
    "padding_length",
    "iter_chunks",
    "chunk_bytes",
    "pack_frame",
    "unpack_frame",
    "encode_frames",
    "decode_frames",
]


class SizeMismatchError(ValueError):
    """Chunk or frame size does not match the frame geometry."""

    pass


# ============================================================================
# Byte Chunker
# ============================================================================


def chunk_count(length: int, chunk_size: int) -> int:
    """Number of chunks needed to carry ``length`` bytes."""
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    return math.ceil(length / chunk_size)


def padding_length(length: int, chunk_size: int) -> int:
    """Number of zero bytes appended to fill the final chunk."""
    return chunk_count(length, chunk_size) * chunk_size - length


def iter_chunks(data: bytes, chunk_size: int) -> Iterator[bytes]:
    """Yield fixed-size chunks of ``data``, zero-padding the last one.

    Empty input yields no chunks.

    Args:
        data: Raw byte buffer
        chunk_size: Size of every yielded chunk in bytes

    Yields:
        Chunks of exactly ``chunk_size`` bytes, in original order

    Raises:
        ValueError: If chunk_size is not positive
    """
    total = chunk_count(len(data), chunk_size)
    view = memoryview(data)
    for index in range(total):
        chunk = bytes(view[index * chunk_size : (index + 1) * chunk_size])
        if len(chunk) < chunk_size:
            chunk = chunk.ljust(chunk_size, b"\x00")
        yield chunk


def chunk_bytes(data: bytes, chunk_size: int) -> List[bytes]:
    """Split ``data`` into ``ceil(len(data) / chunk_size)`` zero-padded chunks."""
    return list(iter_chunks(data, chunk_size))


# ============================================================================
# Pixel Packer / Unpacker
# ============================================================================


def pack_frame(chunk: bytes, geometry: FrameGeometry) -> np.ndarray:
    """Write one chunk into a ``height x width x 3`` uint8 frame.

    Args:
        chunk: Exactly ``geometry.chunk_size`` bytes
        geometry: Frame resolution and channel mode

    Returns:
        New frame array owned by the caller

    Raises:
        SizeMismatchError: If the chunk length does not match the geometry
    """
    if len(chunk) != geometry.chunk_size:
        raise SizeMismatchError(f"Chunk has {len(chunk)} bytes, expected {geometry.chunk_size} for {geometry.width}x{geometry.height} in {geometry.mode.value} mode")

    pixels = np.frombuffer(chunk, dtype=np.uint8)

    if geometry.mode is ChannelMode.TRIPLE:
        return pixels.reshape(geometry.frame_shape).copy()

    frame = np.zeros(geometry.frame_shape, dtype=np.uint8)
    frame[..., 0] = pixels.reshape(geometry.height, geometry.width)
    return frame


def unpack_frame(frame: np.ndarray, mode: ChannelMode, geometry: Optional[FrameGeometry] = None) -> bytes:
    """Read a frame's channel layout back into a byte chunk.

    The frame's own resolution decides the chunk length. When ``geometry``
    is given the frame must match it exactly.

    Raises:
        SizeMismatchError: If the frame is not an 8-bit three-channel image,
            or does not match ``geometry``
    """
    if frame.ndim != 3 or frame.shape[2] != FRAME_CHANNELS or frame.dtype != np.uint8:
        raise SizeMismatchError(f"Expected an 8-bit {FRAME_CHANNELS}-channel frame, got shape {frame.shape} dtype {frame.dtype}")
    if geometry is not None and frame.shape != geometry.frame_shape:
        raise SizeMismatchError(f"Frame shape {frame.shape} does not match expected {geometry.frame_shape}")

    if mode is ChannelMode.TRIPLE:
        return np.ascontiguousarray(frame).tobytes()
    return np.ascontiguousarray(frame[..., 0]).tobytes()


# ============================================================================
# Stream helpers
# ============================================================================


def encode_frames(data: bytes, geometry: FrameGeometry) -> Iterator[np.ndarray]:
    """Lazily turn a byte buffer into its ordered frame sequence."""
    for chunk in iter_chunks(data, geometry.chunk_size):
        yield pack_frame(chunk, geometry)


def decode_frames(frames: Iterable[np.ndarray], mode: ChannelMode, geometry: Optional[FrameGeometry] = None) -> bytes:
    """Unpack frames in arrival order and concatenate their chunks."""
    return b"".join(unpack_frame(frame, mode, geometry) for frame in frames)
