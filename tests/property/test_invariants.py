"""Property-based tests for codec invariants.

Validates invariants that must hold across byte lengths and geometries:
- Decoding an encoded buffer returns the input followed by zero padding
- Frame count is ceil(len / chunk_size)
- Packing and unpacking a chunk is the identity
- Single mode leaves the second and third channels zero
"""

from __future__ import annotations

import numpy as np
import pytest

from byteframe.codec import chunk_count, decode_frames, encode_frames, pack_frame, padding_length, unpack_frame
from byteframe.domain import ChannelMode, FrameGeometry

pytestmark = pytest.mark.property

GEOMETRIES = [
    FrameGeometry(width=1, height=1, mode=ChannelMode.SINGLE),
    FrameGeometry(width=1, height=1, mode=ChannelMode.TRIPLE),
    FrameGeometry(width=3, height=2, mode=ChannelMode.SINGLE),
    FrameGeometry(width=5, height=3, mode=ChannelMode.TRIPLE),
    FrameGeometry(width=16, height=9, mode=ChannelMode.TRIPLE),
]


def _random_bytes(rng: np.random.Generator, length: int) -> bytes:
    return rng.integers(0, 256, size=length, dtype=np.uint8).tobytes()


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


class TestRoundTripInvariants:
    """Decode(encode(data)) equals data plus zero padding."""

    @pytest.mark.parametrize("geometry", GEOMETRIES, ids=lambda g: f"{g.width}x{g.height}-{g.mode.value}")
    def test_Should_RestoreBytesWithPadding_When_AnyLengthEncoded(self, geometry: FrameGeometry, rng):
        size = geometry.chunk_size
        lengths = [0, 1, size - 1, size, size + 1, 3 * size, 3 * size + size // 2]

        for length in lengths:
            data = _random_bytes(rng, length)

            frames = list(encode_frames(data, geometry))
            decoded = decode_frames(frames, geometry.mode, geometry)

            padding = (size - length % size) % size
            assert len(frames) == chunk_count(length, size)
            assert padding_length(length, size) == padding
            assert decoded == data + b"\x00" * padding


class TestFrameInvariants:
    """Per-frame layout invariants."""

    @pytest.mark.parametrize("geometry", GEOMETRIES, ids=lambda g: f"{g.width}x{g.height}-{g.mode.value}")
    def test_Should_BeIdentity_When_ChunkPackedThenUnpacked(self, geometry: FrameGeometry, rng):
        for _ in range(10):
            chunk = _random_bytes(rng, geometry.chunk_size)

            frame = pack_frame(chunk, geometry)

            assert frame.shape == (geometry.height, geometry.width, 3)
            assert frame.dtype == np.uint8
            assert unpack_frame(frame, geometry.mode, geometry) == chunk

    @pytest.mark.parametrize("width,height", [(1, 1), (4, 4), (7, 3)])
    def test_Should_LeaveUpperChannelsZero_When_SingleMode(self, width, height, rng):
        geometry = FrameGeometry(width=width, height=height, mode=ChannelMode.SINGLE)

        frame = pack_frame(_random_bytes(rng, geometry.chunk_size), geometry)

        assert not frame[..., 1:].any()

    def test_Should_IgnoreUpperChannels_When_UnpackingSingleMode(self, rng):
        geometry = FrameGeometry(width=4, height=2, mode=ChannelMode.SINGLE)
        chunk = _random_bytes(rng, geometry.chunk_size)
        frame = pack_frame(chunk, geometry)
        frame[..., 1:] = rng.integers(0, 256, size=(2, 4, 2), dtype=np.uint8)

        assert unpack_frame(frame, ChannelMode.SINGLE, geometry) == chunk
