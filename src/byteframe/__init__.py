"""byteframe: carry arbitrary files losslessly inside video containers.

Public API:
-----------
The commonly used functions and models are re-exported at the package level:

    from byteframe import (
        ChannelMode,
        FrameGeometry,
        encode_file,
        decode_file,
        run_encode,
        run_decode,
    )

See codec, transcode and batch modules for detailed documentation.
"""

__version__ = "0.1.0"

# Re-export core functions
from .batch import BatchError, run_decode, run_encode
from .codec import SizeMismatchError, chunk_bytes, decode_frames, encode_frames, pack_frame, unpack_frame
from .config import Settings, load_settings

# Re-export models
from .domain import BatchReport, ChannelMode, ContainerManifest, FrameGeometry, TranscodeJob
from .fetch import RemoteFetchError
from .transcode import TranscodeError, decode_file, encode_file, inspect_container
from .video import ContainerError, OpenCVBackend

__all__ = [
    # Models
    "BatchReport",
    "ChannelMode",
    "ContainerManifest",
    "FrameGeometry",
    "Settings",
    "TranscodeJob",
    # Exceptions
    "BatchError",
    "ContainerError",
    "RemoteFetchError",
    "SizeMismatchError",
    "TranscodeError",
    # Core functions
    "chunk_bytes",
    "pack_frame",
    "unpack_frame",
    "encode_frames",
    "decode_frames",
    "encode_file",
    "decode_file",
    "inspect_container",
    "run_encode",
    "run_decode",
    "load_settings",
    "OpenCVBackend",
]
