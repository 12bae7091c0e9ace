"""Configuration for byteframe.

Load and validate TOML configuration with Pydantic models and environment
overrides. Every key has a default, so running without a configuration file
reproduces the stock 640x480 @ 30 fps FFV1 layout.

Example config.toml:

    [codec]
    width = 640
    height = 480
    fps = 30.0
    mode = "single"

    [manifest]
    trim_padding = true

Environment overrides use the ``BYTEFRAME_`` prefix and ``__`` for nesting:

    BYTEFRAME_CODEC__MODE=single
    BYTEFRAME_LOGGING__LEVEL=DEBUG
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Iterator

try:
    import tomli as tomllib  # Python < 3.11
except ImportError:
    import tomllib  # Python >= 3.11

from pydantic import BaseModel, Field, field_validator

from byteframe.domain import ChannelMode, FrameGeometry
from byteframe.utils import LOG_LEVELS

__all__ = [
    "Settings",
    "CodecConfig",
    "NamingConfig",
    "FetchConfig",
    "ManifestConfig",
    "LoggingConfig",
    "load_settings",
    "ENV_PREFIX",
]

ENV_PREFIX = "BYTEFRAME_"


# ============================================================================
# Configuration Models
# ============================================================================


class CodecConfig(BaseModel):
    """Frame geometry and container parameters."""

    width: int = Field(default=640, ge=1)
    height: int = Field(default=480, ge=1)
    fps: float = Field(default=30.0, gt=0)
    mode: ChannelMode = Field(default=ChannelMode.TRIPLE)
    fourcc: str = Field(default="FFV1", min_length=4, max_length=4)

    model_config = {"extra": "forbid"}

    @property
    def geometry(self) -> FrameGeometry:
        return FrameGeometry(width=self.width, height=self.height, mode=self.mode)


class NamingConfig(BaseModel):
    """Output naming convention."""

    container_ext: str = Field(default="mkv")
    decoded_ext: str = Field(default="decoded")
    url_output_name: str = Field(default="youtube")

    model_config = {"extra": "forbid"}

    @field_validator("container_ext", "decoded_ext")
    @classmethod
    def strip_dot(cls, v: str) -> str:
        """Accept extensions with or without a leading dot."""
        v = v.lstrip(".")
        if not v:
            raise ValueError("extension must not be empty")
        return v


class FetchConfig(BaseModel):
    """Remote video retrieval."""

    preferred_quality: str = Field(default="144p")
    url_prefixes: list[str] = Field(default_factory=lambda: ["http://", "https://"])

    model_config = {"extra": "forbid"}


class ManifestConfig(BaseModel):
    """Sidecar manifest handling."""

    enabled: bool = Field(default=True)
    trim_padding: bool = Field(default=False)

    model_config = {"extra": "forbid"}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO")
    structured: bool = Field(default=False)

    model_config = {"extra": "forbid"}

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        v_upper = v.upper()
        if v_upper not in LOG_LEVELS:
            raise ValueError(f"level must be one of {LOG_LEVELS}, got '{v}'")
        return v_upper


class Settings(BaseModel):
    """Complete byteframe settings."""

    codec: CodecConfig = Field(default_factory=CodecConfig)
    naming: NamingConfig = Field(default_factory=NamingConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    manifest: ManifestConfig = Field(default_factory=ManifestConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"extra": "forbid"}  # Reject unknown keys


# ============================================================================
# Loading Functions
# ============================================================================


def load_settings(toml_path: Path | str | None = None, env_prefix: str = ENV_PREFIX) -> Settings:
    """Build Settings from defaults, an optional TOML file and the environment.

    Environment values are handed to the models as strings, so each one is
    converted by the type of the field it lands on.

    Raises:
        FileNotFoundError: If toml_path is given but does not exist
        ValueError: If the TOML is malformed or a value fails validation
    """
    sections = _read_toml(Path(toml_path)) if toml_path is not None else {}

    for (section, key), value in _env_overrides(env_prefix):
        table = sections.setdefault(section, {})
        if not isinstance(table, dict):
            raise ValueError(f"Cannot override {section}.{key}: [{section}] is not a table")
        table[key] = value

    return Settings.model_validate(sections)


def _read_toml(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {path}")
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {path}: {e}") from e


def _env_overrides(prefix: str) -> Iterator[tuple[tuple[str, str], str]]:
    """Yield ``((section, key), raw_value)`` for every ``PREFIX_SECTION__KEY`` variable.

    Variables that do not name exactly one section and one key are ignored.
    """
    for name, value in sorted(os.environ.items()):
        if not name.startswith(prefix):
            continue
        parts = name[len(prefix) :].lower().split("__")
        if len(parts) != 2 or not all(parts):
            continue
        yield (parts[0], parts[1]), value
