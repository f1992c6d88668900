"""Shared configuration and data models used across the tracking pipeline."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from posestream.errors import ConfigurationError

DEFAULT_JOINT_COUNT = 17


@dataclass(frozen=True)
class VideoSpec:
    """Basic video metadata reported by ffprobe.

    Attributes:
        path: Filesystem path to the source video.
        width: Pixel width as reported by ffprobe (pre-rotation).
        height: Pixel height as reported by ffprobe (pre-rotation).
        rotation: Clockwise rotation in degrees derived from metadata; expected
            to be in {0, 90, 180, 270}.
    """

    path: Path
    width: int
    height: int
    rotation: int = 0

    @property
    def effective_size(self) -> tuple[int, int]:
        """Return (width, height) after applying rotation orientation."""
        if self.rotation in {90, 270}:
            return (self.height, self.width)
        return (self.width, self.height)


@dataclass(frozen=True)
class TextureSpec:
    """Dimensions of the display surface decoded keypoints are mapped onto."""

    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ConfigurationError(
                f"Texture dimensions must be positive, got {self.width}x{self.height}"
            )

    @classmethod
    def from_video_spec(cls, spec: VideoSpec) -> "TextureSpec":
        width, height = spec.effective_size
        return cls(width=width, height=height)

    @classmethod
    def parse(cls, value: str) -> "TextureSpec":
        """Parse a ``WIDTHxHEIGHT`` string such as ``704x704``."""
        try:
            width, height = value.lower().split("x", 1)
            return cls(width=int(width), height=int(height))
        except ValueError as exc:
            raise ConfigurationError(f"Invalid texture size {value!r}; expected WIDTHxHEIGHT") from exc


@dataclass(frozen=True)
class PoseConfig:
    """Configuration for heatmap decoding and joint tracking.

    Attributes:
        joint_count: Number of joints (heatmap channels), K.
        confidence_threshold: Minimum confidence, in percent, for a direct
            observation to be trusted.
        image_height: Network input height in pixels.
        image_width: Network input width in pixels.
        line_width: Cosmetic bone width handed to the renderer.
        max_coast_frames: How many consecutive unconfident frames a joint may
            be extrapolated for before it is forgotten. ``None`` never forgets.
    """

    joint_count: int = DEFAULT_JOINT_COUNT
    confidence_threshold: float = 70.0
    image_height: int = 352
    image_width: int = 352
    line_width: float = 5.0
    max_coast_frames: Optional[int] = None

    def __post_init__(self) -> None:
        if self.joint_count <= 0:
            raise ConfigurationError(f"joint_count must be positive, got {self.joint_count}")
        if not 0.0 <= self.confidence_threshold <= 100.0:
            raise ConfigurationError(
                f"confidence_threshold must be within [0, 100] percent, got {self.confidence_threshold}"
            )
        if self.image_height <= 0 or self.image_width <= 0:
            raise ConfigurationError(
                f"Network input size must be positive, got {self.image_width}x{self.image_height}"
            )
        if self.line_width <= 0:
            raise ConfigurationError(f"line_width must be positive, got {self.line_width}")
        if self.max_coast_frames is not None and self.max_coast_frames < 0:
            raise ConfigurationError(
                f"max_coast_frames must be None or non-negative, got {self.max_coast_frames}"
            )

    @property
    def threshold_fraction(self) -> float:
        """Confidence threshold as a fraction in [0, 1]."""
        return self.confidence_threshold / 100.0

    def describe(self) -> str:
        """Return a short string identifying the tracking parameters."""
        coast = "inf" if self.max_coast_frames is None else str(self.max_coast_frames)
        return (
            f"k{self.joint_count}"
            f"-thr{self.confidence_threshold:.1f}"
            f"-in{self.image_width}x{self.image_height}"
            f"-coast{coast}"
        )

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "PoseConfig":
        """Build a config from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        kwargs = {key: value for key, value in raw.items() if key in known}
        try:
            return cls(**kwargs)
        except TypeError as exc:
            raise ConfigurationError(f"Invalid configuration value: {exc}") from exc


def load_config(path: Optional[str | Path] = None) -> PoseConfig:
    """Load a :class:`PoseConfig` from a JSON file.

    A missing path or file yields the defaults. Malformed JSON and invalid
    values raise :class:`ConfigurationError` so the pipeline never starts
    with a bad configuration.
    """

    if path is None:
        return PoseConfig()
    config_path = Path(path).expanduser()
    if not config_path.exists():
        return PoseConfig()

    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid config JSON in {config_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config root must be a JSON object: {config_path}")
    return PoseConfig.from_dict(raw)
