"""Heatmap decoding into per-joint keypoint observations.

The pose network emits one confidence channel per joint. Decoding takes the
arg-max cell of every channel and maps it from heatmap grid space into the
texture (display surface) space of the current video frame.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from posestream.config import PoseConfig, TextureSpec
from posestream.errors import ShapeMismatch

COCO17_NAMES: Tuple[str, ...] = (
    "nose",
    "left_eye",
    "right_eye",
    "left_ear",
    "right_ear",
    "left_shoulder",
    "right_shoulder",
    "left_elbow",
    "right_elbow",
    "left_wrist",
    "right_wrist",
    "left_hip",
    "right_hip",
    "left_knee",
    "right_knee",
    "left_ankle",
    "right_ankle",
)


def joint_names(joint_count: int) -> Tuple[str, ...]:
    """Return diagnostic names for ``joint_count`` joint slots."""
    if joint_count == len(COCO17_NAMES):
        return COCO17_NAMES
    return tuple(f"joint_{idx}" for idx in range(joint_count))


@dataclass(frozen=True)
class KeypointObservation:
    """Single decoded joint position in texture coordinates."""

    joint: int
    x: float
    y: float
    confidence: float

    @property
    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)


def _as_heatmap_volume(heatmap, joint_count: int) -> np.ndarray:
    try:
        volume = np.asarray(heatmap, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ShapeMismatch(f"Heatmap is not a numeric volume: {exc}") from exc
    # Inference engines hand over [batch, rows, cols, channels]; only batch 0 is used.
    if volume.ndim == 4 and volume.shape[0] >= 1:
        volume = volume[0]
    if volume.ndim != 3:
        raise ShapeMismatch(f"Heatmap must be [height, width, joints], got shape {volume.shape}")
    height, width, channels = volume.shape
    if channels != joint_count:
        raise ShapeMismatch(f"Heatmap has {channels} channels, expected {joint_count}")
    if height == 0 or width == 0:
        raise ShapeMismatch(f"Heatmap grid is empty: shape {volume.shape}")
    return volume


def locate_keypoint(channel: np.ndarray) -> Tuple[int, int, float]:
    """Find the highest-confidence cell of one heatmap channel.

    Returns ``(col, row, confidence)``. Ties resolve to the first cell in
    row-major order and NaN cells are ignored. A channel with no positive
    value decodes to ``(0, 0)`` with zero confidence.
    """

    flat_index = int(np.argmax(np.where(np.isnan(channel), -np.inf, channel)))
    row, col = divmod(flat_index, channel.shape[1])
    confidence = float(channel[row, col])
    if not confidence > 0.0:
        return 0, 0, 0.0
    return col, row, confidence


def decode_heatmap(
    heatmap,
    *,
    joint_count: int,
    image_height: int,
    image_width: int,
    texture: TextureSpec,
) -> List[KeypointObservation]:
    """Decode a ``[height, width, joint_count]`` heatmap into observations.

    Args:
        heatmap: Array-like confidence volume, optionally with a leading batch
            dimension.
        joint_count: Expected number of channels.
        image_height: Network input height the heatmap was produced from.
        image_width: Network input width the heatmap was produced from.
        texture: Display surface dimensions to scale into.

    Raises:
        ShapeMismatch: if the heatmap is not a 3-D volume with ``joint_count``
            channels.
    """

    volume = _as_heatmap_volume(heatmap, joint_count)
    stride = image_height // volume.shape[0]
    scale_x = texture.width / image_width
    scale_y = texture.height / image_height

    observations: List[KeypointObservation] = []
    for joint in range(joint_count):
        col, row, confidence = locate_keypoint(volume[:, :, joint])
        observations.append(
            KeypointObservation(
                joint=joint,
                x=col * stride * scale_x,
                # Heatmap rows grow downwards, the render surface grows upwards.
                y=(image_height - row * stride) * scale_y,
                confidence=confidence,
            )
        )
    return observations


class HeatmapDecoder:
    """Configured :func:`decode_heatmap` bound to one network input size."""

    def __init__(self, config: PoseConfig) -> None:
        self.config = config

    def decode(self, heatmap, texture: TextureSpec) -> List[KeypointObservation]:
        return decode_heatmap(
            heatmap,
            joint_count=self.config.joint_count,
            image_height=self.config.image_height,
            image_width=self.config.image_width,
            texture=texture,
        )
