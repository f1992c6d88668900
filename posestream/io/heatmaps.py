"""Recorded heatmap playback.

Lets the pipeline run against heatmaps dumped from a pose network (one
``[T, H, W, K]`` numpy array) instead of a live inference runtime.
"""

from __future__ import annotations

from pathlib import Path
from typing import Union

import numpy as np

from posestream.errors import ShapeMismatch
from posestream.pipeline import HeatmapSourceExhausted, InferenceEngine


class NpyHeatmapSource(InferenceEngine):
    """Replays a stack of heatmaps, one frame per :meth:`heatmap` call.

    Args:
        source: Path to a ``.npy`` file or an in-memory array shaped
            ``[frames, height, width, joints]``.
    """

    def __init__(self, source: Union[str, Path, np.ndarray]) -> None:
        if isinstance(source, (str, Path)):
            frames = np.load(Path(source), allow_pickle=False)
        else:
            frames = np.asarray(source)
        if frames.ndim != 4:
            raise ShapeMismatch(
                f"Heatmap recording must be [frames, height, width, joints], got shape {frames.shape}"
            )
        self._frames = frames
        self._cursor = 0

    def __len__(self) -> int:
        return int(self._frames.shape[0])

    @property
    def remaining(self) -> int:
        return len(self) - self._cursor

    def heatmap(self) -> np.ndarray:
        if self._cursor >= len(self):
            raise HeatmapSourceExhausted(f"Recording exhausted after {len(self)} frames")
        frame = self._frames[self._cursor]
        self._cursor += 1
        return frame

    def rewind(self) -> None:
        self._cursor = 0
