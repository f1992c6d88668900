"""Per-frame orchestration: heatmap in, tracked joints and bone segments out.

The inference engine and the renderer are collaborators behind small adapter
interfaces so the decode/track/publish cycle can be driven by a real model, a
recorded heatmap file, or a test double without changes here.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from posestream.config import PoseConfig, TextureSpec
from posestream.errors import PoseStreamError, ShapeMismatch
from posestream.vision.keypoints import HeatmapDecoder, KeypointObservation
from posestream.vision.skeleton import Bone, BoneSegment, SkeletonGraph
from posestream.vision.tracking import JointTracker, Point, TrackedJoint

logger = logging.getLogger(__name__)


class HeatmapSourceExhausted(PoseStreamError):
    """Raised by an inference engine when it has no further frames."""


class InferenceEngine(ABC):
    """
    Model adapter interface.

    Implementations return the network heatmap for the current frame as an
    array addressable as ``[batch, row, col, joint]`` or ``[row, col, joint]``.
    """

    @abstractmethod
    def heatmap(self): ...

    def close(self) -> None:
        return None


class Renderer(ABC):
    """Drawing adapter receiving one call per bone per frame."""

    def begin_frame(self) -> None:
        return None

    @abstractmethod
    def set_visible(self, bone: Bone, start: Point, end: Point) -> None: ...

    @abstractmethod
    def set_hidden(self, bone: Bone) -> None: ...


class RecordingRenderer(Renderer):
    """Keeps the calls of the most recent frame in memory."""

    def __init__(self) -> None:
        self.visible: List[Tuple[Bone, Point, Point]] = []
        self.hidden: List[Bone] = []

    def begin_frame(self) -> None:
        self.visible = []
        self.hidden = []

    def set_visible(self, bone: Bone, start: Point, end: Point) -> None:
        self.visible.append((bone, start, end))

    def set_hidden(self, bone: Bone) -> None:
        self.hidden.append(bone)


@dataclass(frozen=True)
class FrameResult:
    """Everything published for one processed frame."""

    frame_index: int
    observations: List[KeypointObservation]
    joints: List[TrackedJoint]
    segments: List[BoneSegment]

    @property
    def visible_segments(self) -> List[BoneSegment]:
        return [segment for segment in self.segments if segment.visible]


class FrameOrchestrator:
    """Runs decode, track, and publish for one frame at a time."""

    def __init__(
        self,
        config: PoseConfig,
        decoder: HeatmapDecoder,
        tracker: JointTracker,
        skeleton: SkeletonGraph,
        renderer: Optional[Renderer] = None,
    ) -> None:
        self.config = config
        self.decoder = decoder
        self.tracker = tracker
        self.skeleton = skeleton
        self.renderer = renderer
        self.frame_index = 0
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: PoseConfig, renderer: Optional[Renderer] = None) -> "FrameOrchestrator":
        return cls(
            config,
            HeatmapDecoder(config),
            JointTracker.from_config(config),
            SkeletonGraph(config.joint_count, line_width=config.line_width),
            renderer,
        )

    def reset(self) -> None:
        with self._lock:
            self.tracker.reset()
            self.frame_index = 0

    def process(self, heatmap, texture: TextureSpec) -> FrameResult:
        """Decode, track, and publish one heatmap.

        Raises:
            ShapeMismatch: if the heatmap cannot be decoded. Tracker state and
                the frame counter are unchanged.
        """

        with self._lock:
            try:
                observations = self.decoder.decode(heatmap, texture)
            except ShapeMismatch as exc:
                logger.warning("frame %d rejected: %s", self.frame_index, exc)
                raise

            joints = self.tracker.update(observations)
            segments = self.skeleton.segments(joints)
            self._render(segments)

            result = FrameResult(self.frame_index, observations, joints, segments)
            self.frame_index += 1
            return result

    def tick(self, engine: InferenceEngine, texture: TextureSpec) -> FrameResult:
        """Pull the current heatmap from ``engine`` and process it."""
        return self.process(engine.heatmap(), texture)

    def run(
        self,
        engine: InferenceEngine,
        texture: TextureSpec,
        *,
        max_frames: Optional[int] = None,
    ) -> Iterator[FrameResult]:
        """Drive successive ticks until the engine runs dry.

        A malformed heatmap skips that tick only; the loop carries on with the
        next one.
        """

        ticks = 0
        while max_frames is None or ticks < max_frames:
            ticks += 1
            try:
                result = self.tick(engine, texture)
            except HeatmapSourceExhausted:
                return
            except ShapeMismatch:
                continue
            yield result

    def _render(self, segments: List[BoneSegment]) -> None:
        if self.renderer is None:
            return
        self.renderer.begin_frame()
        for segment in segments:
            if segment.visible:
                self.renderer.set_visible(segment.bone, segment.start, segment.end)
            else:
                self.renderer.set_hidden(segment.bone)
