"""
Service helpers wrapping one tracking session of the core pipeline.
"""

from __future__ import annotations

from typing import Optional

from api.schemas import (
    BoneOut,
    FrameRequest,
    FrameResponse,
    JointOut,
    SegmentOut,
    SkeletonResponse,
)
from posestream.config import PoseConfig, TextureSpec
from posestream.pipeline import FrameOrchestrator
from posestream.vision.keypoints import joint_names


class TrackingSession:
    """
    Holds the orchestrator (and with it the joint history) shared by all requests.
    """

    def __init__(self, config: Optional[PoseConfig] = None) -> None:
        self.config = config or PoseConfig()
        self.orchestrator = FrameOrchestrator.from_config(self.config)
        self.names = joint_names(self.config.joint_count)

    def skeleton(self) -> SkeletonResponse:
        graph = self.orchestrator.skeleton
        return SkeletonResponse(
            joints=list(self.names),
            bones=[
                BoneOut(
                    start=bone.start,
                    end=bone.end,
                    name=graph.bone_name(bone),
                    category=bone.category.value,
                    color=bone.color,
                    width=bone.width,
                )
                for bone in graph.bones
            ],
            confidence_threshold=self.config.confidence_threshold,
        )

    def push_frame(self, payload: FrameRequest) -> FrameResponse:
        """
        Decode and track one frame. ShapeMismatch propagates to the route.
        """
        texture = TextureSpec(width=payload.texture_width, height=payload.texture_height)
        result = self.orchestrator.process(payload.heatmap, texture)
        graph = self.orchestrator.skeleton
        return FrameResponse(
            frame_index=result.frame_index,
            joints=[
                JointOut(
                    joint=joint.joint,
                    name=self.names[joint.joint],
                    source=joint.source.value,
                    visible=joint.visible,
                    x=joint.x,
                    y=joint.y,
                    confidence=obs.confidence,
                )
                for joint, obs in zip(result.joints, result.observations)
            ],
            bones=[
                SegmentOut(
                    name=graph.bone_name(segment.bone),
                    category=segment.bone.category.value,
                    visible=segment.visible,
                    start=list(segment.start) if segment.start else None,
                    end=list(segment.end) if segment.end else None,
                )
                for segment in result.segments
            ],
        )

    def reset(self) -> None:
        self.orchestrator.reset()
