"""COCO-17 skeleton topology and per-frame bone visibility."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from posestream.errors import ConfigurationError
from posestream.vision.keypoints import joint_names
from posestream.vision.tracking import Point, TrackedJoint


class BoneCategory(str, Enum):
    FACE = "face"
    TORSO = "torso"
    ARM = "arm"
    LEG = "leg"


CATEGORY_COLORS: Dict[BoneCategory, str] = {
    BoneCategory.FACE: "#FF00FF",
    BoneCategory.TORSO: "#FF0000",
    BoneCategory.ARM: "#00FF00",
    BoneCategory.LEG: "#0000FF",
}


@dataclass(frozen=True)
class Bone:
    """Drawn segment between two joint slots."""

    start: int
    end: int
    category: BoneCategory
    width: float = 5.0

    @property
    def color(self) -> str:
        return CATEGORY_COLORS[self.category]


def _bones(category: BoneCategory, pairs: Sequence[Tuple[int, int]]) -> Tuple[Bone, ...]:
    return tuple(Bone(start, end, category) for start, end in pairs)


REFERENCE_TOPOLOGY: Tuple[Bone, ...] = (
    # nose-eye-ear, both sides
    *_bones(BoneCategory.FACE, [(0, 1), (0, 2), (1, 3), (2, 4)]),
    # shoulder/hip quadrilateral with both diagonals
    *_bones(BoneCategory.TORSO, [(5, 6), (5, 11), (6, 12), (5, 12), (6, 11), (11, 12)]),
    *_bones(BoneCategory.ARM, [(5, 7), (7, 9), (6, 8), (8, 10)]),
    *_bones(BoneCategory.LEG, [(11, 13), (13, 15), (12, 14), (14, 16)]),
)


@dataclass(frozen=True)
class BoneSegment:
    """Render decision for one bone on one frame."""

    bone: Bone
    visible: bool
    start: Optional[Point] = None
    end: Optional[Point] = None


class SkeletonGraph:
    """Fixed bone list validated against the joint count at construction.

    Args:
        joint_count: Number of joint slots bones may reference.
        bones: Bone table; defaults to the COCO-17 reference topology.
        line_width: Optional width applied to every bone.

    Raises:
        ConfigurationError: if a bone references a joint outside
            ``[0, joint_count)``.
    """

    def __init__(
        self,
        joint_count: int,
        bones: Sequence[Bone] = REFERENCE_TOPOLOGY,
        *,
        line_width: Optional[float] = None,
    ) -> None:
        if joint_count <= 0:
            raise ConfigurationError(f"joint_count must be positive, got {joint_count}")
        for idx, bone in enumerate(bones):
            for joint in (bone.start, bone.end):
                if not 0 <= joint < joint_count:
                    raise ConfigurationError(
                        f"Bone {idx} ({bone.start}, {bone.end}) references joint {joint} "
                        f"outside [0, {joint_count})"
                    )
        if line_width is not None:
            bones = [replace(bone, width=line_width) for bone in bones]

        self.joint_count = joint_count
        self.bones: Tuple[Bone, ...] = tuple(bones)
        self._names = joint_names(joint_count)

    def __len__(self) -> int:
        return len(self.bones)

    def bone_name(self, bone: Bone) -> str:
        return f"{self._names[bone.start]}_to_{self._names[bone.end]}"

    def by_category(self, category: BoneCategory) -> List[Bone]:
        return [bone for bone in self.bones if bone.category is category]

    def segments(self, joints: Sequence[TrackedJoint]) -> List[BoneSegment]:
        """Resolve every bone to a visible segment or a hidden one.

        A bone is visible only when both of its endpoint joints are visible.
        """

        if len(joints) != self.joint_count:
            raise ValueError(f"Expected {self.joint_count} joints, got {len(joints)}")

        segments: List[BoneSegment] = []
        for bone in self.bones:
            start, end = joints[bone.start], joints[bone.end]
            if start.visible and end.visible:
                segments.append(BoneSegment(bone, True, start.position, end.position))
            else:
                segments.append(BoneSegment(bone, False))
        return segments
