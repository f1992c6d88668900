import unittest

from posestream.errors import ConfigurationError
from posestream.vision.skeleton import (
    REFERENCE_TOPOLOGY,
    Bone,
    BoneCategory,
    SkeletonGraph,
)
from posestream.vision.tracking import JointSource, TrackedJoint

K = 17


def _joints(visible):
    joints = []
    for joint in range(K):
        if joint in visible:
            joints.append(TrackedJoint(joint, JointSource.OBSERVED, float(joint), float(joint) * 2))
        else:
            joints.append(TrackedJoint(joint, JointSource.HIDDEN))
    return joints


class SkeletonGraphTests(unittest.TestCase):
    def test_reference_topology_shape(self) -> None:
        graph = SkeletonGraph(K)

        self.assertEqual(len(graph), 18)
        self.assertEqual(len(graph.by_category(BoneCategory.FACE)), 4)
        self.assertEqual(len(graph.by_category(BoneCategory.TORSO)), 6)
        self.assertEqual(len(graph.by_category(BoneCategory.ARM)), 4)
        self.assertEqual(len(graph.by_category(BoneCategory.LEG)), 4)
        self.assertTrue(all(0 <= b.start < K and 0 <= b.end < K for b in graph.bones))

    def test_out_of_range_bone_is_rejected(self) -> None:
        with self.assertRaises(ConfigurationError):
            SkeletonGraph(K, [*REFERENCE_TOPOLOGY, Bone(16, 17, BoneCategory.LEG)])
        with self.assertRaises(ConfigurationError):
            SkeletonGraph(K, [Bone(-1, 3, BoneCategory.ARM)])

    def test_reference_topology_does_not_fit_fewer_joints(self) -> None:
        with self.assertRaises(ConfigurationError):
            SkeletonGraph(13)

    def test_bone_visible_only_when_both_endpoints_visible(self) -> None:
        graph = SkeletonGraph(K)
        segments = {
            (s.bone.start, s.bone.end): s for s in graph.segments(_joints({5, 6}))
        }

        self.assertTrue(segments[(5, 6)].visible)
        self.assertEqual(segments[(5, 6)].start, (5.0, 10.0))
        self.assertEqual(segments[(5, 6)].end, (6.0, 12.0))
        self.assertFalse(segments[(5, 11)].visible)
        self.assertFalse(segments[(6, 11)].visible)
        self.assertIsNone(segments[(6, 11)].start)

    def test_extrapolated_joints_count_as_visible(self) -> None:
        graph = SkeletonGraph(K)
        joints = _joints({0})
        joints[1] = TrackedJoint(1, JointSource.EXTRAPOLATED, 3.0, 4.0)

        nose_to_eye = graph.segments(joints)[0]
        self.assertTrue(nose_to_eye.visible)
        self.assertEqual(nose_to_eye.end, (3.0, 4.0))

    def test_line_width_and_colors(self) -> None:
        graph = SkeletonGraph(K, line_width=2.5)

        self.assertTrue(all(bone.width == 2.5 for bone in graph.bones))
        self.assertEqual(graph.by_category(BoneCategory.FACE)[0].color, "#FF00FF")
        self.assertEqual(REFERENCE_TOPOLOGY[0].width, 5.0)

    def test_bone_name_uses_joint_names(self) -> None:
        graph = SkeletonGraph(K)
        self.assertEqual(graph.bone_name(graph.bones[0]), "nose_to_left_eye")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
