import unittest

import numpy as np

from posestream.config import PoseConfig, TextureSpec
from posestream.errors import ShapeMismatch
from posestream.vision import keypoints
from posestream.vision.keypoints import HeatmapDecoder, decode_heatmap


def _empty_heatmap(height: int = 16, width: int = 16, joints: int = 17) -> np.ndarray:
    return np.zeros((height, width, joints), dtype=np.float32)


class HeatmapDecoderTests(unittest.TestCase):
    def test_peak_is_rescaled_into_texture_space(self) -> None:
        heatmap = _empty_heatmap()
        heatmap[4, 8, 0] = 0.9  # row y=4, col x=8

        decoder = HeatmapDecoder(PoseConfig(image_height=352, image_width=352))
        observations = decoder.decode(heatmap, TextureSpec(width=704, height=704))

        nose = observations[0]
        self.assertEqual((nose.x, nose.y), (352.0, 528.0))
        self.assertAlmostEqual(nose.confidence, 0.9, places=6)

    def test_non_square_texture_scales_axes_independently(self) -> None:
        heatmap = _empty_heatmap()
        heatmap[0, 1, 3] = 0.8

        obs = decode_heatmap(
            heatmap,
            joint_count=17,
            image_height=352,
            image_width=352,
            texture=TextureSpec(width=1920, height=1080),
        )[3]
        self.assertAlmostEqual(obs.x, 1 * 22 * 1920 / 352)
        self.assertAlmostEqual(obs.y, 352 * 1080 / 352)

    def test_ties_resolve_to_first_cell_in_row_major_order(self) -> None:
        heatmap = _empty_heatmap()
        heatmap[2, 9, 5] = 0.75
        heatmap[3, 1, 5] = 0.75
        heatmap[2, 10, 5] = 0.75

        col, row, confidence = keypoints.locate_keypoint(heatmap[:, :, 5])
        self.assertEqual((col, row), (9, 2))
        self.assertAlmostEqual(confidence, 0.75)

    def test_decode_is_deterministic(self) -> None:
        rng = np.random.default_rng(7)
        heatmap = rng.random((16, 16, 17))
        texture = TextureSpec(width=640, height=480)
        decoder = HeatmapDecoder(PoseConfig())

        self.assertEqual(decoder.decode(heatmap, texture), decoder.decode(heatmap, texture))

    def test_channel_without_positive_value_decodes_to_origin_with_zero_confidence(self) -> None:
        heatmap = np.full((16, 16, 17), -0.5)
        heatmap[5, 5, 2] = -0.1

        obs = HeatmapDecoder(PoseConfig()).decode(heatmap, TextureSpec(352, 352))[2]
        self.assertEqual((obs.x, obs.y, obs.confidence), (0.0, 352.0, 0.0))

    def test_nan_cell_does_not_hide_real_peak(self) -> None:
        heatmap = _empty_heatmap()
        heatmap[4, 8, 0] = 0.9
        heatmap[10, 10, 0] = np.nan
        heatmap[0, 0, 1] = np.nan  # NaN before the peak in scan order
        heatmap[2, 3, 1] = 0.8

        observations = HeatmapDecoder(PoseConfig()).decode(heatmap, TextureSpec(704, 704))

        self.assertEqual((observations[0].x, observations[0].y), (352.0, 528.0))
        self.assertAlmostEqual(observations[0].confidence, 0.9, places=6)
        self.assertEqual((observations[1].x, observations[1].y), (3 * 22 * 2.0, (352 - 2 * 22) * 2.0))

    def test_all_nan_channel_decodes_to_origin_with_zero_confidence(self) -> None:
        heatmap = _empty_heatmap()
        heatmap[:, :, 4] = np.nan

        obs = HeatmapDecoder(PoseConfig()).decode(heatmap, TextureSpec(352, 352))[4]
        self.assertEqual((obs.x, obs.y, obs.confidence), (0.0, 352.0, 0.0))

    def test_non_numeric_or_ragged_heatmap_raises_shape_mismatch(self) -> None:
        decoder = HeatmapDecoder(PoseConfig())
        with self.assertRaises(ShapeMismatch):
            decoder.decode([[["a"] * 17]], TextureSpec(352, 352))
        with self.assertRaises(ShapeMismatch):
            decoder.decode([[[0.0] * 17, [0.0] * 16]], TextureSpec(352, 352))

    def test_leading_batch_dimension_is_accepted(self) -> None:
        heatmap = _empty_heatmap()
        heatmap[1, 1, 0] = 1.0
        decoder = HeatmapDecoder(PoseConfig())
        texture = TextureSpec(352, 352)

        self.assertEqual(decoder.decode(heatmap[np.newaxis], texture), decoder.decode(heatmap, texture))

    def test_channel_count_mismatch_raises(self) -> None:
        decoder = HeatmapDecoder(PoseConfig())
        with self.assertRaises(ShapeMismatch):
            decoder.decode(_empty_heatmap(joints=16), TextureSpec(352, 352))

    def test_wrong_rank_raises(self) -> None:
        decoder = HeatmapDecoder(PoseConfig())
        with self.assertRaises(ShapeMismatch):
            decoder.decode(np.zeros((16, 17)), TextureSpec(352, 352))

    def test_joint_names_fall_back_for_custom_counts(self) -> None:
        self.assertEqual(keypoints.joint_names(17)[5], "left_shoulder")
        self.assertEqual(keypoints.joint_names(3), ("joint_0", "joint_1", "joint_2"))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
