import json
import subprocess
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from posestream.config import TextureSpec
from posestream.io import ingest

SAMPLE_PROBE = {
    "streams": [
        {"codec_type": "audio"},
        {
            "codec_type": "video",
            "width": 1280,
            "height": 720,
            "tags": {"rotate": "90"},
        },
    ],
}


class IngestTests(unittest.TestCase):
    def test_rotation_prefers_tags_and_normalizes(self) -> None:
        stream = {"tags": {"rotate": "450"}}
        self.assertEqual(ingest._rotation_from_stream(stream), 90)

        stream = {"side_data_list": [{"rotation": -90}]}
        self.assertEqual(ingest._rotation_from_stream(stream), 270)

    def test_probe_video_parses_ffprobe_output(self) -> None:
        with tempfile.NamedTemporaryFile(suffix=".mp4") as fh:
            video_path = Path(fh.name)
            with mock.patch.object(
                ingest.subprocess, "check_output", autospec=True
            ) as mock_ffprobe:
                mock_ffprobe.return_value = json.dumps(SAMPLE_PROBE)
                spec = ingest.probe_video(video_path)

        self.assertEqual(spec.width, 1280)
        self.assertEqual(spec.height, 720)
        self.assertEqual(spec.rotation, 90)

    def test_probe_texture_returns_upright_size(self) -> None:
        with tempfile.NamedTemporaryFile(suffix=".mp4") as fh:
            with mock.patch.object(
                ingest.subprocess, "check_output", return_value=json.dumps(SAMPLE_PROBE)
            ):
                texture = ingest.probe_texture(fh.name)

        self.assertEqual(texture, TextureSpec(width=720, height=1280))

    def test_probe_video_missing_file_raises(self) -> None:
        with self.assertRaises(ingest.FFprobeError):
            ingest.probe_video("no/such/clip.mp4")

    def test_probe_video_wraps_ffprobe_failures(self) -> None:
        with tempfile.NamedTemporaryFile(suffix=".mp4") as fh:
            with mock.patch.object(
                ingest.subprocess,
                "check_output",
                side_effect=subprocess.CalledProcessError(1, "ffprobe", output="boom"),
            ):
                with self.assertRaises(ingest.FFprobeError):
                    ingest.probe_video(fh.name)

            with mock.patch.object(ingest.subprocess, "check_output", side_effect=FileNotFoundError()):
                with self.assertRaises(ingest.FFprobeError):
                    ingest.probe_video(fh.name)

    def test_probe_video_without_video_stream_raises(self) -> None:
        probe = {"streams": [{"codec_type": "audio"}], "format": {}}
        with tempfile.NamedTemporaryFile(suffix=".mp4") as fh:
            with mock.patch.object(ingest.subprocess, "check_output", return_value=json.dumps(probe)):
                with self.assertRaises(ingest.FFprobeError):
                    ingest.probe_video(fh.name)


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    unittest.main()
