"""Video metadata helpers for sizing the display texture.

Keypoints are published in the coordinate space of the video texture, so the
only thing the tracker needs from the video source is its upright frame size.
This module wraps ffprobe to read it.
"""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Dict, Iterable

from posestream.config import TextureSpec, VideoSpec
from posestream.errors import PoseStreamError

FFPROBE_CMD = (
    "ffprobe",
    "-v",
    "error",
    "-print_format",
    "json",
    "-show_streams",
)


class FFprobeError(PoseStreamError, RuntimeError):
    """Raised when ffprobe is unavailable or returns invalid data."""


def _rotation_from_stream(stream: Dict) -> int:
    tags = stream.get("tags") or {}
    if "rotate" in tags:
        try:
            rotation = int(tags["rotate"])
            return rotation % 360
        except ValueError:
            pass
    for side_data in stream.get("side_data_list", []):
        if side_data.get("rotation") is not None:
            try:
                return int(side_data["rotation"]) % 360
            except (TypeError, ValueError):
                continue
    return 0


def _select_video_stream(streams: Iterable[Dict]) -> Dict:
    for stream in streams:
        if stream.get("codec_type") == "video":
            return stream
    raise FFprobeError("ffprobe output did not contain a video stream")


def probe_video(video_path: str | Path) -> VideoSpec:
    """Probe a video with ffprobe to build a :class:`VideoSpec` instance.

    Raises:
        FFprobeError: if ffprobe is not available or returns invalid data.
    """

    path = Path(video_path)
    if not path.exists():
        raise FFprobeError(f"Video does not exist: {video_path}")

    try:
        output = subprocess.check_output(
            [*FFPROBE_CMD, str(path)],
            stderr=subprocess.STDOUT,
            text=True,
        )
    except FileNotFoundError as exc:
        raise FFprobeError("ffprobe is not installed or not on PATH") from exc
    except subprocess.CalledProcessError as exc:
        raise FFprobeError(f"ffprobe failed: {exc.output}") from exc

    try:
        probe_data = json.loads(output)
    except json.JSONDecodeError as exc:
        raise FFprobeError(f"Invalid ffprobe JSON: {exc}") from exc

    streams = probe_data.get("streams") or []
    video_stream = _select_video_stream(streams)

    try:
        width = int(video_stream["width"])
        height = int(video_stream["height"])
    except KeyError as exc:
        raise FFprobeError(f"ffprobe missing width/height: {exc}") from exc

    return VideoSpec(
        path=path,
        width=width,
        height=height,
        rotation=_rotation_from_stream(video_stream),
    )


def probe_texture(video_path: str | Path) -> TextureSpec:
    """Return the upright display texture size of ``video_path``."""
    return TextureSpec.from_video_spec(probe_video(video_path))
