"""Command-line interface for the tracking pipeline.

Usage:
    posestream replay heatmaps.npy --texture 704x704 --output tracks.jsonl
    posestream replay heatmaps.npy --video clip.mp4 --threshold 60

``replay`` feeds a recorded ``[frames, height, width, joints]`` heatmap stack
through decode, track, and publish, writing one JSON object per frame.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO

from posestream.config import PoseConfig, TextureSpec, load_config
from posestream.errors import ConfigurationError, PoseStreamError
from posestream.io.heatmaps import NpyHeatmapSource
from posestream.io.ingest import probe_texture
from posestream.pipeline import FrameOrchestrator, FrameResult

logger = logging.getLogger(__name__)


def frame_to_dict(result: FrameResult, orchestrator: FrameOrchestrator) -> Dict[str, Any]:
    """JSON-ready view of one published frame."""
    skeleton = orchestrator.skeleton
    return {
        "frame_index": result.frame_index,
        "joints": [
            {
                "joint": joint.joint,
                "source": joint.source.value,
                "x": joint.x,
                "y": joint.y,
                "confidence": obs.confidence,
            }
            for joint, obs in zip(result.joints, result.observations)
        ],
        "bones": [skeleton.bone_name(segment.bone) for segment in result.visible_segments],
    }


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="posestream", description=__doc__.splitlines()[0])
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    replay = sub.add_parser("replay", help="Track joints over a recorded heatmap stack.")
    replay.add_argument("heatmaps", type=Path, help="Path to a [frames, H, W, K] .npy file.")
    size = replay.add_mutually_exclusive_group()
    size.add_argument("--texture", type=TextureSpec.parse, help="Texture size as WIDTHxHEIGHT.")
    size.add_argument("--video", type=Path, help="Source video to read the texture size from.")
    replay.add_argument("--config", type=Path, help="JSON config file.")
    replay.add_argument("--threshold", type=float, help="Confidence threshold in percent.")
    replay.add_argument("--max-frames", type=int, help="Stop after this many frames.")
    replay.add_argument("--output", type=Path, help="Write JSON lines here instead of stdout.")
    return parser


def _resolve_config(args: argparse.Namespace) -> PoseConfig:
    config = load_config(args.config)
    if args.threshold is not None:
        config = replace(config, confidence_threshold=args.threshold)
    return config


def _resolve_texture(args: argparse.Namespace, config: PoseConfig) -> TextureSpec:
    if args.texture is not None:
        return args.texture
    if args.video is not None:
        return probe_texture(args.video)
    # Without a video the keypoints stay in network input space.
    return TextureSpec(width=config.image_width, height=config.image_height)


def replay(args: argparse.Namespace, out: TextIO) -> int:
    config = _resolve_config(args)
    texture = _resolve_texture(args, config)
    source = NpyHeatmapSource(args.heatmaps)
    orchestrator = FrameOrchestrator.from_config(config)
    logger.info(
        "replaying %d frames from %s at %dx%d (%s)",
        len(source),
        args.heatmaps,
        texture.width,
        texture.height,
        config.describe(),
    )

    frames = 0
    try:
        for result in orchestrator.run(source, texture, max_frames=args.max_frames):
            out.write(json.dumps(frame_to_dict(result, orchestrator)))
            out.write("\n")
            frames += 1
    finally:
        source.close()
    logger.info("published %d frames", frames)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(levelname)s:%(name)s:%(message)s",
    )

    try:
        if args.output is not None:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            with args.output.open("w", encoding="utf-8") as fh:
                return replay(args, fh)
        return replay(args, sys.stdout)
    except ConfigurationError as exc:
        logger.error("configuration error: %s", exc)
        return 2
    except (PoseStreamError, OSError) as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
