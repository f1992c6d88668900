"""posestream: real-time 2D pose tracking from network heatmaps.

This package decodes per-frame joint heatmaps into keypoints, keeps a joint
track stable across low-confidence frames, and exposes the COCO-17 skeleton
bone graph for drawing.
"""

__all__ = [
    "cli",
    "config",
    "errors",
    "pipeline",
]

__version__ = "0.1.0"
