"""Sanity checks for heatmap decoding and dead-reckoning.

Builds a tiny synthetic heatmap recording (one joint drifting right, then
dropping out) and prints what the pipeline publishes each frame.
"""

import sys
from pathlib import Path

import numpy as np

# Allow running this script directly without installing the package.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from posestream.config import PoseConfig, TextureSpec  # noqa: E402
from posestream.io.heatmaps import NpyHeatmapSource  # noqa: E402
from posestream.pipeline import FrameOrchestrator  # noqa: E402


def run_examples() -> None:
    frames = np.zeros((5, 16, 16, 17))
    for t, col in enumerate([4, 5, 6]):
        frames[t, 8, col, 9] = 0.9  # right wrist, confident
    frames[3, 8, 7, 9] = 0.3  # lost
    frames[4, 8, 7, 9] = 0.3  # still lost

    orchestrator = FrameOrchestrator.from_config(PoseConfig())
    texture = TextureSpec(width=704, height=704)
    for result in orchestrator.run(NpyHeatmapSource(frames), texture):
        wrist = result.joints[9]
        print(f"frame={result.frame_index} source={wrist.source.value} position={wrist.position}")

    # Expect the prediction to stay one step ahead of the last real observation.
    assert orchestrator.tracker.states[9].last_position == (6 * 22 * 2.0, (352 - 8 * 22) * 2.0)
    print("Tracking checks passed.")


if __name__ == "__main__":
    run_examples()
