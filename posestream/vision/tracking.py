"""Confidence-gated joint tracking with one-step dead-reckoning.

Every joint slot keeps a small piece of cross-frame memory: the last trusted
position and the velocity between the last two trusted positions. Each frame
the tracker decides per joint whether to publish the fresh observation, an
extrapolated position, or nothing at all.

Extrapolation policy:
    - A confident observation (``confidence >= threshold``) is always published
      as-is and becomes the new last known position. The velocity is the
      difference to the previous trusted position, or zero with
      ``velocity_known=False`` when the joint had no previous trusted position.
    - An unconfident observation of a warm joint publishes
      ``last_position + velocity``. When the velocity is not known yet this is
      the last position itself. The state is not re-based on the predicted
      value, so consecutive misses publish the same prediction.
    - An unconfident observation of a cold joint hides the joint.
    - With ``max_coast_frames`` set, a joint that has been extrapolated for
      that many consecutive frames goes cold on the next miss.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from posestream.config import PoseConfig
from posestream.errors import ConfigurationError, ShapeMismatch
from posestream.vision.keypoints import KeypointObservation, joint_names

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


class JointSource(str, Enum):
    """Where a published joint position came from."""

    OBSERVED = "observed"
    EXTRAPOLATED = "extrapolated"
    HIDDEN = "hidden"


@dataclass(frozen=True)
class JointState:
    """Cross-frame memory for one joint slot.

    A cold state (``warm=False``) holds the placeholder origin and an unknown
    velocity; extrapolation is only allowed from a warm state.
    """

    last_position: Point = (0.0, 0.0)
    velocity: Point = (0.0, 0.0)
    warm: bool = False
    velocity_known: bool = False
    missed_frames: int = 0


COLD = JointState()


@dataclass(frozen=True)
class TrackedJoint:
    """Per-frame tracking outcome for one joint."""

    joint: int
    source: JointSource
    x: Optional[float] = None
    y: Optional[float] = None

    @property
    def visible(self) -> bool:
        return self.source is not JointSource.HIDDEN

    @property
    def position(self) -> Optional[Point]:
        if not self.visible:
            return None
        return (self.x, self.y)


def _clamp_unit(value: float) -> float:
    return min(1.0, max(0.0, float(value)))


class JointTracker:
    """Owns the ``JointState`` array and advances it once per frame."""

    def __init__(
        self,
        joint_count: int,
        threshold: float = 0.7,
        *,
        max_coast_frames: Optional[int] = None,
    ) -> None:
        if joint_count <= 0:
            raise ConfigurationError(f"joint_count must be positive, got {joint_count}")
        if not 0.0 <= threshold <= 1.0:
            raise ConfigurationError(f"threshold must be a fraction within [0, 1], got {threshold}")
        if max_coast_frames is not None and max_coast_frames < 0:
            raise ConfigurationError(f"max_coast_frames must be non-negative, got {max_coast_frames}")

        self.joint_count = joint_count
        self.threshold = threshold
        self.max_coast_frames = max_coast_frames
        self._names = joint_names(joint_count)
        self._states: List[JointState] = [COLD] * joint_count
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: PoseConfig) -> "JointTracker":
        return cls(
            config.joint_count,
            config.threshold_fraction,
            max_coast_frames=config.max_coast_frames,
        )

    @property
    def states(self) -> Tuple[JointState, ...]:
        """Snapshot of the current per-joint states."""
        with self._lock:
            return tuple(self._states)

    def reset(self) -> None:
        """Forget all history; every joint becomes cold."""
        with self._lock:
            self._states = [COLD] * self.joint_count

    def update(
        self,
        observations: Sequence[KeypointObservation],
        threshold: Optional[float] = None,
    ) -> List[TrackedJoint]:
        """Gate one frame of observations and advance the per-joint state.

        Args:
            observations: One observation per joint, indexed by joint slot.
            threshold: Optional per-call override of the confidence fraction.

        Raises:
            ShapeMismatch: if the batch does not hold exactly one observation
                per joint. State is left untouched.
        """

        if len(observations) != self.joint_count:
            raise ShapeMismatch(
                f"Expected {self.joint_count} observations, got {len(observations)}"
            )
        tau = self.threshold if threshold is None else _clamp_unit(threshold)

        with self._lock:
            published: List[TrackedJoint] = []
            for joint, obs in enumerate(observations):
                tracked, state = self._step(joint, obs, self._states[joint], tau)
                if state.warm != self._states[joint].warm:
                    logger.debug(
                        "joint %s (%d) became %s",
                        self._names[joint],
                        joint,
                        "warm" if state.warm else "cold",
                    )
                self._states[joint] = state
                published.append(tracked)
            return published

    def _step(
        self, joint: int, obs: KeypointObservation, state: JointState, tau: float
    ) -> Tuple[TrackedJoint, JointState]:
        if _clamp_unit(obs.confidence) >= tau:
            if state.warm:
                velocity = (obs.x - state.last_position[0], obs.y - state.last_position[1])
                velocity_known = True
            else:
                velocity = (0.0, 0.0)
                velocity_known = False
            new_state = JointState(
                last_position=(obs.x, obs.y),
                velocity=velocity,
                warm=True,
                velocity_known=velocity_known,
                missed_frames=0,
            )
            return TrackedJoint(joint, JointSource.OBSERVED, obs.x, obs.y), new_state

        if not state.warm:
            return TrackedJoint(joint, JointSource.HIDDEN), COLD

        if self.max_coast_frames is not None and state.missed_frames >= self.max_coast_frames:
            return TrackedJoint(joint, JointSource.HIDDEN), COLD

        x, y = state.last_position
        if state.velocity_known:
            x += state.velocity[0]
            y += state.velocity[1]
        coasting = replace(state, missed_frames=state.missed_frames + 1)
        return TrackedJoint(joint, JointSource.EXTRAPOLATED, x, y), coasting
