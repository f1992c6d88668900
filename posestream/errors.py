"""Error taxonomy shared across the tracking pipeline."""


class PoseStreamError(Exception):
    """Base class for all posestream failures."""


class ShapeMismatch(PoseStreamError, ValueError):
    """Raised when a heatmap or observation batch does not match the joint count.

    Local to one frame: the frame is rejected and tracker state is left as is.
    """


class ConfigurationError(PoseStreamError, ValueError):
    """Raised at construction time for invalid thresholds, joint counts or bones."""
