"""
Trajectory Interpolator

Post-processing for planned vehicle trajectories: cleans up the planner's
points, shapes and smooths the velocity profile, rebuilds the geometry with
splines, stitches in the ego state and stamps time-from-start.

Key components:
- TrajectoryInterpolator: per-stream processor owning params, optimizers and ego history
- interpolate_trajectory: the in-place pipeline function
- InterpolatorParams: pipeline configuration
- JerkFilteredSmoother / EBPathSmoother: reference velocity and path optimizers
"""

from ._version import __version__
from .config import InterpolatorParams
from .motion.pipeline import TrajectoryInterpolator, interpolate_trajectory
from .smoothers import EBPathSmoother, JerkFilteredSmoother
from .types import InitialMotion, Pose, TrajectoryPoint, TrajectoryPoints, VehicleState

__all__ = [
    "__version__",
    "InterpolatorParams",
    "TrajectoryInterpolator",
    "interpolate_trajectory",
    "JerkFilteredSmoother",
    "EBPathSmoother",
    "Pose",
    "TrajectoryPoint",
    "TrajectoryPoints",
    "VehicleState",
    "InitialMotion",
]
