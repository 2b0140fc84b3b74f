"""
Call contracts for the optimizers the pipeline borrows.

Both collaborators are stateful and not reentrant: a caller owns one instance
per trajectory stream and must not share it between concurrent invocations.
"""

from typing import Protocol, runtime_checkable

from trajectory_interpolator.types import Pose, TrajectoryPoints


@runtime_checkable
class VelocityOptimizer(Protocol):
    """Velocity profile optimizer (lateral/steering limits + jerk-constrained solve)."""

    def apply_lateral_acceleration_filter(
        self,
        points: TrajectoryPoints,
        v0: float,
        a0: float,
        enable_smooth_limit: bool,
        use_resampling: bool = True,
    ) -> TrajectoryPoints: ...

    def apply_steering_rate_limit(
        self, points: TrajectoryPoints, use_resampling: bool = True
    ) -> TrajectoryPoints: ...

    def resample_trajectory(
        self,
        points: TrajectoryPoints,
        v0: float,
        current_pose: Pose,
        nearest_dist_threshold: float,
        nearest_yaw_threshold: float,
    ) -> TrajectoryPoints: ...

    def apply(
        self, v0: float, a0: float, points: TrajectoryPoints
    ) -> tuple[bool, TrajectoryPoints]:
        """Run the jerk-constrained solve. Returns (success, output)."""
        ...


@runtime_checkable
class PathSmoother(Protocol):
    """Geometric path smoother that keeps its previous solution between calls."""

    def smooth_trajectory(
        self, points: TrajectoryPoints, current_pose: Pose
    ) -> TrajectoryPoints: ...

    def reset_previous_data(self) -> None: ...
