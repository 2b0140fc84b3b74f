"""
Velocity smoothing: drives a ``VelocityOptimizer`` through its filter sequence.
"""

from __future__ import annotations

import logging

from trajectory_interpolator.config import InterpolatorParams
from trajectory_interpolator.motion.trajectory_utils import (
    find_first_nearest_index_with_soft_constraints,
)
from trajectory_interpolator.smoothers.base import VelocityOptimizer
from trajectory_interpolator.types import InitialMotion, TrajectoryPoints, VehicleState

logger = logging.getLogger(__name__)


def compute_initial_motion(
    vehicle_state: VehicleState, params: InterpolatorParams
) -> InitialMotion:
    """Seed motion for the optimizer: the ego's own motion once it moves faster
    than the pull-out speed, the pull-out targets before that."""
    if vehicle_state.velocity_mps > params.target_pull_out_speed_mps:
        return InitialMotion(vehicle_state.velocity_mps, vehicle_state.acceleration_mps2)
    return InitialMotion(params.target_pull_out_speed_mps, params.target_pull_out_acc_mps2)


def filter_velocity(
    points: TrajectoryPoints,
    initial_motion: InitialMotion,
    params: InterpolatorParams,
    smoother: VelocityOptimizer | None,
    vehicle_state: VehicleState,
) -> bool:
    """
    Smooth the velocity profile in place.

    Sequence: lateral acceleration filter (resampled) -> steering rate limit
    -> ego-speed dependent resampling -> clip to the point nearest the ego ->
    jerk-constrained optimization. A failed optimization keeps the clipped,
    unoptimized points.

    Returns:
        False if no smoother is available (buffer untouched), True otherwise.
    """
    if smoother is None:
        logger.error("Velocity smoother is not initialized")
        return False

    v0 = initial_motion.speed_mps
    a0 = initial_motion.acc_mps2
    ego_pose = vehicle_state.pose

    # Lateral acceleration limit
    points[:] = smoother.apply_lateral_acceleration_filter(
        points, v0, a0, enable_smooth_limit=True, use_resampling=True
    )
    # Already resampled above
    points[:] = smoother.apply_steering_rate_limit(points, use_resampling=False)
    points[:] = smoother.resample_trajectory(
        points,
        v0,
        ego_pose,
        params.nearest_dist_threshold_m,
        params.nearest_yaw_threshold_rad,
    )

    if len(points) < 2:
        logger.debug("Insufficient points (%d) for velocity optimization", len(points))
        return True

    closest = find_first_nearest_index_with_soft_constraints(
        points,
        ego_pose,
        params.nearest_dist_threshold_m,
        params.nearest_yaw_threshold_rad,
    )
    del points[:closest]

    success, optimized = smoother.apply(v0, a0, points)
    if not success:
        logger.warning("Fail to solve optimization.")
        return True
    points[:] = optimized
    return True
