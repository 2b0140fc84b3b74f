"""
Ego-state stitching and history expansion.

The ego history is a short trailing trajectory of the vehicle's own past poses,
bounded by ``backward_path_extension_m`` and reset on large discontinuities.
"""

import logging

from trajectory_interpolator.config import CLOSE_POINT_EPSILON_M, InterpolatorParams
from trajectory_interpolator.types import (
    Pose,
    TrajectoryPoint,
    TrajectoryPoints,
    VehicleState,
)
from trajectory_interpolator.utils.geometry import (
    calc_distance2d,
    get_yaw,
    normalize_radian,
)

logger = logging.getLogger(__name__)


def _ego_point(vehicle_state: VehicleState) -> TrajectoryPoint:
    pose = vehicle_state.pose
    return TrajectoryPoint(
        pose=Pose(
            x=pose.x, y=pose.y, z=pose.z, qx=pose.qx, qy=pose.qy, qz=pose.qz, qw=pose.qw
        ),
        longitudinal_velocity_mps=vehicle_state.velocity_mps,
    )


def add_ego_state_to_trajectory(
    points: TrajectoryPoints,
    vehicle_state: VehicleState,
    params: InterpolatorParams,
) -> None:
    """Append the current ego pose/speed to the trailing history.

    - empty history: the ego point becomes the only point
    - negligible change (< 1 cm and < 0.01 rad) from the last point: no-op
    - change beyond the nearest distance or yaw threshold: history restarts
      from the ego point
    - otherwise: append, then keep only the last ``backward_path_extension_m``
      metres of history
    """
    ego = _ego_point(vehicle_state)
    if not points:
        points.append(ego)
        return

    last = points[-1]
    yaw_diff = abs(normalize_radian(get_yaw(ego.pose) - get_yaw(last.pose)))
    distance = calc_distance2d(last, ego)

    if distance < CLOSE_POINT_EPSILON_M and yaw_diff < CLOSE_POINT_EPSILON_M:
        return

    if distance > params.nearest_dist_threshold_m or yaw_diff > params.nearest_yaw_threshold_rad:
        logger.debug(
            "Ego jumped %.2f m / %.2f rad from history end, resetting history",
            distance,
            yaw_diff,
        )
        points[:] = [ego]
        return

    points.append(ego)

    clip_idx = 0
    accumulated_length = 0.0
    for i in range(len(points) - 1, 0, -1):
        accumulated_length += calc_distance2d(points[i - 1], points[i])
        if accumulated_length > params.backward_path_extension_m:
            clip_idx = i
            break
    del points[:clip_idx]


def expand_trajectory_with_ego_history(
    points: TrajectoryPoints, ego_history_points: TrajectoryPoints
) -> None:
    """Prepend the history verbatim. No-op if either list is empty."""
    if not ego_history_points or not points:
        return
    points[:0] = ego_history_points
