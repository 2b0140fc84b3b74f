"""
Point sanitization and velocity shaping.

All functions mutate the trajectory list in place.
"""

import logging

from trajectory_interpolator.config import CLOSE_POINT_EPSILON_M
from trajectory_interpolator.motion.trajectory_utils import (
    insert_orientation,
    remove_first_invalid_orientation_points,
)
from trajectory_interpolator.types import TrajectoryPoints
from trajectory_interpolator.utils.geometry import calc_distance2d, validate_pose

logger = logging.getLogger(__name__)

__all__ = [
    "remove_close_proximity_points",
    "remove_invalid_points",
    "clamp_velocities",
    "set_max_velocity",
    "validate_pose",
]


def remove_close_proximity_points(
    points: TrajectoryPoints, min_dist: float = CLOSE_POINT_EPSILON_M
) -> None:
    """Drop points closer than ``min_dist`` to their predecessor.

    The first point is always kept; each later point is compared against the
    last point that survived.
    """
    if len(points) < 2:
        return

    kept = [points[0]]
    for point in points[1:]:
        if calc_distance2d(point, kept[-1]) < min_dist:
            continue
        kept.append(point)
    points[:] = kept


def remove_invalid_points(points: TrajectoryPoints) -> bool:
    """Remove non-finite, overlapping and inconsistently oriented points.

    Points with a non-finite pose are dropped first. Then forward headings are
    re-derived and the first invalid-orientation point is dropped until the
    point count stops changing. Each pass removes at most one point, so the
    loop terminates after at most ``len(points)`` passes.

    Returns:
        False if fewer than two points were given (buffer untouched) or fewer
        than two finite points remain.
    """
    if len(points) < 2:
        logger.error("Not enough points in trajectory to remove invalid points")
        return False

    valid = [p for p in points if validate_pose(p.pose)]
    if len(valid) != len(points):
        logger.warning("Dropping %d points with non-finite poses", len(points) - len(valid))
        points[:] = valid
    if len(points) < 2:
        logger.error("Not enough valid points in trajectory to remove invalid points")
        return False

    remove_close_proximity_points(points, CLOSE_POINT_EPSILON_M)

    previous_size = -1
    passes = 0
    while previous_size != len(points):
        previous_size = len(points)
        insert_orientation(points, is_driving_forward=True)
        remove_first_invalid_orientation_points(points)
        passes += 1

    logger.trace(  # type: ignore[attr-defined]
        "remove_invalid_points: %d points after %d passes", len(points), passes
    )
    return True


def clamp_velocities(
    points: TrajectoryPoints, min_velocity: float, min_acceleration: float
) -> None:
    """Raise every velocity/acceleration to at least the given bounds."""
    for point in points:
        point.longitudinal_velocity_mps = max(point.longitudinal_velocity_mps, min_velocity)
        point.acceleration_mps2 = max(point.acceleration_mps2, min_acceleration)


def set_max_velocity(points: TrajectoryPoints, max_velocity: float) -> None:
    """Cap every velocity at ``max_velocity``."""
    for point in points:
        point.longitudinal_velocity_mps = min(point.longitudinal_velocity_mps, max_velocity)
