"""
Trajectory-level helpers shared by the processing stages.

Orientation insertion, invalid-orientation removal, nearest-point searches and
time-from-start recomputation over ``list[TrajectoryPoint]`` buffers.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from trajectory_interpolator.config import MIN_TIME_VELOCITY_MPS
from trajectory_interpolator.types import (
    Pose,
    TrajectoryPoint,
    TrajectoryPoints,
    positions_xy,
)
from trajectory_interpolator.utils.geometry import (
    calc_azimuth_angle,
    calc_distance2d,
    calc_elevation_angle,
    calc_squared_distance2d,
    cumulative_lengths,
    get_yaw,
    interpolate_pose,
    normalize_radian,
    quaternion_from_rpy,
)

logger = logging.getLogger(__name__)


def insert_orientation(points: TrajectoryPoints, is_driving_forward: bool = True) -> None:
    """Point each pose's heading at its successor.

    The last point takes over the orientation of the one before it. When
    driving backward, headings are flipped by pi.
    """
    if len(points) < 2:
        return

    for i in range(len(points) - 1):
        src = points[i].pose
        dst = points[i + 1].pose
        pitch = calc_elevation_angle(src, dst)
        yaw = calc_azimuth_angle(src, dst)
        if not is_driving_forward:
            pitch = -pitch
            yaw = normalize_radian(yaw + math.pi)
        # Positive elevation is a negative rotation about y
        src.set_quaternion(quaternion_from_rpy(0.0, -pitch, yaw))

    prev = points[-2].pose
    points[-1].pose.set_quaternion(prev.quaternion())


def is_driving_forward(src: Pose, dst: Pose) -> bool:
    """True if ``dst`` lies ahead of ``src`` along src's heading."""
    azimuth = calc_azimuth_angle(src, dst)
    return abs(normalize_radian(azimuth - get_yaw(src))) < math.pi / 2.0


def remove_first_invalid_orientation_points(
    points: TrajectoryPoints, max_yaw_diff: float = math.pi / 2.0
) -> None:
    """Erase the first point whose heading flips or that lies behind its predecessor.

    At most one point is erased per call; callers iterate until the size settles.
    """
    i = 0
    while i + 1 < len(points):
        p1 = points[i].pose
        p2 = points[i + 1].pose
        yaw_diff = abs(normalize_radian(get_yaw(p1) - get_yaw(p2)))
        if yaw_diff > max_yaw_diff or not is_driving_forward(p1, p2):
            del points[i + 1]
            return
        i += 1


def find_nearest_index(points: TrajectoryPoints, pose: Pose) -> int:
    """Index of the point closest to ``pose`` in the plane. Requires non-empty points."""
    min_dist = math.inf
    min_idx = 0
    for i, p in enumerate(points):
        d = calc_squared_distance2d(p, pose)
        if d < min_dist:
            min_dist = d
            min_idx = i
    return min_idx


def _find_first_nearest_within(
    points: TrajectoryPoints,
    pose: Pose,
    dist_threshold: float,
    yaw_threshold: float | None,
) -> int | None:
    squared_dist_threshold = dist_threshold * dist_threshold
    ego_yaw = get_yaw(pose)
    min_squared_dist = math.inf
    min_idx: int | None = None
    for i, p in enumerate(points):
        squared_dist = calc_squared_distance2d(p, pose)
        outside = squared_dist > squared_dist_threshold
        if yaw_threshold is not None:
            yaw_dev = abs(normalize_radian(get_yaw(p.pose) - ego_yaw))
            outside = outside or yaw_dev > yaw_threshold
        if outside:
            # Stop at the end of the first run of points inside the constraints
            if min_idx is not None:
                break
            continue
        if squared_dist >= min_squared_dist:
            continue
        min_squared_dist = squared_dist
        min_idx = i
    return min_idx


def find_first_nearest_index_with_soft_constraints(
    points: TrajectoryPoints,
    pose: Pose,
    dist_threshold: float = math.inf,
    yaw_threshold: float = math.inf,
) -> int:
    """Nearest index within distance and yaw thresholds, relaxing them if nothing matches.

    Tries distance + yaw, then distance only, then falls back to the plain
    nearest point. Among matches only the first contiguous run of points is
    considered, so a path that loops back near the ego does not steal the match.
    """
    idx = _find_first_nearest_within(points, pose, dist_threshold, yaw_threshold)
    if idx is not None:
        return idx
    idx = _find_first_nearest_within(points, pose, dist_threshold, None)
    if idx is not None:
        logger.debug("Nearest search relaxed yaw threshold %.3f rad", yaw_threshold)
        return idx
    logger.debug("Nearest search relaxed distance threshold %.3f m", dist_threshold)
    return find_nearest_index(points, pose)


def calc_longitudinal_offset_to_segment(
    points: TrajectoryPoints, seg_idx: int, pose: Pose
) -> float:
    """Signed projection of ``pose`` onto segment ``seg_idx`` measured from its start."""
    p_front = points[seg_idx].pose
    p_back = points[seg_idx + 1].pose
    seg_x = p_back.x - p_front.x
    seg_y = p_back.y - p_front.y
    seg_len = math.hypot(seg_x, seg_y)
    if seg_len < 1e-9:
        return 0.0
    return ((pose.x - p_front.x) * seg_x + (pose.y - p_front.y) * seg_y) / seg_len


def find_nearest_segment_index(points: TrajectoryPoints, pose: Pose) -> int:
    """Index of the segment [i, i+1] the pose projects onto."""
    nearest_idx = find_nearest_index(points, pose)
    if nearest_idx == 0:
        return 0
    if nearest_idx == len(points) - 1:
        return len(points) - 2
    signed_length = calc_longitudinal_offset_to_segment(points, nearest_idx, pose)
    if signed_length <= 0.0:
        return nearest_idx - 1
    return nearest_idx


def calculate_time_from_start(
    points: TrajectoryPoints,
    ego_position: Pose,
    min_velocity: float = MIN_TIME_VELOCITY_MPS,
) -> None:
    """Stamp elapsed time along the trajectory starting at the ego's segment.

    All stamps are reset to zero; from the ego's nearest segment onward each point
    gets its predecessor's stamp plus segment length over the predecessor's speed
    (floored at ``min_velocity``). Stamps are non-decreasing.
    """
    if len(points) < 2:
        return
    nearest_segment_idx = find_nearest_segment_index(points, ego_position)
    if nearest_segment_idx + 1 == len(points):
        return

    for p in points:
        p.time_from_start = 0.0
    for idx in range(nearest_segment_idx + 1, len(points)):
        src = points[idx - 1]
        dst = points[idx]
        velocity = max(min_velocity, src.longitudinal_velocity_mps)
        dst.time_from_start = src.time_from_start + calc_distance2d(src, dst) / velocity


def arc_lengths(points: TrajectoryPoints) -> np.ndarray:
    """Cumulative planar arc length at each point."""
    if not points:
        return np.zeros(0)
    return cumulative_lengths(positions_xy(points))


def interpolate_point(a: TrajectoryPoint, b: TrajectoryPoint, ratio: float) -> TrajectoryPoint:
    """Point at ``ratio`` of the way from a to b; scalar fields interpolate linearly."""
    return TrajectoryPoint(
        pose=interpolate_pose(a.pose, b.pose, ratio),
        longitudinal_velocity_mps=_lerp(a.longitudinal_velocity_mps, b.longitudinal_velocity_mps, ratio),
        acceleration_mps2=_lerp(a.acceleration_mps2, b.acceleration_mps2, ratio),
        heading_rate_rps=_lerp(a.heading_rate_rps, b.heading_rate_rps, ratio),
        time_from_start=_lerp(a.time_from_start, b.time_from_start, ratio),
    )


def _lerp(a: float, b: float, ratio: float) -> float:
    return a + (b - a) * ratio


def resample_by_arc_length(
    points: TrajectoryPoints, s_values: np.ndarray
) -> TrajectoryPoints:
    """Sample the polyline at the given arc lengths (clamped to its extent)."""
    if len(points) < 2:
        return [p.copy() for p in points]

    s = arc_lengths(points)
    out: TrajectoryPoints = []
    for s_query in np.clip(s_values, 0.0, s[-1]):
        idx = int(np.searchsorted(s, s_query, side="right")) - 1
        idx = min(max(idx, 0), len(points) - 2)
        seg_len = s[idx + 1] - s[idx]
        ratio = 0.0 if seg_len < 1e-9 else (s_query - s[idx]) / seg_len
        out.append(interpolate_point(points[idx], points[idx + 1], float(ratio)))
    return out
