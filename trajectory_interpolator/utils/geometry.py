"""Planar geometry and pose utilities for trajectory processing.

Scalar helpers use ``math`` for per-point calls; array kernels are numba-compiled
since they run over every point of every trajectory.
"""

import math

import numpy as np
from numba import njit  # type: ignore[import-untyped]
from numpy.typing import NDArray
from scipy.spatial.transform import Rotation, Slerp

from trajectory_interpolator.types import Pose, TrajectoryPoint

__all__ = [
    "calc_distance2d",
    "calc_squared_distance2d",
    "calc_azimuth_angle",
    "calc_elevation_angle",
    "normalize_radian",
    "normalize_degree",
    "get_yaw",
    "quaternion_from_rpy",
    "quaternion_from_yaw",
    "validate_pose",
    "interpolate_pose",
    "segment_lengths",
    "cumulative_lengths",
    "menger_curvature",
]


def _pose_of(p: Pose | TrajectoryPoint) -> Pose:
    return p.pose if isinstance(p, TrajectoryPoint) else p


def calc_squared_distance2d(a: Pose | TrajectoryPoint, b: Pose | TrajectoryPoint) -> float:
    pa = _pose_of(a)
    pb = _pose_of(b)
    dx = pa.x - pb.x
    dy = pa.y - pb.y
    return dx * dx + dy * dy


def calc_distance2d(a: Pose | TrajectoryPoint, b: Pose | TrajectoryPoint) -> float:
    """Planar (x, y) distance between two poses or trajectory points."""
    return math.sqrt(calc_squared_distance2d(a, b))


def calc_azimuth_angle(src: Pose, dst: Pose) -> float:
    """Heading (rad) of the planar vector src -> dst."""
    return math.atan2(dst.y - src.y, dst.x - src.x)


def calc_elevation_angle(src: Pose, dst: Pose) -> float:
    """Pitch (rad) of the vector src -> dst, positive when climbing."""
    dist_2d = math.hypot(dst.x - src.x, dst.y - src.y)
    return math.atan2(dst.z - src.z, dist_2d)


def normalize_radian(angle: float) -> float:
    """Wrap angle to (-pi, pi]."""
    value = math.fmod(angle, 2.0 * math.pi)
    if value <= -math.pi:
        value += 2.0 * math.pi
    elif value > math.pi:
        value -= 2.0 * math.pi
    return value


def normalize_degree(angle: float) -> float:
    """Wrap angle to (-180, 180]."""
    value = math.fmod(angle, 360.0)
    if value <= -180.0:
        value += 360.0
    elif value > 180.0:
        value -= 360.0
    return value


def get_yaw(pose: Pose) -> float:
    """Yaw (rad) of a pose's quaternion."""
    siny_cosp = 2.0 * (pose.qw * pose.qz + pose.qx * pose.qy)
    cosy_cosp = 1.0 - 2.0 * (pose.qy * pose.qy + pose.qz * pose.qz)
    return math.atan2(siny_cosp, cosy_cosp)


def quaternion_from_rpy(roll: float, pitch: float, yaw: float) -> NDArray[np.float64]:
    """Quaternion [x, y, z, w] from extrinsic roll/pitch/yaw (rad)."""
    return Rotation.from_euler("xyz", [roll, pitch, yaw]).as_quat()


def quaternion_from_yaw(yaw: float) -> NDArray[np.float64]:
    half = 0.5 * yaw
    return np.array([0.0, 0.0, math.sin(half), math.cos(half)], dtype=np.float64)


def validate_pose(pose: Pose) -> bool:
    """True if all seven pose scalars are finite (rejects NaN and +/-inf)."""
    return (
        math.isfinite(pose.x)
        and math.isfinite(pose.y)
        and math.isfinite(pose.z)
        and math.isfinite(pose.qx)
        and math.isfinite(pose.qy)
        and math.isfinite(pose.qz)
        and math.isfinite(pose.qw)
    )


def _has_valid_rotation(pose: Pose) -> bool:
    norm_sq = pose.qx**2 + pose.qy**2 + pose.qz**2 + pose.qw**2
    return validate_pose(pose) and norm_sq > 1e-12


def interpolate_pose(a: Pose, b: Pose, ratio: float) -> Pose:
    """Interpolate between two poses.

    Position is interpolated linearly. Orientation uses spherical linear
    interpolation; if either quaternion is degenerate the orientation of ``a``
    is carried forward unchanged.
    """
    ratio = min(max(ratio, 0.0), 1.0)
    out = Pose(
        x=a.x + (b.x - a.x) * ratio,
        y=a.y + (b.y - a.y) * ratio,
        z=a.z + (b.z - a.z) * ratio,
        qx=a.qx,
        qy=a.qy,
        qz=a.qz,
        qw=a.qw,
    )
    if not (_has_valid_rotation(a) and _has_valid_rotation(b)):
        return out

    key_rots = Rotation.from_quat(np.stack([a.quaternion(), b.quaternion()]))
    slerp = Slerp(np.array([0.0, 1.0]), key_rots)
    out.set_quaternion(slerp(np.array([ratio])).as_quat()[0])
    return out


@njit(cache=True)
def segment_lengths(xy: np.ndarray) -> np.ndarray:
    """Planar lengths of the N-1 segments of an (N, 2) polyline."""
    n = xy.shape[0]
    out = np.zeros(max(n - 1, 0))
    for i in range(n - 1):
        dx = xy[i + 1, 0] - xy[i, 0]
        dy = xy[i + 1, 1] - xy[i, 1]
        out[i] = np.sqrt(dx * dx + dy * dy)
    return out


@njit(cache=True)
def cumulative_lengths(xy: np.ndarray) -> np.ndarray:
    """Arc length at each vertex of an (N, 2) polyline, starting at 0."""
    n = xy.shape[0]
    out = np.zeros(n)
    for i in range(1, n):
        dx = xy[i, 0] - xy[i - 1, 0]
        dy = xy[i, 1] - xy[i - 1, 1]
        out[i] = out[i - 1] + np.sqrt(dx * dx + dy * dy)
    return out


@njit(cache=True)
def menger_curvature(xy: np.ndarray, eps: float) -> np.ndarray:
    """Signed curvature at each vertex from its two neighbours.

    Endpoints copy the curvature of their nearest interior vertex.
    """
    n = xy.shape[0]
    k = np.zeros(n)
    if n < 3:
        return k
    for i in range(1, n - 1):
        ax = xy[i, 0] - xy[i - 1, 0]
        ay = xy[i, 1] - xy[i - 1, 1]
        bx = xy[i + 1, 0] - xy[i, 0]
        by = xy[i + 1, 1] - xy[i, 1]
        cx = xy[i + 1, 0] - xy[i - 1, 0]
        cy = xy[i + 1, 1] - xy[i - 1, 1]
        denom = np.sqrt((ax * ax + ay * ay) * (bx * bx + by * by) * (cx * cx + cy * cy))
        if denom < eps:
            k[i] = 0.0
        else:
            k[i] = 2.0 * (ax * by - ay * bx) / denom
    k[0] = k[1]
    k[n - 1] = k[n - 2]
    return k
