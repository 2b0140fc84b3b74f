"""
Core data types shared by the trajectory processing pipeline.

A trajectory is a plain ``list[TrajectoryPoint]`` that pipeline stages mutate in
place. Points are mutable dataclasses; poses carry a quaternion orientation.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray


@dataclass(slots=True)
class Pose:
    """3D position (m) and orientation quaternion (x, y, z, w)."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    qx: float = 0.0
    qy: float = 0.0
    qz: float = 0.0
    qw: float = 1.0

    def as_array(self) -> NDArray[np.float64]:
        """Return [x, y, z, qx, qy, qz, qw]."""
        return np.array(
            [self.x, self.y, self.z, self.qx, self.qy, self.qz, self.qw],
            dtype=np.float64,
        )

    def quaternion(self) -> NDArray[np.float64]:
        return np.array([self.qx, self.qy, self.qz, self.qw], dtype=np.float64)

    def set_quaternion(self, quat: NDArray[np.float64] | list[float]) -> None:
        self.qx = float(quat[0])
        self.qy = float(quat[1])
        self.qz = float(quat[2])
        self.qw = float(quat[3])


@dataclass(slots=True)
class TrajectoryPoint:
    """Single planned waypoint."""

    pose: Pose = field(default_factory=Pose)
    longitudinal_velocity_mps: float = 0.0
    acceleration_mps2: float = 0.0
    heading_rate_rps: float = 0.0
    time_from_start: float = 0.0  # seconds

    def copy(self) -> TrajectoryPoint:
        return copy.deepcopy(self)


TrajectoryPoints = list[TrajectoryPoint]


@dataclass(frozen=True, slots=True)
class VehicleState:
    """Current ego state. Owned by the caller and never mutated."""

    pose: Pose = field(default_factory=Pose)
    velocity_mps: float = 0.0
    acceleration_mps2: float = 0.0


@dataclass(frozen=True, slots=True)
class InitialMotion:
    """Seed speed/acceleration for the velocity optimizer."""

    speed_mps: float
    acc_mps2: float


def copy_points(points: TrajectoryPoints) -> TrajectoryPoints:
    """Deep copy a trajectory so later stages cannot alias the caller's points."""
    return [p.copy() for p in points]


def positions_xy(points: TrajectoryPoints) -> NDArray[np.float64]:
    """(N, 2) array of planar positions."""
    xy = np.empty((len(points), 2), dtype=np.float64)
    for i, p in enumerate(points):
        xy[i, 0] = p.pose.x
        xy[i, 1] = p.pose.y
    return xy
