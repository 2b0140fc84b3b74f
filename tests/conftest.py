"""Shared fixtures for the trajectory interpolator test suite."""

import math

import pytest

from trajectory_interpolator.types import Pose, TrajectoryPoint, VehicleState
from trajectory_interpolator.utils.geometry import quaternion_from_yaw


def _point(x: float, y: float, v: float = 1.0, a: float = 0.1, yaw: float = 0.0) -> TrajectoryPoint:
    pose = Pose(x=x, y=y)
    pose.set_quaternion(quaternion_from_yaw(yaw))
    return TrajectoryPoint(pose=pose, longitudinal_velocity_mps=v, acceleration_mps2=a)


def _state(
    x: float = 0.0, y: float = 0.0, yaw: float = 0.0, v: float = 0.0, a: float = 0.0
) -> VehicleState:
    pose = Pose(x=x, y=y)
    pose.set_quaternion(quaternion_from_yaw(yaw))
    return VehicleState(pose=pose, velocity_mps=v, acceleration_mps2=a)


@pytest.fixture
def make_point():
    return _point


@pytest.fixture
def make_state():
    return _state


@pytest.fixture
def make_line():
    """Factory for straight trajectories along +x."""

    def _make(n: int = 10, spacing: float = 1.0, v: float = 1.0, a: float = 0.1):
        return [_point(i * spacing, 0.0, v, a) for i in range(n)]

    return _make


@pytest.fixture
def sample_trajectory():
    """Ten points on the diagonal, 1 m/s, 0.1 m/s²."""
    return [_point(float(i), float(i), 1.0, 0.1, yaw=math.pi / 4) for i in range(10)]
