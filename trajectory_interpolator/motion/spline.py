"""
Arc-length parameterized spline rebuild of a trajectory.

The planar path is fitted with independent Akima splines x(s), y(s) over
cumulative arc length and resampled at a fixed resolution. Scalar fields
(velocity, acceleration, heading rate) are held piecewise constant from the
knot at or before each sample so speed limits are never exceeded between knots.
"""

from __future__ import annotations

import logging
import math

import numpy as np
from scipy.interpolate import Akima1DInterpolator, make_interp_spline

from trajectory_interpolator.config import ENDPOINT_EPSILON_M, InterpolatorParams
from trajectory_interpolator.types import Pose, TrajectoryPoint, TrajectoryPoints
from trajectory_interpolator.utils.geometry import (
    calc_distance2d,
    cumulative_lengths,
    quaternion_from_yaw,
    validate_pose,
)

logger = logging.getLogger(__name__)

# Akima needs this many knots; shorter paths use a lower-order interpolating spline
AKIMA_MIN_POINTS = 5

_MIN_KNOT_SPACING_M = 1e-6


class AkimaCurve:
    """Planar curve through trajectory knots, parameterized by arc length."""

    def __init__(self, knots: TrajectoryPoints, s: np.ndarray):
        self._knots = knots
        self._s = s
        xs = np.array([p.pose.x for p in knots], dtype=np.float64)
        ys = np.array([p.pose.y for p in knots], dtype=np.float64)
        self._zs = np.array([p.pose.z for p in knots], dtype=np.float64)
        if len(knots) >= AKIMA_MIN_POINTS:
            self._x = Akima1DInterpolator(s, xs)
            self._y = Akima1DInterpolator(s, ys)
        else:
            k = min(3, len(knots) - 1)
            self._x = make_interp_spline(s, xs, k=k)
            self._y = make_interp_spline(s, ys, k=k)
        self._dx = self._x.derivative()
        self._dy = self._y.derivative()
        self._aligned = False

    def length(self) -> float:
        return float(self._s[-1])

    def align_orientation_with_trajectory_direction(self) -> None:
        """Make computed orientations follow the curve tangent."""
        self._aligned = True

    def _knot_index(self, s: float) -> int:
        idx = int(np.searchsorted(self._s, s, side="right")) - 1
        return min(max(idx, 0), len(self._knots) - 1)

    def compute(self, s: float) -> TrajectoryPoint:
        """Evaluate the trajectory point at arc length ``s``."""
        s = min(max(s, 0.0), self.length())
        knot = self._knots[self._knot_index(s)]
        pose = Pose(
            x=float(self._x(s)),
            y=float(self._y(s)),
            z=float(np.interp(s, self._s, self._zs)),
        )
        if self._aligned:
            yaw = math.atan2(float(self._dy(s)), float(self._dx(s)))
            pose.set_quaternion(quaternion_from_yaw(yaw))
        else:
            pose.set_quaternion(knot.pose.quaternion())
        return TrajectoryPoint(
            pose=pose,
            longitudinal_velocity_mps=knot.longitudinal_velocity_mps,
            acceleration_mps2=knot.acceleration_mps2,
            heading_rate_rps=knot.heading_rate_rps,
        )


class SplineBuilder:
    """Builds an ``AkimaCurve`` from trajectory points."""

    def build(self, points: TrajectoryPoints) -> AkimaCurve | None:
        """Return a curve, or None if fewer than two distinct valid knots remain."""
        knots: TrajectoryPoints = []
        for p in points:
            if not validate_pose(p.pose):
                continue
            if knots and calc_distance2d(p, knots[-1]) < _MIN_KNOT_SPACING_M:
                continue
            knots.append(p)
        if len(knots) < 2:
            return None

        xy = np.array([[p.pose.x, p.pose.y] for p in knots], dtype=np.float64)
        s = cumulative_lengths(xy)
        try:
            return AkimaCurve(knots, s)
        except ValueError as e:
            logger.warning("Spline construction failed: %s", e)
            return None


def apply_spline(points: TrajectoryPoints, params: InterpolatorParams) -> bool:
    """
    Rebuild the trajectory from a spline sampled every
    ``params.spline_interpolation_resolution_m`` metres.

    Samples with non-finite poses are dropped. If the original last point is
    valid and lies more than 1 cm from the last sample it is appended verbatim.

    Returns:
        True if the buffer was replaced; False (buffer untouched) otherwise.
    """
    ds = params.spline_interpolation_resolution_m
    if not ds > 0.0:
        logger.error("Spline resolution must be positive, got %s", ds)
        return False

    curve = SplineBuilder().build(points)
    if curve is None:
        logger.warning("Failed to build interpolation trajectory")
        return False
    curve.align_orientation_with_trajectory_direction()

    n_samples = int(math.floor(curve.length() / ds + 1e-9)) + 1
    output: TrajectoryPoints = []
    for i in range(n_samples):
        p = curve.compute(i * ds)
        if not validate_pose(p.pose):
            continue
        output.append(p)

    if len(output) < 2:
        logger.warning("Not enough points in trajectory after akima spline interpolation")
        return False

    original_last = points[-1]
    if not validate_pose(original_last.pose):
        logger.warning("Last point in original trajectory is invalid. Removing last point")
        points[:] = output
        return True

    if calc_distance2d(output[-1], original_last) > ENDPOINT_EPSILON_M:
        output.append(original_last)
    points[:] = output
    return True
