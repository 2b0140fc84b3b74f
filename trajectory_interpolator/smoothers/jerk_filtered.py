"""
Reference velocity optimizer.

Limits the reference speed by lateral acceleration and steering-angle rate,
resamples along arc length, and produces a jerk-limited speed profile with a
single-DOF Ruckig pass over arc length.
"""

import logging
import math

import numpy as np
from ruckig import ControlInterface, InputParameter, OutputParameter, Result, Ruckig

from trajectory_interpolator.config import JerkFilteredSmootherParams
from trajectory_interpolator.motion.trajectory_utils import (
    arc_lengths,
    calc_longitudinal_offset_to_segment,
    find_first_nearest_index_with_soft_constraints,
    resample_by_arc_length,
)
from trajectory_interpolator.types import Pose, TrajectoryPoints, copy_points, positions_xy
from trajectory_interpolator.utils.geometry import menger_curvature, segment_lengths

logger = logging.getLogger(__name__)

# Module-level constant for error checking (avoids tuple creation per check)
_RUCKIG_ERRORS = (Result.Error, Result.ErrorInvalidInput)

_STOP_VELOCITY_MPS = 1e-3


class JerkFilteredSmoother:
    """
    Velocity optimizer satisfying the ``VelocityOptimizer`` contract.

    Stateless between calls apart from its parameters, but like any optimizer
    instance it is meant to be used by one trajectory stream at a time.
    """

    def __init__(self, params: JerkFilteredSmootherParams | None = None):
        self.params = params if params is not None else JerkFilteredSmootherParams()

    def _resample_fixed(self, points: TrajectoryPoints) -> TrajectoryPoints:
        s = arc_lengths(points)
        total = float(s[-1])
        if total < 1e-6:
            return copy_points(points)
        grid = np.arange(0.0, total, self.params.resample_interval_m)
        if total - grid[-1] > 1e-3:
            grid = np.append(grid, total)
        return resample_by_arc_length(points, grid)

    def _curvature(self, points: TrajectoryPoints) -> np.ndarray:
        return menger_curvature(positions_xy(points), self.params.curvature_epsilon)

    def apply_lateral_acceleration_filter(
        self,
        points: TrajectoryPoints,
        v0: float,
        a0: float,
        enable_smooth_limit: bool,
        use_resampling: bool = True,
    ) -> TrajectoryPoints:
        """Cap speed so that v² * |curvature| stays under the lateral acceleration limit.

        With ``enable_smooth_limit`` the cap never asks for more deceleration from
        the current speed ``v0`` than the configured minimum deceleration allows.
        """
        if len(points) < 3:
            return copy_points(points)

        p = self.params
        out = self._resample_fixed(points) if use_resampling else copy_points(points)
        if len(out) < 3:
            return out

        curvature = np.abs(self._curvature(out))
        s = arc_lengths(out)
        for i, point in enumerate(out):
            limit = math.sqrt(p.max_lateral_accel_mps2 / max(curvature[i], p.curvature_epsilon))
            limit = max(limit, p.min_curve_velocity_mps)
            if enable_smooth_limit:
                reachable_sq = v0 * v0 + 2.0 * p.min_decel_mps2 * float(s[i])
                limit = max(limit, math.sqrt(max(reachable_sq, 0.0)))
            point.longitudinal_velocity_mps = min(point.longitudinal_velocity_mps, limit)
            point.heading_rate_rps = point.longitudinal_velocity_mps * float(curvature[i])
        return out

    def apply_steering_rate_limit(
        self, points: TrajectoryPoints, use_resampling: bool = True
    ) -> TrajectoryPoints:
        """Cap speed so the bicycle-model steering angle changes no faster than allowed."""
        if len(points) < 3:
            return copy_points(points)

        p = self.params
        out = self._resample_fixed(points) if use_resampling else copy_points(points)
        if len(out) < 3:
            return out

        xy = positions_xy(out)
        steer = np.arctan(p.wheel_base_m * menger_curvature(xy, p.curvature_epsilon))
        ds = np.maximum(segment_lengths(xy), 1e-6)
        dsteer_ds = np.abs(np.diff(steer)) / ds
        dsteer_ds = np.append(dsteer_ds, dsteer_ds[-1])
        for i, point in enumerate(out):
            if dsteer_ds[i] < 1e-9:
                continue
            limit = max(p.max_steering_angle_rate_rps / dsteer_ds[i], p.min_curve_velocity_mps)
            point.longitudinal_velocity_mps = min(point.longitudinal_velocity_mps, limit)
        return out

    def resample_trajectory(
        self,
        points: TrajectoryPoints,
        v0: float,
        current_pose: Pose,
        nearest_dist_threshold: float,
        nearest_yaw_threshold: float,
    ) -> TrajectoryPoints:
        """Resample at a spacing proportional to ego speed, with one sample on the ego projection."""
        if len(points) < 2:
            return copy_points(points)

        p = self.params
        interval = min(
            max(v0 * p.resample_time_s, p.min_resample_interval_m),
            p.max_resample_interval_m,
        )
        s = arc_lengths(points)
        total = float(s[-1])
        if total < 1e-6:
            return copy_points(points)

        nearest = find_first_nearest_index_with_soft_constraints(
            points, current_pose, nearest_dist_threshold, nearest_yaw_threshold
        )
        seg_idx = min(nearest, len(points) - 2)
        offset = calc_longitudinal_offset_to_segment(points, seg_idx, current_pose)
        s_ego = min(max(float(s[seg_idx]) + offset, 0.0), total)

        k_min = -math.floor(s_ego / interval)
        k_max = math.floor((total - s_ego) / interval)
        grid = s_ego + np.arange(k_min, k_max + 1) * interval
        if total - grid[-1] > 1e-3:
            grid = np.append(grid, total)
        logger.debug(
            "resample_trajectory: interval=%.2f m, samples=%d, s_ego=%.2f",
            interval,
            len(grid),
            s_ego,
        )
        return resample_by_arc_length(points, grid)

    def apply(
        self, v0: float, a0: float, points: TrajectoryPoints
    ) -> tuple[bool, TrajectoryPoints]:
        """
        Jerk-limited speed profile bounded by the reference speeds.

        Integrates a Ruckig velocity-interface trajectory along arc length. The
        velocity target at each tick is the lowest reference speed within the
        braking distance ahead, so decelerations start early enough. Output
        speeds are additionally clipped to the reference.

        Returns:
            (success, output). On failure the input is returned unchanged.
        """
        if len(points) < 2:
            return False, copy_points(points)

        p = self.params
        out = copy_points(points)
        s = arc_lengths(out)
        total = float(s[-1])
        v_ref = np.maximum(
            np.array([pt.longitudinal_velocity_mps for pt in out], dtype=np.float64), 0.0
        )
        if total < 1e-6:
            return True, out

        otg = Ruckig(1, p.control_dt_s)
        inp = InputParameter(1)
        outp = OutputParameter(1)
        inp.control_interface = ControlInterface.Velocity
        inp.current_position = [0.0]
        inp.current_velocity = [max(v0, 0.0)]
        inp.current_acceleration = [min(max(a0, p.min_decel_mps2), p.max_accel_mps2)]
        inp.target_acceleration = [0.0]
        inp.max_velocity = [max(float(v_ref.max()), v0, 0.1)]
        inp.max_acceleration = [p.max_accel_mps2]
        inp.min_acceleration = [p.min_decel_mps2]
        inp.max_jerk = [p.max_jerk_mps3]

        samples_s = [0.0]
        samples_v = [max(v0, 0.0)]
        samples_a = [inp.current_acceleration[0]]
        brake = 2.0 * abs(p.min_decel_mps2)

        reached_end = False
        for _ in range(p.max_iterations):
            pos = inp.current_position[0]
            vel = inp.current_velocity[0]
            lookahead = vel * vel / brake + vel * p.control_dt_s
            lo = int(np.searchsorted(s, pos, side="right")) - 1
            hi = int(np.searchsorted(s, pos + lookahead, side="right"))
            lo = min(max(lo, 0), len(s) - 1)
            target = float(v_ref[lo : max(hi, lo + 1)].min())
            inp.target_velocity = [target]

            result = otg.update(inp, outp)
            if result in _RUCKIG_ERRORS:
                logger.warning("Ruckig error during velocity optimization: %s", result)
                return False, copy_points(points)
            outp.pass_to_input(inp)

            samples_s.append(max(inp.current_position[0], samples_s[-1]))
            samples_v.append(max(inp.current_velocity[0], 0.0))
            samples_a.append(inp.current_acceleration[0])
            if samples_s[-1] >= total:
                reached_end = True
                break
            if samples_v[-1] <= _STOP_VELOCITY_MPS and target <= _STOP_VELOCITY_MPS:
                reached_end = True
                break

        if not reached_end:
            logger.warning(
                "Velocity optimization did not converge within %d iterations",
                p.max_iterations,
            )
            return False, copy_points(points)

        s_arr = np.asarray(samples_s)
        v_arr = np.asarray(samples_v)
        a_arr = np.asarray(samples_a)
        stop_s = s_arr[-1]
        for i, pt in enumerate(out):
            if s[i] > stop_s and v_arr[-1] <= _STOP_VELOCITY_MPS:
                pt.longitudinal_velocity_mps = 0.0
                pt.acceleration_mps2 = 0.0
                continue
            v = float(np.interp(s[i], s_arr, v_arr))
            pt.longitudinal_velocity_mps = min(v, float(v_ref[i])) if i > 0 else v
            pt.acceleration_mps2 = float(np.interp(s[i], s_arr, a_arr))

        logger.debug(
            "JerkFilteredSmoother: %d ticks, length=%.2f m, v0=%.2f", len(s_arr) - 1, total, v0
        )
        return True, out
