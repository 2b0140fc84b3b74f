"""Unit tests for initial motion and velocity smoothing orchestration."""

import logging

import pytest

from trajectory_interpolator.config import InterpolatorParams
from trajectory_interpolator.motion.velocity import compute_initial_motion, filter_velocity
from trajectory_interpolator.smoothers.base import VelocityOptimizer
from trajectory_interpolator.types import InitialMotion

pytestmark = pytest.mark.unit


class RecordingOptimizer:
    """Velocity optimizer stand-in that records the calls it receives."""

    def __init__(self, succeed: bool = True, keep_after_resample: int | None = None):
        self.calls: list[tuple] = []
        self.succeed = succeed
        self.keep_after_resample = keep_after_resample

    def apply_lateral_acceleration_filter(
        self, points, v0, a0, enable_smooth_limit, use_resampling=True
    ):
        self.calls.append(("lateral", v0, a0, enable_smooth_limit, use_resampling))
        return [p.copy() for p in points]

    def apply_steering_rate_limit(self, points, use_resampling=True):
        self.calls.append(("steering", use_resampling))
        return [p.copy() for p in points]

    def resample_trajectory(self, points, v0, current_pose, dist_threshold, yaw_threshold):
        self.calls.append(("resample", v0, dist_threshold, yaw_threshold))
        out = [p.copy() for p in points]
        if self.keep_after_resample is not None:
            out = out[: self.keep_after_resample]
        return out

    def apply(self, v0, a0, points):
        self.calls.append(("apply", v0, a0, len(points)))
        if not self.succeed:
            return False, []
        out = [p.copy() for p in points]
        for p in out:
            p.longitudinal_velocity_mps = 0.5
        return True, out


class TestComputeInitialMotion:
    def test_slow_ego_uses_pull_out_targets(self, make_state):
        """Use pull-out targets below pull-out speed."""
        params = InterpolatorParams(target_pull_out_speed_mps=1.0, target_pull_out_acc_mps2=0.8)
        motion = compute_initial_motion(make_state(v=0.3, a=0.1), params)
        assert motion == InitialMotion(1.0, 0.8)

    def test_fast_ego_uses_own_motion(self, make_state):
        """Use the ego's own motion above pull-out speed."""
        params = InterpolatorParams(target_pull_out_speed_mps=1.0, target_pull_out_acc_mps2=0.8)
        motion = compute_initial_motion(make_state(v=3.0, a=-0.2), params)
        assert motion == InitialMotion(3.0, -0.2)

    def test_equal_speed_uses_pull_out_targets(self, make_state):
        """Use pull-out targets at exactly pull-out speed."""
        params = InterpolatorParams(target_pull_out_speed_mps=1.0, target_pull_out_acc_mps2=0.8)
        assert compute_initial_motion(make_state(v=1.0), params).acc_mps2 == 0.8


class TestFilterVelocity:
    @pytest.fixture
    def params(self) -> InterpolatorParams:
        return InterpolatorParams(nearest_dist_threshold_m=1.5, nearest_yaw_threshold_rad=1.0)

    def test_recording_optimizer_satisfies_protocol(self):
        """Accept the recording stand-in as a VelocityOptimizer."""
        assert isinstance(RecordingOptimizer(), VelocityOptimizer)

    def test_missing_smoother(self, make_line, make_state, params, caplog):
        """Fail and leave points alone without an optimizer."""
        points = make_line(10)
        with caplog.at_level(logging.ERROR):
            ok = filter_velocity(points, InitialMotion(1.0, 0.5), params, None, make_state())
        assert not ok
        assert len(points) == 10
        assert "not initialized" in caplog.text

    def test_call_sequence(self, make_line, make_state, params):
        """Call the optimizer stages in order with the right arguments."""
        points = make_line(10)
        smoother = RecordingOptimizer()

        assert filter_velocity(points, InitialMotion(2.0, 0.5), params, smoother, make_state())

        assert [c[0] for c in smoother.calls] == ["lateral", "steering", "resample", "apply"]
        assert smoother.calls[0] == ("lateral", 2.0, 0.5, True, True)
        assert smoother.calls[1] == ("steering", False)
        assert smoother.calls[2] == ("resample", 2.0, 1.5, 1.0)
        assert all(p.longitudinal_velocity_mps == 0.5 for p in points)

    def test_clips_to_point_nearest_ego(self, make_line, make_state, params):
        """Optimize only from the point nearest the ego."""
        points = make_line(10)
        smoother = RecordingOptimizer()

        filter_velocity(points, InitialMotion(1.0, 0.0), params, smoother, make_state(3.1, 0.0))

        assert smoother.calls[-1] == ("apply", 1.0, 0.0, 7)
        assert points[0].pose.x == 3.0

    def test_failed_optimization_keeps_clipped_points(self, make_line, make_state, params, caplog):
        """Keep clipped points and warn when optimization fails."""
        points = make_line(10, v=4.0)
        smoother = RecordingOptimizer(succeed=False)

        with caplog.at_level(logging.WARNING):
            ok = filter_velocity(points, InitialMotion(1.0, 0.0), params, smoother, make_state(2.0, 0.0))

        assert ok
        assert "Fail to solve optimization." in caplog.text
        assert len(points) == 8
        assert all(p.longitudinal_velocity_mps == 4.0 for p in points)

    def test_too_few_points_after_resampling(self, make_line, make_state, params):
        """Skip optimization when resampling leaves one point."""
        points = make_line(10)
        smoother = RecordingOptimizer(keep_after_resample=1)

        assert filter_velocity(points, InitialMotion(1.0, 0.0), params, smoother, make_state())

        assert len(points) == 1
        assert "apply" not in [c[0] for c in smoother.calls]
