"""Unit tests for fixed-interval temporal resampling."""

import logging

import numpy as np
import pytest

from trajectory_interpolator.motion.resample import resample_by_time

pytestmark = pytest.mark.unit


class TestResampleByTime:
    def test_uniform_time_steps(self, make_line):
        """Emit points at uniform time steps along a constant-speed line."""
        points = make_line(10, v=1.0)

        assert resample_by_time(points, 0.25)

        # Four steps per 1 m segment plus the closing end point
        assert len(points) == 37
        times = np.array([p.time_from_start for p in points])
        assert times[0] == 0.0
        assert np.allclose(np.diff(times), 0.25)
        assert points[-1].pose.x == pytest.approx(9.0)

    def test_positions_follow_speed(self, make_line):
        """Space samples by speed times interval."""
        points = make_line(3, v=2.0)
        assert resample_by_time(points, 0.1)
        xs = np.array([p.pose.x for p in points[:-1]])
        assert np.allclose(np.diff(xs)[:4], 0.2)

    def test_times_non_decreasing(self, sample_trajectory):
        """Produce non-decreasing times on a diagonal path."""
        assert resample_by_time(sample_trajectory, 0.1)
        times = np.array([p.time_from_start for p in sample_trajectory])
        assert np.all(np.diff(times) >= 0.0)

    def test_interval_below_minimum_rejected(self, make_line, caplog):
        """Reject intervals below the minimum."""
        points = make_line(10)
        with caplog.at_level(logging.ERROR):
            assert not resample_by_time(points, 0.005)
        assert len(points) == 10
        assert "below" in caplog.text

    def test_too_few_points(self, make_line):
        """Reject a single-point trajectory."""
        points = make_line(1)
        assert not resample_by_time(points, 0.1)
        assert len(points) == 1

    def test_spanned_segments_keep_end_points(self, make_line):
        """Keep the end points when every segment is skipped."""
        # 1 m/s for 2 s covers every 1 m segment in one step
        points = make_line(5, v=1.0)

        assert resample_by_time(points, 2.0)

        assert len(points) == 2
        assert points[0].pose.x == 0.0
        assert points[-1].pose.x == 4.0

    def test_stationary_segments_skipped(self, make_line):
        """Skip segments with zero speed."""
        points = make_line(4, v=0.0)
        assert resample_by_time(points, 0.1)
        assert len(points) == 2
