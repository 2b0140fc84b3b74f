"""Fixed wall-clock resampling of a trajectory."""

import logging

from trajectory_interpolator.config import MIN_TIME_RESAMPLING_INTERVAL_S
from trajectory_interpolator.motion.trajectory_utils import interpolate_point
from trajectory_interpolator.types import TrajectoryPoints
from trajectory_interpolator.utils.geometry import calc_distance2d

logger = logging.getLogger(__name__)


def resample_by_time(points: TrajectoryPoints, dt: float) -> bool:
    """
    Resample the trajectory every ``dt`` seconds by marching along each segment.

    Within a segment the march advances ``velocity * dt`` metres per step, where
    the velocity is that of the segment's start point. Each emitted point is
    interpolated between the segment endpoints and stamped ``dt`` after the
    previous one. Segments the per-step distance already spans are skipped. The
    original last point closes the output.

    Returns:
        False (buffer untouched) if ``dt`` is below 10 ms or there are fewer
        than two points.
    """
    if dt < MIN_TIME_RESAMPLING_INTERVAL_S:
        logger.error(
            "Time resampling interval %.4f s is below the %.2f s minimum",
            dt,
            MIN_TIME_RESAMPLING_INTERVAL_S,
        )
        return False
    if len(points) < 2:
        logger.error("Not enough points in trajectory for time resampling")
        return False

    output: TrajectoryPoints = []
    t = 0.0
    skipped = 0
    for a, b in zip(points, points[1:]):
        seg_len = calc_distance2d(a, b)
        step = a.longitudinal_velocity_mps * dt
        if step <= 0.0 or step >= seg_len:
            skipped += 1
            continue
        k = 0
        while k * step < seg_len:
            p = interpolate_point(a, b, k * step / seg_len)
            p.time_from_start = t
            output.append(p)
            t += dt
            k += 1

    last = points[-1].copy()
    last.time_from_start = t
    output.append(last)
    if len(output) < 2:
        # Every segment was skipped; keep the original endpoints
        first = points[0].copy()
        first.time_from_start = 0.0
        output.insert(0, first)

    logger.debug(
        "resample_by_time: %d -> %d points (dt=%.3f s, %d segments skipped)",
        len(points),
        len(output),
        dt,
        skipped,
    )
    points[:] = output
    return True
