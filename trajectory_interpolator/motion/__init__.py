"""
Trajectory post-processing stages.

This module provides the processing pipeline applied to a planned trajectory
before it is handed to the controller:
- Sanitization (overlapping / wrongly oriented points)
- Velocity shaping (engage speed, speed limit) and velocity smoothing
- Akima spline rebuild at fixed arc-length resolution
- Fixed-interval temporal resampling
- Ego-state stitching and ego history expansion

All stages mutate a ``list[TrajectoryPoint]`` in place.
"""

from trajectory_interpolator.motion.ego import (
    add_ego_state_to_trajectory,
    expand_trajectory_with_ego_history,
)
from trajectory_interpolator.motion.filters import (
    clamp_velocities,
    remove_close_proximity_points,
    remove_invalid_points,
    set_max_velocity,
)
from trajectory_interpolator.motion.pipeline import (
    TrajectoryInterpolator,
    interpolate_trajectory,
    smooth_trajectory_with_elastic_band,
)
from trajectory_interpolator.motion.resample import resample_by_time
from trajectory_interpolator.motion.spline import AkimaCurve, SplineBuilder, apply_spline
from trajectory_interpolator.motion.trajectory_utils import calculate_time_from_start
from trajectory_interpolator.motion.velocity import compute_initial_motion, filter_velocity

__all__ = [
    # Sanitization and shaping
    "remove_close_proximity_points",
    "remove_invalid_points",
    "clamp_velocities",
    "set_max_velocity",
    # Velocity smoothing
    "compute_initial_motion",
    "filter_velocity",
    # Geometry
    "AkimaCurve",
    "SplineBuilder",
    "apply_spline",
    "resample_by_time",
    "calculate_time_from_start",
    # Ego state
    "add_ego_state_to_trajectory",
    "expand_trajectory_with_ego_history",
    # Pipeline
    "interpolate_trajectory",
    "smooth_trajectory_with_elastic_band",
    "TrajectoryInterpolator",
]
