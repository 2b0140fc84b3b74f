"""
Trajectory post-processing pipeline.

Pipeline:
  1. Remove overlapping and wrongly-oriented points
  2. Clamp to the engage (pull-out) speed while the ego is slower than it
  3. Cap at the speed limit
  4. Smooth the velocity profile with the velocity optimizer
  5. Rebuild the geometry from an Akima spline at fixed resolution
  6. Smooth the geometry with the elastic band (solver state reset after use)
  7. Optionally resample at a fixed time interval
  8. Recompute time-from-start from the ego position

Each stage can be switched off in ``InterpolatorParams``. The pipeline aborts
(buffer left as-is) whenever fewer than two points remain after sanitization
or velocity smoothing.
"""

from __future__ import annotations

import logging

from trajectory_interpolator.config import InterpolatorParams
from trajectory_interpolator.motion.ego import (
    add_ego_state_to_trajectory,
    expand_trajectory_with_ego_history,
)
from trajectory_interpolator.motion.filters import (
    clamp_velocities,
    remove_invalid_points,
    set_max_velocity,
)
from trajectory_interpolator.motion.resample import resample_by_time
from trajectory_interpolator.motion.spline import apply_spline
from trajectory_interpolator.motion.trajectory_utils import calculate_time_from_start
from trajectory_interpolator.motion.velocity import compute_initial_motion, filter_velocity
from trajectory_interpolator.smoothers.base import PathSmoother, VelocityOptimizer
from trajectory_interpolator.types import TrajectoryPoints, VehicleState, copy_points

logger = logging.getLogger(__name__)


def smooth_trajectory_with_elastic_band(
    points: TrajectoryPoints,
    vehicle_state: VehicleState,
    eb_path_smoother: PathSmoother | None,
) -> bool:
    """Smooth the path geometry, then clear the smoother's previous solution."""
    if eb_path_smoother is None:
        logger.error("Elastic band path smoother is not initialized")
        return False
    points[:] = eb_path_smoother.smooth_trajectory(points, vehicle_state.pose)
    eb_path_smoother.reset_previous_data()
    return True


def interpolate_trajectory(
    points: TrajectoryPoints,
    vehicle_state: VehicleState,
    params: InterpolatorParams,
    jerk_filtered_smoother: VelocityOptimizer | None = None,
    eb_path_smoother: PathSmoother | None = None,
) -> bool:
    """
    Run the full post-processing pipeline on ``points`` in place.

    Args:
        points: Trajectory buffer, mutated in place
        vehicle_state: Current ego pose/speed/acceleration (read only)
        params: Pipeline configuration
        jerk_filtered_smoother: Velocity optimizer, required if smooth_velocities
        eb_path_smoother: Path smoother, required if smooth_trajectories

    Returns:
        True if the pipeline ran to completion, False on an early abort.
    """
    if params.fix_invalid_points:
        remove_invalid_points(points)

    if len(points) < 2:
        logger.error("Not enough points in trajectory after overlap points removal")
        return False

    initial_motion = compute_initial_motion(vehicle_state, params)

    # Set engage speed and acceleration
    if vehicle_state.velocity_mps < params.target_pull_out_speed_mps:
        clamp_velocities(points, initial_motion.speed_mps, initial_motion.acc_mps2)
    # Limit ego speed
    if params.limit_velocity:
        set_max_velocity(points, params.max_speed_mps)

    if params.smooth_velocities:
        filter_velocity(points, initial_motion, params, jerk_filtered_smoother, vehicle_state)
        if len(points) < 2:
            logger.error("Not enough points in trajectory after velocity smoothing")
            return False

    if params.use_akima_spline_interpolation:
        apply_spline(points, params)

    if params.smooth_trajectories:
        smooth_trajectory_with_elastic_band(points, vehicle_state, eb_path_smoother)

    if params.resample_by_time:
        resample_by_time(points, params.time_resampling_interval_s)

    calculate_time_from_start(points, vehicle_state.pose)
    logger.trace(  # type: ignore[attr-defined]
        "interpolate_trajectory: %d output points", len(points)
    )
    return True


class TrajectoryInterpolator:
    """
    Processing stream for one planner output.

    Owns the pipeline parameters, the optimizer instances and the ego history of
    a single stream. Not thread-safe: callers serialize ``process`` calls or use
    one instance per stream.
    """

    def __init__(
        self,
        params: InterpolatorParams | None = None,
        jerk_filtered_smoother: VelocityOptimizer | None = None,
        eb_path_smoother: PathSmoother | None = None,
    ):
        self.params = params if params is not None else InterpolatorParams()
        self.jerk_filtered_smoother = jerk_filtered_smoother
        self.eb_path_smoother = eb_path_smoother
        self._ego_history: TrajectoryPoints = []

    @property
    def ego_history(self) -> TrajectoryPoints:
        return copy_points(self._ego_history)

    def update_params(self, **changes) -> None:
        """Replace selected parameters; unknown names raise TypeError."""
        self.params = self.params.replace(**changes)
        logger.info("Updated parameters: %s", ", ".join(sorted(changes)))

    def reset(self) -> None:
        """Forget the ego history and any smoother state."""
        self._ego_history.clear()
        if self.eb_path_smoother is not None:
            self.eb_path_smoother.reset_previous_data()

    def _stitch_ego_history(self, vehicle_state: VehicleState) -> TrajectoryPoints | None:
        if not self.params.extend_trajectory_backward:
            return None
        add_ego_state_to_trajectory(self._ego_history, vehicle_state, self.params)
        return copy_points(self._ego_history)

    def _process_one(
        self,
        points: TrajectoryPoints,
        vehicle_state: VehicleState,
        ego_history: TrajectoryPoints | None,
    ) -> TrajectoryPoints:
        output = copy_points(points)
        if ego_history is not None:
            expand_trajectory_with_ego_history(output, copy_points(ego_history))

        if not interpolate_trajectory(
            output,
            vehicle_state,
            self.params,
            self.jerk_filtered_smoother,
            self.eb_path_smoother,
        ):
            logger.warning("Trajectory processing aborted with %d points", len(output))
        return output

    def process(
        self, points: TrajectoryPoints, vehicle_state: VehicleState
    ) -> TrajectoryPoints:
        """Return a processed copy of ``points``; the input list is not modified.

        If the pipeline aborts, the partially processed copy is returned as-is.
        """
        return self._process_one(points, vehicle_state, self._stitch_ego_history(vehicle_state))

    def process_many(
        self, trajectories: list[TrajectoryPoints], vehicle_state: VehicleState
    ) -> list[TrajectoryPoints]:
        """Process a batch of candidate trajectories planned from the same ego state.

        The ego history advances once per batch and every candidate is extended
        with the same history. Outputs keep the input order.
        """
        ego_history = self._stitch_ego_history(vehicle_state)
        outputs = [
            self._process_one(points, vehicle_state, ego_history) for points in trajectories
        ]
        logger.debug("Processed batch of %d trajectories", len(outputs))
        return outputs
