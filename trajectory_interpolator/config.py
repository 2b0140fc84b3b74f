"""
Central configuration for trajectory interpolator tunables and shared constants.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass

TRACE: int = 5
logging.addLevelName(TRACE, "TRACE")
# Add Logger.trace if missing
if not hasattr(logging.Logger, "trace"):

    def _trace(self, msg, *args, **kwargs):
        if self.isEnabledFor(TRACE):
            self._log(TRACE, msg, args, **kwargs)

    logging.Logger.trace = _trace  # type: ignore[attr-defined]
    logging.TRACE = TRACE  # type: ignore[attr-defined]

TRACE_ENABLED = str(os.getenv("TRAJINTERP_TRACE", "0")).lower() in (
    "1",
    "true",
    "yes",
    "on",
)

logger = logging.getLogger(__name__)

# Geometric tolerances (m)
CLOSE_POINT_EPSILON_M: float = 1e-2  # Points closer than this are duplicates
ENDPOINT_EPSILON_M: float = 1e-2  # Spline endpoint pinning tolerance

# Temporal resampling lower bound (s)
MIN_TIME_RESAMPLING_INTERVAL_S: float = 0.01

# Velocity floor used when converting distance to elapsed time (m/s)
MIN_TIME_VELOCITY_MPS: float = 1e-3


def _env_bool_optional(name: str) -> bool | None:
    raw = os.getenv(name)
    if raw is None:
        return None
    s = raw.strip().lower()
    if s in ("1", "true", "yes", "on"):
        return True
    if s in ("0", "false", "no", "off"):
        return False
    return None


def _env_bool(name: str, default: bool) -> bool:
    value = _env_bool_optional(name)
    return default if value is None else value


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r, using %s", name, raw, default)
        return default


@dataclass(frozen=True, slots=True)
class InterpolatorParams:
    """Per-invocation pipeline configuration.

    Distances in m, speeds in m/s, accelerations in m/s², angles in rad.
    """

    spline_interpolation_resolution_m: float = 0.5
    nearest_dist_threshold_m: float = 1.5
    nearest_yaw_threshold_rad: float = 1.0472  # 60 deg
    target_pull_out_speed_mps: float = 1.0
    target_pull_out_acc_mps2: float = 1.0
    max_speed_mps: float = 8.33
    backward_path_extension_m: float = 5.0
    time_resampling_interval_s: float = 0.1
    # Feature toggles
    fix_invalid_points: bool = True
    limit_velocity: bool = True
    smooth_velocities: bool = False
    use_akima_spline_interpolation: bool = True
    smooth_trajectories: bool = False
    resample_by_time: bool = False
    extend_trajectory_backward: bool = False

    @classmethod
    def from_env(cls) -> InterpolatorParams:
        """Build params from TRAJINTERP_* environment variables over the defaults."""
        defaults = cls()
        values: dict[str, float | bool] = {}
        for f in dataclasses.fields(cls):
            env_name = f"TRAJINTERP_{f.name.upper()}"
            current = getattr(defaults, f.name)
            if isinstance(current, bool):
                values[f.name] = _env_bool(env_name, current)
            else:
                values[f.name] = _env_float(env_name, current)
        return cls(**values)  # type: ignore[arg-type]

    def replace(self, **changes) -> InterpolatorParams:
        """Return a copy with the given fields changed."""
        return dataclasses.replace(self, **changes)


@dataclass(frozen=True, slots=True)
class JerkFilteredSmootherParams:
    """Limits for the reference velocity optimizer."""

    max_lateral_accel_mps2: float = 1.0
    min_curve_velocity_mps: float = 2.74
    curvature_epsilon: float = 1e-6
    wheel_base_m: float = 2.79
    max_steering_angle_rate_rps: float = 0.69  # ~40 deg/s
    resample_interval_m: float = 1.0
    resample_time_s: float = 0.2  # Ego-speed dependent spacing = speed * time
    min_resample_interval_m: float = 0.5
    max_resample_interval_m: float = 4.0
    max_accel_mps2: float = 1.0
    min_decel_mps2: float = -0.5
    max_jerk_mps3: float = 1.0
    control_dt_s: float = 0.02
    max_iterations: int = 200_000


@dataclass(frozen=True, slots=True)
class EBParams:
    """Weights for the reference elastic band path smoother."""

    smooth_weight: float = 1.0
    reference_weight: float = 0.1
    previous_weight: float = 0.05
    max_points: int = 500
