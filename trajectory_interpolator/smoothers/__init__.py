"""
Velocity and path optimizers used by the pipeline.

The pipeline only depends on the ``VelocityOptimizer`` / ``PathSmoother``
contracts; the concrete smoothers here are reference implementations.
"""

from trajectory_interpolator.smoothers.base import PathSmoother, VelocityOptimizer
from trajectory_interpolator.smoothers.elastic_band import EBPathSmoother
from trajectory_interpolator.smoothers.jerk_filtered import JerkFilteredSmoother

__all__ = [
    "VelocityOptimizer",
    "PathSmoother",
    "JerkFilteredSmoother",
    "EBPathSmoother",
]
