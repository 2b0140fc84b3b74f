"""
Reference elastic band path smoother.

Minimizes a quadratic band energy over planar positions:

    w_s * ||D2 x||^2 + w_r * ||x - x_ref||^2 + w_p * ||x - x_prev||^2

where D2 is the second-difference operator and x_prev the nearest points of the
previous solution. Band endpoints are held fixed. The previous solution is
kept between calls until ``reset_previous_data()``.
"""

import logging

import numpy as np
from numpy.typing import NDArray
from scipy import sparse
from scipy.sparse.linalg import spsolve

from trajectory_interpolator.config import EBParams
from trajectory_interpolator.motion.trajectory_utils import (
    find_nearest_index,
    insert_orientation,
)
from trajectory_interpolator.types import Pose, TrajectoryPoints, copy_points, positions_xy

logger = logging.getLogger(__name__)


class EBPathSmoother:
    """Stateful path smoother satisfying the ``PathSmoother`` contract."""

    def __init__(self, params: EBParams | None = None):
        self.params = params if params is not None else EBParams()
        self._prev_xy: NDArray[np.float64] | None = None

    @property
    def has_previous_data(self) -> bool:
        return self._prev_xy is not None

    def reset_previous_data(self) -> None:
        self._prev_xy = None

    def _previous_anchor(self, xy: NDArray[np.float64]) -> NDArray[np.float64] | None:
        if self._prev_xy is None or len(self._prev_xy) == 0:
            return None
        # Nearest previous-solution point for every band node
        d = np.linalg.norm(xy[:, None, :] - self._prev_xy[None, :, :], axis=2)
        return self._prev_xy[np.argmin(d, axis=1)]

    def smooth_trajectory(
        self, points: TrajectoryPoints, current_pose: Pose
    ) -> TrajectoryPoints:
        """Smooth the band from the point nearest the ego onward.

        Points behind the ego are passed through unchanged.
        """
        out = copy_points(points)
        if len(points) < 3:
            return out

        p = self.params
        start = find_nearest_index(points, current_pose)
        end = min(len(points), start + p.max_points)
        n = end - start
        if n < 3:
            return out

        xy = positions_xy(points[start:end])
        D = sparse.diags(
            [np.ones(n - 2), -2.0 * np.ones(n - 2), np.ones(n - 2)],
            [0, 1, 2],
            shape=(n - 2, n),
        )
        H = p.smooth_weight * (D.T @ D) + p.reference_weight * sparse.identity(n)
        b = p.reference_weight * xy

        anchor = self._previous_anchor(xy)
        if anchor is not None:
            H = H + p.previous_weight * sparse.identity(n)
            b = b + p.previous_weight * anchor

        # Pin both band ends by replacing their rows with identity rows
        H = H.tolil()
        for idx in (0, n - 1):
            H[idx, :] = 0.0
            H[idx, idx] = 1.0
            b[idx] = xy[idx]

        solution = np.asarray(spsolve(H.tocsc(), b), dtype=np.float64).reshape(n, 2)
        if not np.all(np.isfinite(solution)):
            logger.warning("Elastic band solve produced non-finite positions, skipping")
            return out

        for i in range(n):
            out[start + i].pose.x = float(solution[i, 0])
            out[start + i].pose.y = float(solution[i, 1])
        insert_orientation(out, is_driving_forward=True)

        self._prev_xy = solution
        logger.debug("EBPathSmoother: smoothed %d of %d points", n, len(points))
        return out
