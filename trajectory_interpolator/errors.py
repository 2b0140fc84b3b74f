"""Exception types raised outside the best-effort processing pipeline."""


class TrajectoryFileError(Exception):
    """Raised when a trajectory request/response file cannot be read or decoded."""
