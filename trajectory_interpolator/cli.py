"""Command-line interface for the trajectory interpolator."""

import argparse
import logging
import sys

import trajectory_interpolator.config as cfg
from trajectory_interpolator.config import TRACE, InterpolatorParams
from trajectory_interpolator.errors import TrajectoryFileError
from trajectory_interpolator.motion.pipeline import interpolate_trajectory
from trajectory_interpolator.protocol.wire import (
    encode_batch_response,
    encode_response,
    params_from_request,
    points_from_msg,
    read_request,
    vehicle_state_from_msg,
    write_bytes,
)
from trajectory_interpolator.smoothers import EBPathSmoother, JerkFilteredSmoother

logger = logging.getLogger("trajectory_interpolator.cli")


def _configure_logging(args: argparse.Namespace) -> None:
    # Precedence:
    #   1) Explicit --log-level
    #   2) Verbose / quiet flags
    #   3) Environment-driven TRACE (TRAJINTERP_TRACE=1 via TRACE_ENABLED)
    #   4) Default WARNING
    if args.log_level:
        if args.log_level == "TRACE":
            log_level = TRACE
            cfg.TRACE_ENABLED = True
        else:
            log_level = getattr(logging, args.log_level)
    elif args.verbose >= 3:
        log_level = TRACE
        cfg.TRACE_ENABLED = True
    elif args.verbose >= 2:
        log_level = logging.DEBUG
    elif args.verbose == 1:
        log_level = logging.INFO
    elif args.quiet:
        log_level = logging.ERROR
    elif cfg.TRACE_ENABLED:
        log_level = TRACE
    else:
        log_level = logging.WARNING

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    third_party_log_level = log_level if log_level >= logging.INFO else logging.INFO
    logging.getLogger("numba").setLevel(third_party_log_level)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Post-process a planned trajectory for a downstream controller"
    )
    parser.add_argument("input", help="Trajectory request JSON file")
    parser.add_argument(
        "-o", "--output", help="Write the response JSON here (default: stdout)"
    )
    parser.add_argument(
        "--resolution", type=float, help="Spline resampling resolution (m)"
    )
    parser.add_argument("--max-speed", type=float, help="Speed limit (m/s)")
    parser.add_argument(
        "--no-spline", action="store_true", help="Disable Akima spline interpolation"
    )
    parser.add_argument(
        "--smooth-velocities",
        action="store_true",
        help="Run the jerk-filtered velocity optimizer",
    )
    parser.add_argument(
        "--elastic-band", action="store_true", help="Run the elastic band path smoother"
    )
    parser.add_argument(
        "--time-resolution",
        type=float,
        help="Resample every N seconds after geometric processing",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity; -v=INFO, -vv=DEBUG, -vvv=TRACE",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Only log errors"
    )
    parser.add_argument(
        "--log-level",
        choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set specific log level",
    )
    return parser


def _resolve_params(
    args: argparse.Namespace, file_params: dict
) -> InterpolatorParams:
    """Environment defaults, then the request's params, then CLI flags."""
    params = params_from_request(file_params, InterpolatorParams.from_env())

    changes: dict = {}
    if args.resolution is not None:
        changes["spline_interpolation_resolution_m"] = args.resolution
    if args.max_speed is not None:
        changes["max_speed_mps"] = args.max_speed
        changes["limit_velocity"] = True
    if args.no_spline:
        changes["use_akima_spline_interpolation"] = False
    if args.smooth_velocities:
        changes["smooth_velocities"] = True
    if args.elastic_band:
        changes["smooth_trajectories"] = True
    if args.time_resolution is not None:
        changes["resample_by_time"] = True
        changes["time_resampling_interval_s"] = args.time_resolution
    return params.replace(**changes) if changes else params


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the trajectory-interpolator command."""
    args = build_parser().parse_args(argv)
    _configure_logging(args)

    try:
        request = read_request(args.input)
        params = _resolve_params(args, request.params)
    except TrajectoryFileError as e:
        logger.error("%s", e)
        return 1

    is_batch = bool(request.trajectories)
    batch = (
        [points_from_msg(msg) for msg in request.trajectories]
        if is_batch
        else [points_from_msg(request.points)]
    )
    vehicle_state = vehicle_state_from_msg(request.vehicle_state)
    logger.info(
        "Processing %d trajectories (%d points) from %s",
        len(batch),
        sum(len(points) for points in batch),
        args.input,
    )

    # One optimizer instance per stage, shared by every trajectory in the batch
    jerk_filtered_smoother = JerkFilteredSmoother() if params.smooth_velocities else None
    eb_path_smoother = EBPathSmoother() if params.smooth_trajectories else None
    success = True
    for index, points in enumerate(batch):
        if not interpolate_trajectory(
            points, vehicle_state, params, jerk_filtered_smoother, eb_path_smoother
        ):
            logger.warning("Trajectory %d aborted with %d points", index, len(points))
            success = False

    data = encode_batch_response(batch, success) if is_batch else encode_response(batch[0], success)
    if args.output:
        try:
            write_bytes(args.output, data)
        except TrajectoryFileError as e:
            logger.error("%s", e)
            return 1
        logger.info("Wrote %d trajectories to %s", len(batch), args.output)
    else:
        sys.stdout.write(data.decode() + "\n")

    return 0 if success else 2


def main_entry():
    """Entry point for the trajectory-interpolator command."""
    raise SystemExit(main())


if __name__ == "__main__":
    main_entry()
