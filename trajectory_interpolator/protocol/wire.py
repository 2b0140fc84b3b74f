"""
File format for trajectory requests and responses.

JSON documents decoded with typed msgspec structs:

- REQUEST:  {"vehicle_state": VehicleStateMsg, "points": [TrajectoryPointMsg, ...],
             "params": {<InterpolatorParams field>: value, ...}}
- BATCH:    same, with "trajectories": [[TrajectoryPointMsg, ...], ...] instead
            of "points"
- RESPONSE: {"points": [...]} or {"trajectories": [[...], ...]}, plus "success": bool

Request params are checked against the InterpolatorParams field types.
"""

import dataclasses
import logging
from pathlib import Path
from typing import Any

import msgspec
import numpy as np

from trajectory_interpolator.config import InterpolatorParams
from trajectory_interpolator.errors import TrajectoryFileError
from trajectory_interpolator.types import (
    Pose,
    TrajectoryPoint,
    TrajectoryPoints,
    VehicleState,
)

logger = logging.getLogger(__name__)


def _enc_hook(obj: object) -> object:
    """Custom encoder hook for numpy types."""
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, (np.integer, np.floating)):
        return obj.item()
    raise NotImplementedError(f"Cannot encode {type(obj)}")


class PoseMsg(msgspec.Struct, frozen=True):
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    qx: float = 0.0
    qy: float = 0.0
    qz: float = 0.0
    qw: float = 1.0


class TrajectoryPointMsg(msgspec.Struct, frozen=True):
    pose: PoseMsg = msgspec.field(default_factory=PoseMsg)
    longitudinal_velocity_mps: float = 0.0
    acceleration_mps2: float = 0.0
    heading_rate_rps: float = 0.0
    time_from_start: float = 0.0


class VehicleStateMsg(msgspec.Struct, frozen=True):
    pose: PoseMsg = msgspec.field(default_factory=PoseMsg)
    velocity_mps: float = 0.0
    acceleration_mps2: float = 0.0


class TrajectoryRequest(msgspec.Struct, frozen=True):
    points: list[TrajectoryPointMsg] = msgspec.field(default_factory=list)
    trajectories: list[list[TrajectoryPointMsg]] = msgspec.field(default_factory=list)
    vehicle_state: VehicleStateMsg = msgspec.field(default_factory=VehicleStateMsg)
    params: dict[str, Any] = msgspec.field(default_factory=dict)


class TrajectoryResponse(msgspec.Struct, frozen=True):
    points: list[TrajectoryPointMsg] = msgspec.field(default_factory=list)
    trajectories: list[list[TrajectoryPointMsg]] = msgspec.field(default_factory=list)
    success: bool = True


# Module-level encoder/decoders (thread-safe, reusable)
_encoder = msgspec.json.Encoder(enc_hook=_enc_hook)
_request_decoder = msgspec.json.Decoder(TrajectoryRequest)
_response_decoder = msgspec.json.Decoder(TrajectoryResponse)


def pose_from_msg(msg: PoseMsg) -> Pose:
    return Pose(msg.x, msg.y, msg.z, msg.qx, msg.qy, msg.qz, msg.qw)


def pose_to_msg(pose: Pose) -> PoseMsg:
    return PoseMsg(pose.x, pose.y, pose.z, pose.qx, pose.qy, pose.qz, pose.qw)


def points_from_msg(msgs: list[TrajectoryPointMsg]) -> TrajectoryPoints:
    return [
        TrajectoryPoint(
            pose=pose_from_msg(m.pose),
            longitudinal_velocity_mps=m.longitudinal_velocity_mps,
            acceleration_mps2=m.acceleration_mps2,
            heading_rate_rps=m.heading_rate_rps,
            time_from_start=m.time_from_start,
        )
        for m in msgs
    ]


def points_to_msg(points: TrajectoryPoints) -> list[TrajectoryPointMsg]:
    return [
        TrajectoryPointMsg(
            pose=pose_to_msg(p.pose),
            longitudinal_velocity_mps=p.longitudinal_velocity_mps,
            acceleration_mps2=p.acceleration_mps2,
            heading_rate_rps=p.heading_rate_rps,
            time_from_start=p.time_from_start,
        )
        for p in points
    ]


def vehicle_state_from_msg(msg: VehicleStateMsg) -> VehicleState:
    return VehicleState(
        pose=pose_from_msg(msg.pose),
        velocity_mps=msg.velocity_mps,
        acceleration_mps2=msg.acceleration_mps2,
    )


def vehicle_state_to_msg(state: VehicleState) -> VehicleStateMsg:
    return VehicleStateMsg(
        pose=pose_to_msg(state.pose),
        velocity_mps=state.velocity_mps,
        acceleration_mps2=state.acceleration_mps2,
    )


def encode_request(
    points: TrajectoryPoints,
    vehicle_state: VehicleState,
    params: dict[str, Any] | None = None,
) -> bytes:
    return _encoder.encode(
        TrajectoryRequest(
            points=points_to_msg(points),
            vehicle_state=vehicle_state_to_msg(vehicle_state),
            params=params or {},
        )
    )


def encode_batch_request(
    trajectories: list[TrajectoryPoints],
    vehicle_state: VehicleState,
    params: dict[str, Any] | None = None,
) -> bytes:
    return _encoder.encode(
        TrajectoryRequest(
            trajectories=[points_to_msg(points) for points in trajectories],
            vehicle_state=vehicle_state_to_msg(vehicle_state),
            params=params or {},
        )
    )


def decode_request(data: bytes) -> TrajectoryRequest:
    """Decode a request document, raising TrajectoryFileError on bad input.

    A request carries either ``points`` (one trajectory) or ``trajectories``
    (a batch of candidates), never both and never neither.
    """
    try:
        request = _request_decoder.decode(data)
    except (msgspec.ValidationError, msgspec.DecodeError) as e:
        raise TrajectoryFileError(f"Invalid trajectory request: {e}") from e
    if request.points and request.trajectories:
        raise TrajectoryFileError("Invalid trajectory request: both points and trajectories given")
    if not request.points and not request.trajectories:
        raise TrajectoryFileError("Invalid trajectory request: no trajectory given")
    return request


def params_from_request(
    overrides: dict[str, Any], base: InterpolatorParams | None = None
) -> InterpolatorParams:
    """Apply request params on top of ``base``, checking names and value types."""
    base = base if base is not None else InterpolatorParams()
    known = {f.name for f in dataclasses.fields(InterpolatorParams)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise TrajectoryFileError(f"Unknown params: {', '.join(unknown)}")
    try:
        return msgspec.convert({**dataclasses.asdict(base), **overrides}, InterpolatorParams)
    except msgspec.ValidationError as e:
        raise TrajectoryFileError(f"Invalid params: {e}") from e


def encode_response(points: TrajectoryPoints, success: bool = True) -> bytes:
    return _encoder.encode(TrajectoryResponse(points=points_to_msg(points), success=success))


def encode_batch_response(trajectories: list[TrajectoryPoints], success: bool = True) -> bytes:
    return _encoder.encode(
        TrajectoryResponse(
            trajectories=[points_to_msg(points) for points in trajectories],
            success=success,
        )
    )


def decode_response(data: bytes) -> TrajectoryResponse:
    try:
        return _response_decoder.decode(data)
    except (msgspec.ValidationError, msgspec.DecodeError) as e:
        raise TrajectoryFileError(f"Invalid trajectory response: {e}") from e


def read_request(path: str | Path) -> TrajectoryRequest:
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise TrajectoryFileError(f"Cannot read {path}: {e}") from e
    logger.debug("Read %d bytes from %s", len(data), path)
    return decode_request(data)


def write_bytes(path: str | Path, data: bytes) -> None:
    try:
        Path(path).write_bytes(data)
    except OSError as e:
        raise TrajectoryFileError(f"Cannot write {path}: {e}") from e


def write_response(path: str | Path, points: TrajectoryPoints, success: bool = True) -> None:
    write_bytes(path, encode_response(points, success))
