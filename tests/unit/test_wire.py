"""Unit tests for the JSON request/response format."""

import msgspec
import pytest

from trajectory_interpolator.config import InterpolatorParams
from trajectory_interpolator.errors import TrajectoryFileError
from trajectory_interpolator.protocol.wire import (
    TrajectoryRequest,
    decode_request,
    decode_response,
    encode_batch_request,
    encode_batch_response,
    encode_request,
    encode_response,
    params_from_request,
    points_from_msg,
    read_request,
    vehicle_state_from_msg,
    write_response,
)

pytestmark = pytest.mark.unit


class TestRequest:
    def test_request_fields_survive_encoding(self, sample_trajectory, make_state):
        """Carry points, ego state and params through a request document."""
        state = make_state(1.0, 2.0, v=3.0, a=0.5)
        data = encode_request(sample_trajectory, state, {"max_speed_mps": 4.0})

        request = decode_request(data)

        assert isinstance(request, TrajectoryRequest)
        assert request.params == {"max_speed_mps": 4.0}
        assert request.trajectories == []
        points = points_from_msg(request.points)
        assert len(points) == 10
        assert points[3].pose == sample_trajectory[3].pose
        assert points[3].acceleration_mps2 == pytest.approx(0.1)
        assert vehicle_state_from_msg(request.vehicle_state) == state

    def test_minimal_document_uses_defaults(self):
        """Fill omitted fields with defaults."""
        request = decode_request(b'{"points": [{"pose": {"x": 1.5}}]}')

        assert request.params == {}
        assert request.vehicle_state.velocity_mps == 0.0
        points = points_from_msg(request.points)
        assert points[0].pose.x == 1.5
        assert points[0].pose.qw == 1.0

    def test_batch_request(self, make_line, make_state):
        """Carry several candidate trajectories in one request."""
        data = encode_batch_request([make_line(3), make_line(5)], make_state())

        request = decode_request(data)

        assert request.points == []
        assert [len(t) for t in request.trajectories] == [3, 5]
        assert points_from_msg(request.trajectories[1])[4].pose.x == 4.0

    @pytest.mark.parametrize(
        "payload",
        [
            b"not json",
            b"{}",
            b'{"points": []}',
            b'{"trajectories": []}',
            b'{"points": 3}',
            b'{"points": [{"pose": {"x": "one"}}]}',
            b'{"points": [{}], "trajectories": [[{}]]}',
        ],
    )
    def test_malformed_request_raises(self, payload):
        """Raise TrajectoryFileError for documents that are not valid requests."""
        with pytest.raises(TrajectoryFileError):
            decode_request(payload)

    def test_read_missing_file(self, tmp_path):
        """Raise TrajectoryFileError for a missing file."""
        with pytest.raises(TrajectoryFileError):
            read_request(tmp_path / "missing.json")


class TestParamsFromRequest:
    def test_overrides_base(self):
        """Apply request values on top of the base params."""
        base = InterpolatorParams(max_speed_mps=5.0)

        params = params_from_request({"resample_by_time": True}, base)

        assert params.resample_by_time
        assert params.max_speed_mps == 5.0

    def test_int_accepted_for_float(self):
        """Accept an integer for a float field."""
        params = params_from_request({"max_speed_mps": 3})
        assert params.max_speed_mps == 3.0

    def test_empty_overrides_keep_base(self):
        """Return params equal to the base when nothing is overridden."""
        base = InterpolatorParams(nearest_dist_threshold_m=2.0)
        assert params_from_request({}, base) == base

    @pytest.mark.parametrize(
        "overrides",
        [
            {"max_speed_mps": "fast"},
            {"fix_invalid_points": 1},
            {"time_resampling_interval_s": [0.1]},
        ],
    )
    def test_wrong_type_raises(self, overrides):
        """Raise TrajectoryFileError for values of the wrong type."""
        with pytest.raises(TrajectoryFileError, match="Invalid params"):
            params_from_request(overrides)

    def test_unknown_name_raises(self):
        """Raise TrajectoryFileError naming the unknown params."""
        with pytest.raises(TrajectoryFileError, match="bogus"):
            params_from_request({"bogus": 1, "max_speed_mps": 2.0})


class TestResponse:
    def test_response_document(self, sample_trajectory):
        """Encode a plain JSON response that decodes back to the points."""
        data = encode_response(sample_trajectory, success=False)

        # Plain JSON for external consumers
        raw = msgspec.json.decode(data)
        assert raw["success"] is False
        assert len(raw["points"]) == 10

        response = decode_response(data)
        assert not response.success
        assert points_from_msg(response.points)[9].pose.x == 9.0

    def test_batch_response_document(self, make_line):
        """Encode one trajectory per candidate in a batch response."""
        data = encode_batch_response([make_line(2), make_line(4)])

        raw = msgspec.json.decode(data)
        assert raw["success"] is True
        assert [len(t) for t in raw["trajectories"]] == [2, 4]

    def test_write_response(self, tmp_path, sample_trajectory):
        """Write a response document to disk."""
        path = tmp_path / "out.json"
        write_response(path, sample_trajectory)
        assert decode_response(path.read_bytes()).success

    def test_write_to_missing_directory(self, tmp_path, sample_trajectory):
        """Raise TrajectoryFileError when the target directory is missing."""
        with pytest.raises(TrajectoryFileError):
            write_response(tmp_path / "nope" / "out.json", sample_trajectory)
