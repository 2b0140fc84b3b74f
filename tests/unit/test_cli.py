"""Unit tests for the trajectory-interpolator command."""

import json

import pytest

from trajectory_interpolator.cli import build_parser, main
from trajectory_interpolator.protocol.wire import (
    decode_response,
    encode_batch_request,
    encode_request,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def request_file(tmp_path, sample_trajectory, make_state):
    path = tmp_path / "request.json"
    path.write_bytes(encode_request(sample_trajectory, make_state()))
    return path


class TestMain:
    def test_writes_response_file(self, request_file, tmp_path):
        """Write a successful response file with the processed points."""
        out = tmp_path / "response.json"

        assert main([str(request_file), "-o", str(out), "--no-spline", "-q"]) == 0

        response = decode_response(out.read_bytes())
        assert response.success
        assert len(response.points) == 10

    def test_writes_to_stdout(self, request_file, capsys):
        """Print the response document when no output file is given."""
        assert main([str(request_file), "--resolution", "1.0", "-q"]) == 0
        document = json.loads(capsys.readouterr().out)
        assert document["success"] is True
        assert len(document["points"]) >= 2

    def test_max_speed_flag(self, tmp_path, make_line, make_state):
        """Cap output velocities with --max-speed."""
        request = tmp_path / "fast.json"
        request.write_bytes(encode_request(make_line(10, v=20.0), make_state()))
        out = tmp_path / "response.json"

        assert main([str(request), "-o", str(out), "--max-speed", "3.0", "-q"]) == 0

        points = decode_response(out.read_bytes()).points
        assert max(p.longitudinal_velocity_mps for p in points) <= 3.0

    def test_params_from_request(self, tmp_path, make_line, make_state):
        """Apply params carried in the request document."""
        request = tmp_path / "params.json"
        request.write_bytes(
            encode_request(
                make_line(10, v=1.0),
                make_state(),
                {"resample_by_time": True, "time_resampling_interval_s": 0.1},
            )
        )
        out = tmp_path / "response.json"

        assert main([str(request), "-o", str(out), "-q"]) == 0

        assert len(decode_response(out.read_bytes()).points) > 10

    def test_unknown_param_fails(self, tmp_path, sample_trajectory, make_state):
        """Exit 1 on a param name the interpolator does not know."""
        request = tmp_path / "bad.json"
        request.write_bytes(encode_request(sample_trajectory, make_state(), {"bogus": 1}))
        assert main([str(request), "-q"]) == 1

    @pytest.mark.parametrize(
        "params",
        [
            {"max_speed_mps": "fast"},
            {"resample_by_time": "yes"},
            {"spline_interpolation_resolution_m": None},
        ],
    )
    def test_wrongly_typed_param_fails(self, tmp_path, sample_trajectory, make_state, params):
        """Exit 1 on a param value of the wrong type."""
        request = tmp_path / "bad.json"
        request.write_bytes(encode_request(sample_trajectory, make_state(), params))
        out = tmp_path / "response.json"

        assert main([str(request), "-o", str(out), "-q"]) == 1
        assert not out.exists()

    def test_missing_input_fails(self, tmp_path):
        """Exit 1 when the request file does not exist."""
        assert main([str(tmp_path / "missing.json"), "-q"]) == 1

    def test_aborted_pipeline_exit_code(self, tmp_path, make_line, make_state):
        """Exit 2 and report failure when the pipeline aborts."""
        request = tmp_path / "short.json"
        request.write_bytes(encode_request(make_line(1), make_state()))
        out = tmp_path / "response.json"

        assert main([str(request), "-o", str(out), "-q"]) == 2
        assert not decode_response(out.read_bytes()).success


class TestBatch:
    def test_batch_request_returns_trajectories(self, tmp_path, make_line, make_state):
        """Answer a batch request with one trajectory per candidate."""
        request = tmp_path / "batch.json"
        request.write_bytes(
            encode_batch_request([make_line(10), make_line(6), make_line(8)], make_state())
        )
        out = tmp_path / "response.json"

        assert main([str(request), "-o", str(out), "--no-spline", "-q"]) == 0

        response = decode_response(out.read_bytes())
        assert response.success
        assert response.points == []
        assert [len(t) for t in response.trajectories] == [10, 6, 8]

    def test_batch_to_stdout(self, tmp_path, make_line, make_state, capsys):
        """Print a batch response document when no output file is given."""
        request = tmp_path / "batch.json"
        request.write_bytes(encode_batch_request([make_line(10), make_line(10)], make_state()))

        assert main([str(request), "-q"]) == 0

        document = json.loads(capsys.readouterr().out)
        assert len(document["trajectories"]) == 2

    def test_one_aborted_candidate_fails_batch(self, tmp_path, make_line, make_state):
        """Exit 2 when any candidate aborts but still write every trajectory."""
        request = tmp_path / "batch.json"
        request.write_bytes(encode_batch_request([make_line(10), make_line(1)], make_state()))
        out = tmp_path / "response.json"

        assert main([str(request), "-o", str(out), "-q"]) == 2

        response = decode_response(out.read_bytes())
        assert not response.success
        assert len(response.trajectories) == 2
        assert len(response.trajectories[1]) == 1


class TestParser:
    def test_verbosity_flags(self):
        """Count repeated -v flags."""
        args = build_parser().parse_args(["in.json", "-vv"])
        assert args.verbose == 2
        assert not args.quiet

    def test_log_level_choices(self):
        """Reject log levels outside the known set."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(["in.json", "--log-level", "LOUD"])
