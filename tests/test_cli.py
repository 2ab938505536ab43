"""Tests for the command-line interface."""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from pastshots.cli import main
from pastshots.errors import CaptureError, SetupError
from pastshots.models.run_result import PageResult, RunResult


@pytest.fixture
def runner():
    return CliRunner()


def _result() -> RunResult:
    return RunResult(
        started_at="2026-01-01T00:00:00Z",
        pages=[
            PageResult(name="home", url="http://h/home.html", outcome="created", baseline_path="o/home.png"),
            PageResult(name="about", url="http://h/about.html", outcome="changed",
                       baseline_path="o/about.png", diff_path="o/about_diff_1.png"),
        ],
    )


class TestMain:

    def test_merges_flags_over_config_file(self, runner, tmp_path):
        rc = tmp_path / ".pastshotsrc"
        rc.write_text(json.dumps({"output": "from-file", "serve": "p/*.html", "tolerance": 1.5}))

        with patch("pastshots.cli.Orchestrator") as orch:
            orch.return_value.run.return_value = _result()
            res = runner.invoke(main, [
                "--config", str(rc), "--output", "from-flag",
                "--viewport-size", "640,480", "--create-diff", "--browser", "chrome",
            ])

        assert res.exit_code == 0, res.output
        cfg = orch.call_args.args[0]
        assert cfg.output == "from-flag"
        assert cfg.serve == "p/*.html"
        assert cfg.tolerance == 1.5
        assert cfg.create_diff is True
        assert cfg.browser == "chrome"
        assert cfg.viewport_size.as_dict() == {"width": 640, "height": 480}
        assert cfg.headless is True

    def test_headed_flag(self, runner, tmp_path):
        with patch("pastshots.cli.Orchestrator") as orch:
            orch.return_value.run.return_value = _result()
            res = runner.invoke(main, ["--config", str(tmp_path / "none"), "--serve", "*.html", "--headed"])

        assert res.exit_code == 0, res.output
        assert orch.call_args.args[0].headless is False

    def test_prints_summary(self, runner, tmp_path):
        with patch("pastshots.cli.Orchestrator") as orch:
            orch.return_value.run.return_value = _result()
            res = runner.invoke(main, ["--config", str(tmp_path / "none"), "--serve", "*.html"])

        assert "Capture Summary" in res.output
        assert "about_diff_1.png" in res.output
        assert "1 created" in res.output
        assert "1 changed" in res.output

    def test_capture_error_exits_non_zero(self, runner, tmp_path):
        with patch("pastshots.cli.Orchestrator") as orch:
            orch.return_value.run.side_effect = CaptureError("http://h/home.html", "navigation failed")
            res = runner.invoke(main, ["--config", str(tmp_path / "none"), "--serve", "*.html"])

        assert res.exit_code == 1
        assert "Capture failed" in res.output

    def test_bad_config_file_exits_non_zero(self, runner, tmp_path):
        rc = tmp_path / ".pastshotsrc"
        rc.write_text("{broken")
        with patch("pastshots.cli.Orchestrator") as orch:
            res = runner.invoke(main, ["--config", str(rc)])

        assert res.exit_code == 1
        orch.assert_not_called()

    def test_setup_error_exits_non_zero(self, runner, tmp_path):
        with patch("pastshots.cli.Orchestrator") as orch:
            orch.return_value.run.side_effect = SetupError("No pages match 'x/*.html'")
            res = runner.invoke(main, ["--config", str(tmp_path / "none"), "--serve", "x/*.html"])

        assert res.exit_code == 1

    def test_malformed_viewport_is_usage_error(self, runner):
        res = runner.invoke(main, ["--viewport-size", "wide"])
        assert res.exit_code == 2

    def test_negative_tolerance_is_usage_error(self, runner):
        res = runner.invoke(main, ["--tolerance", "-1"])
        assert res.exit_code == 2
