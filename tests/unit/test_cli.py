"""Tests for the drill-sim CLI."""

import json
from typing import Any

import pytest
from typer.testing import CliRunner

SESSION_YAML = """
engine:
  rng_seed: 42
controls:
  rop: 60
target_depth: 5000
"""


@pytest.fixture
def session_file(tmp_path):
    path = tmp_path / "session.yaml"
    path.write_text(SESSION_YAML)
    return path


class TestCLIBasics:
    @pytest.fixture
    def runner(self) -> CliRunner:
        return CliRunner()

    @pytest.fixture
    def app(self) -> Any:
        from drilling_simulator.cli.main import app

        return app

    def test_help(self, runner: CliRunner, app: Any) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "run" in result.output
        assert "formation" in result.output

    def test_version(self, runner: CliRunner, app: Any) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "Drilling Simulator" in result.output

    def test_run_help(self, runner: CliRunner, app: Any) -> None:
        result = runner.invoke(app, ["run", "--help"])
        assert result.exit_code == 0
        assert "--config" in result.output


class TestRunCommand:
    @pytest.fixture
    def runner(self) -> CliRunner:
        return CliRunner()

    @pytest.fixture
    def app(self) -> Any:
        from drilling_simulator.cli.main import app

        return app

    def test_quiet_run_prints_summary(self, runner: CliRunner, app: Any, session_file) -> None:
        result = runner.invoke(app, ["run", "--config", str(session_file), "--ticks", "50", "--quiet"])
        assert result.exit_code == 0

        summary = json.loads(result.stdout)
        assert summary["ticks"] == 50
        assert summary["scenario"] == "normal"
        assert summary["state"]["rop"] == 60
        assert summary["game_over"] is None
        assert summary["target_reached"] is False

    def test_stream_emits_one_line_per_tick(self, runner: CliRunner, app: Any, session_file) -> None:
        result = runner.invoke(
            app, ["run", "-c", str(session_file), "-t", "10", "--stream", "--quiet"]
        )
        assert result.exit_code == 0

        lines = [json.loads(line) for line in result.stdout.strip().splitlines()]
        assert [line["tick"] for line in lines] == list(range(1, 11))
        assert "pit_level" in lines[0]

    def test_scenario_override(self, runner: CliRunner, app: Any, session_file) -> None:
        result = runner.invoke(
            app, ["run", "-c", str(session_file), "-t", "5", "--scenario", "kick", "-q"]
        )
        assert result.exit_code == 0
        assert json.loads(result.stdout)["scenario"] == "kick"

    def test_unknown_scenario(self, runner: CliRunner, app: Any, session_file) -> None:
        result = runner.invoke(app, ["run", "-c", str(session_file), "--scenario", "earthquake"])
        assert result.exit_code == 1

    def test_invalid_config(self, runner: CliRunner, app: Any, tmp_path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("engine:\n  speed: -1\n")
        result = runner.invoke(app, ["run", "-c", str(path), "-q"])
        assert result.exit_code == 1

    def test_game_over_reported(self, runner: CliRunner, app: Any, tmp_path) -> None:
        path = tmp_path / "overuse.yaml"
        path.write_text(
            """
engine:
  rng_seed: 1
formation:
  - name: Hard Sand
    top_depth: 0
    thickness: 10000
    pore_pressure: 9.0
    fracture_pressure: 25.0
    permeability: 0.1
    lithology: sandstone
controls:
  pump_rate: 900
"""
        )
        result = runner.invoke(app, ["run", "-c", str(path), "-t", "2500", "-q"])
        assert result.exit_code == 0

        summary = json.loads(result.stdout)
        assert summary["game_over"]["reason"] == "Pump Failure"
        assert summary["ticks"] < 2500


class TestFormationCommand:
    @pytest.fixture
    def runner(self) -> CliRunner:
        return CliRunner()

    @pytest.fixture
    def app(self) -> Any:
        from drilling_simulator.cli.main import app

        return app

    def test_default_section_json(self, runner: CliRunner, app: Any) -> None:
        result = runner.invoke(app, ["formation", "--json"])
        assert result.exit_code == 0

        data = json.loads(result.stdout)
        assert [layer["name"] for layer in data["layers"]] == [
            "Topsoil",
            "Shale",
            "Reservoir",
            "Overpressured Zone",
        ]
        assert "at_depth" not in data

    def test_depth_query(self, runner: CliRunner, app: Any) -> None:
        result = runner.invoke(app, ["formation", "--reference", "--depth", "3000", "--json"])
        assert result.exit_code == 0

        at_depth = json.loads(result.stdout)["at_depth"]
        assert at_depth["layer"] == "Salt Dome"
        assert at_depth["properties"]["lithology"] == "salt"

    def test_table_output(self, runner: CliRunner, app: Any) -> None:
        result = runner.invoke(app, ["formation", "--depth", "1000"])
        assert result.exit_code == 0
        assert "Shale" in result.output

    def test_config_and_reference_conflict(self, runner: CliRunner, app: Any, session_file) -> None:
        result = runner.invoke(app, ["formation", "-c", str(session_file), "--reference"])
        assert result.exit_code == 1


class TestOutputHelpers:
    def test_compact_json_is_one_line(self, capsys) -> None:
        from drilling_simulator.cli.output import emit_json

        emit_json({"tick": 1, "pit_level": 50.0}, compact=True)
        out = capsys.readouterr().out
        assert out.count("\n") == 1
        assert json.loads(out) == {"tick": 1, "pit_level": 50.0}

    def test_quiet_hides_status_but_not_errors(self, capsys) -> None:
        from drilling_simulator.cli.output import report

        report("info", "loading session", quiet=True)
        report("warn", "pit low", quiet=True)
        report("error", "session failed", quiet=True)
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "loading session" not in captured.err
        assert "pit low" not in captured.err
        assert "session failed" in captured.err
