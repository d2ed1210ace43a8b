"""Tests for the command-line entry point."""
import json

import pytest

from descent_sim import cli


def test_parse_args_defaults():
    args = cli.parse_args([])
    assert args.world == "moon"
    assert args.vehicle == "default"
    assert args.mode == "land"
    assert args.approach == "stop_drop"
    assert args.seed is None
    assert args.sweep == 0
    assert not args.quiet


def test_parse_args_rejects_unknown_world():
    with pytest.raises(SystemExit):
        cli.parse_args(["--world", "venus"])


def test_main_writes_json_and_csv(tmp_path):
    json_path = tmp_path / "report.json"
    csv_path = tmp_path / "telemetry.csv"
    code = cli.main(["--world", "moon", "--seed", "5", "--max-time", "1.5", "--quiet",
                     "--json", str(json_path), "--csv", str(csv_path)])
    assert code == 0

    data = json.loads(json_path.read_text())
    assert data['incomplete'] is True
    assert data['outcome'] is None
    assert data['seed'] == 5.0
    assert data['initial']['y'] == 800.0
    assert csv_path.read_text().startswith("t,x,y,vx,vy,rotation")


def test_main_world_file(tmp_path):
    world_file = tmp_path / "world.json"
    world_file.write_text(json.dumps({
        "id": "flatland",
        "physics": {"gravity": 10.0, "maxThrust": 40.0, "orbitalAltitude": 400.0},
    }))
    json_path = tmp_path / "report.json"
    code = cli.main(["--world-file", str(world_file), "--seed", "1", "--max-time", "0.5",
                     "--quiet", "--json", str(json_path)])
    assert code == 0
    assert json.loads(json_path.read_text())['initial']['y'] == 400.0


def test_main_invalid_profile_exits(tmp_path):
    world_file = tmp_path / "bad.json"
    world_file.write_text(json.dumps({"physics": {"gravity": -5.0}}))
    with pytest.raises(SystemExit) as exc:
        cli.main(["--world-file", str(world_file), "--quiet"])
    assert exc.value.code == 1


def test_main_sweep(capsys):
    code = cli.main(["--sweep", "2", "--max-time", "0.5", "--quiet"])
    assert code == 0
    assert "Seed sweep" in capsys.readouterr().out
