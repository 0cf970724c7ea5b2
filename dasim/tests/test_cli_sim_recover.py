from __future__ import annotations

import json
from pathlib import Path

import pytest

from dasim.cli import sim_recover

SMALL = [
    "--initial-size", "2",
    "--max-size", "4",
    "--iterations", "10",
    "--samples-per-iteration", "4",
    "--lights-at-16", "0",
    "--initial-lights", "1",
    "--size-iter-factor", "1",
    "--target-probability", "50%",
    "--log-format", "json",
    "--log-level", "WARNING",
]


def test_json_report(capsys):
    rc = sim_recover.main(SMALL + ["--json"])
    assert rc == 0
    out = json.loads(capsys.readouterr().out)
    assert out["target_probability"] == pytest.approx(0.5)
    assert out["seed"] == 1
    assert [s["size"] for s in out["sizes"]] == [2, 4]
    for s in out["sizes"]:
        assert s["reached"] is True
        assert s["points"][-1]["probability"] >= 0.5
        assert s["lights"] == s["points"][-1]["lights"]


def test_text_report(capsys):
    rc = sim_recover.main(SMALL)
    assert rc == 0
    out = capsys.readouterr().out
    assert "Target probability : 50.00%" in out
    assert "Size     2 (4x4)" in out
    assert "Size     4 (8x8)" in out
    assert "Coverage floor     : k=2 >= 1, k=4 >= " in out


def test_show_config(capsys):
    rc = sim_recover.main(SMALL + ["--show-config"])
    assert rc == 0
    out = capsys.readouterr().out
    assert "initial_size: 2" in out
    assert "target_probability: 0.5" in out


def test_invalid_config_exit_code(capsys):
    rc = sim_recover.main(["--initial-size", "8", "--max-size", "4", "--log-format", "json"])
    assert rc == 2
    assert "initial_size <= max_size" in capsys.readouterr().err


def test_bad_probability_is_usage_error(capsys):
    with pytest.raises(SystemExit) as ei:
        sim_recover.main(["--target-probability", "nope"])
    assert ei.value.code == 2


def test_strict_exhaustion_exit_code(capsys):
    argv = [
        "--initial-size", "2",
        "--max-size", "2",
        "--iterations", "3",
        "--samples-per-iteration", "1",
        "--lights-at-16", "0",
        "--initial-lights", "0",
        "--target-probability", "1.0",
        "--max-rounds", "2",
        "--strict",
        "--json",
        "--log-format", "json",
    ]
    rc = sim_recover.main(argv)
    assert rc == 3
    out = json.loads(capsys.readouterr().out)
    assert out["error"]["code"] == "search_exhausted"


def test_yaml_config_with_flag_override(tmp_path: Path, capsys):
    p = tmp_path / "sim.yaml"
    p.write_text(
        "initial_size: 2\n"
        "max_size: 2\n"
        "samples_per_iteration: 16\n"
        "lights_at_16: 0\n"
        "initial_lights: 1\n"
        "iterations: 4\n"
        "target_probability: 1.0\n",
        encoding="utf-8",
    )
    rc = sim_recover.main(["--config", str(p), "--iterations", "6", "--json", "--log-format", "json"])
    assert rc == 0
    out = json.loads(capsys.readouterr().out)
    point = out["sizes"][0]["points"][0]
    assert point["iterations"] == 6
    assert point["successes"] == 6
    assert out["complete"] is True


def test_env_settings_are_used(monkeypatch, capsys):
    monkeypatch.setenv("DASIM_INITIAL_SIZE", "2")
    monkeypatch.setenv("DASIM_MAX_SIZE", "2")
    monkeypatch.setenv("DASIM_SEED", "99")
    rc = sim_recover.main(["--show-config", "--log-format", "json"])
    assert rc == 0
    out = capsys.readouterr().out
    assert "max_size: 2" in out
    assert "seed: 99" in out


@pytest.mark.parametrize("value", ["", "[0.5]", "2.9"])
def test_yaml_bad_values_exit_code(tmp_path: Path, capsys, value):
    key = "max_rounds" if value == "2.9" else "target_probability"
    p = tmp_path / "sim.yaml"
    p.write_text(f"{key}: {value}\n", encoding="utf-8")
    rc = sim_recover.main(["--config", str(p), "--show-config", "--log-format", "json"])
    assert rc == 2
    assert f"for {key}" in capsys.readouterr().err


@pytest.mark.parametrize("value", ["", "   "])
def test_empty_probability_flag_is_usage_error(capsys, value):
    with pytest.raises(SystemExit) as ei:
        sim_recover.main(["--target-probability", value, "--show-config"])
    assert ei.value.code == 2
    assert "must not be empty" in capsys.readouterr().err
