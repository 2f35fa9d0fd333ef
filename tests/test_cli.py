"""
Tests for CLI module.
"""

import json
import pytest
import tempfile
from pathlib import Path
from unittest.mock import patch

from poxc.cli.main import calibrate_cmd, main, run_cmd


WELLS_CSV = """plate_id,well_id,sample_label,absorbance,quality_flag
20230601A,A1,Water,0.05,
20230601A,A2,Water,0.05,
20230601A,B1,0uM,0.05,
20230601A,B2,100uM,0.30,
20230601A,B3,200uM,0.55,
20230601A,B4,400uM,1.05,
20230601A,C1,S1,0.34,
20230601A,C2,S1,0.36,
20230601A,C3,S1,0.90,excluded
20230601B,A1,100uM,0.30,
20230601B,A2,200uM,0.55,
20230601B,C1,S2,0.20,
"""

MASSES_CSV = """sample_id,run_date,mass_kg
S1,20230601,0.0025
"""

IDENTITIES_CSV = """sample_id,display_name
S1,North field
"""


@pytest.fixture
def input_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir)
        (path / "wells.csv").write_text(WELLS_CSV)
        (path / "masses.csv").write_text(MASSES_CSV)
        (path / "identities.csv").write_text(IDENTITIES_CSV)
        yield path


def _run_args(input_dir, **overrides):
    class Args:
        wells = str(input_dir / "wells.csv")
        masses = str(input_dir / "masses.csv")
        identities = str(input_dir / "identities.csv")
        config = None
        output_dir = None
        format = "csv"
        workers = 1

    args = Args()
    for key, value in overrides.items():
        setattr(args, key, value)
    return args


def test_run_cmd_missing_wells(input_dir):
    """Test run command with a missing well table."""
    args = _run_args(input_dir, wells="nonexistent.csv")

    with pytest.raises(FileNotFoundError):
        run_cmd(args)


def test_run_cmd_missing_config(input_dir):
    args = _run_args(input_dir, config="nonexistent.yaml")

    with pytest.raises(FileNotFoundError):
        run_cmd(args)


def test_run_cmd_invalid_config(input_dir):
    """Test run command with invalid config."""
    config_path = input_dir / "bad.yaml"
    config_path.write_text("assay:\n  r_squared_threshold: 2.0\n")

    with pytest.raises(ValueError, match="r_squared_threshold"):
        run_cmd(_run_args(input_dir, config=str(config_path)))


def test_run_cmd_prints_summary(input_dir, capsys):
    run_cmd(_run_args(input_dir))

    out = capsys.readouterr().out
    assert "POXC Calibration Summary" in out
    assert "20230601A" in out
    assert "MissingBlankError" in out


def test_run_cmd_writes_tables(input_dir, capsys):
    output_dir = input_dir / "out"
    run_cmd(_run_args(input_dir, output_dir=str(output_dir), format="json"))

    with open(output_dir / "results.json") as f:
        payload = json.load(f)

    assert payload["metadata"]["parameters"]["blank_marker"] == "Water"
    records = payload["data"]
    assert [r["sample_id"] for r in records] == ["S1"]
    assert records[0]["display_name"] == "North field"
    assert records[0]["mean_absorbance"] == pytest.approx(0.30)
    assert (output_dir / "issues.json").exists()
    assert "results:" in capsys.readouterr().out


def test_calibrate_cmd(input_dir, capsys):
    class Args:
        wells = str(input_dir / "wells.csv")
        config = None

    calibrate_cmd(Args())

    out = capsys.readouterr().out
    lines = out.splitlines()
    assert lines[0].startswith("Plate")
    plate_a = next(line for line in lines if line.startswith("20230601A"))
    assert "0.050" in plate_a
    assert "400" in plate_a
    assert any(
        line.startswith("20230601B") and "MissingBlankError" in line for line in lines
    )


def test_main_no_command(capsys):
    """Test main function with no command."""
    with patch("sys.argv", ["poxc"]):
        with pytest.raises(SystemExit) as exc_info:
            main()

    assert exc_info.value.code == 1
    captured = capsys.readouterr()
    assert "run" in captured.out and "calibrate" in captured.out


def test_main_version(capsys):
    """Test version flag."""
    with patch("sys.argv", ["poxc", "--version"]):
        try:
            main()
        except SystemExit:
            pass

    captured = capsys.readouterr()
    assert "0.1.0" in captured.out


def test_main_error_exits(input_dir):
    argv = ["poxc", "run", str(input_dir / "missing.csv"), "--masses", str(input_dir / "masses.csv")]
    with patch("sys.argv", argv):
        with pytest.raises(SystemExit) as exc_info:
            main()
    assert exc_info.value.code == 1


def test_main_run(input_dir, capsys):
    argv = [
        "poxc",
        "--log-level",
        "WARNING",
        "run",
        str(input_dir / "wells.csv"),
        "--masses",
        str(input_dir / "masses.csv"),
        "--workers",
        "2",
    ]
    with patch("sys.argv", argv):
        main()

    assert "Samples computed" in capsys.readouterr().out


def test_main_plate_detail_flag(input_dir):
    argv = ["poxc", "--plate-detail", "calibrate", str(input_dir / "wells.csv")]
    with patch("sys.argv", argv), patch("poxc.cli.main.setup_logging") as mock_setup:
        main()

    mock_setup.assert_called_once_with(level="INFO", plate_detail=True)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
