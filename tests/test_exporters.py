"""
Tests for export tools module.

These tests validate:
1. Base Exporter ABC interface
2. CSVExporter functionality
3. JSONExporter functionality
4. Factory function create_exporter
5. Metadata preservation
6. Writing a full pipeline result
"""

import json
import os
import tempfile
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from poxc.assay.pipeline import run_pipeline
from poxc.io.exporters import (
    CSVExporter,
    ExportMetadata,
    Exporter,
    JSONExporter,
    create_exporter,
    export_pipeline_result,
    export_to_csv,
    export_to_json,
)


# --- Test fixtures ---


@pytest.fixture
def results_frame():
    """Small result table with one undefined and one non-finite value."""
    return pd.DataFrame(
        {
            "plate_id": ["20230601A", "20230601A"],
            "sample_id": ["S1", "S2"],
            "display_name": ["North field", None],
            "cv_percent": [3.2, np.nan],
            "poxc_mg_per_kg": [412.5, np.inf],
            "n_replicates": [2, 1],
        }
    )


@pytest.fixture
def temp_path():
    """Create a temporary file path and clean up after test."""
    fd, path = tempfile.mkstemp()
    os.close(fd)
    Path(path).unlink()  # Remove file so we can test creation
    yield path
    # Cleanup
    if Path(path).exists():
        Path(path).unlink()


# --- ExportMetadata tests ---


class TestExportMetadata:
    """Tests for ExportMetadata dataclass."""

    def test_create_metadata(self):
        """Test metadata creation with current timestamp."""
        meta = ExportMetadata.create(
            format="csv",
            source_type="DataFrame",
            parameters={"blank_marker": "Water"},
        )

        assert meta.format == "csv"
        assert meta.source_type == "DataFrame"
        assert meta.parameters == {"blank_marker": "Water"}
        assert "Z" in meta.timestamp  # ISO format with Z suffix
        assert meta.version == "0.1.0"

    def test_metadata_to_dict(self):
        """Test metadata conversion to dictionary."""
        meta = ExportMetadata.create(format="json", source_type="dict")
        d = meta.to_dict()

        assert "timestamp" in d
        assert d["format"] == "json"
        assert d["parameters"] == {}


# --- Exporter ABC tests ---


class TestExporterABC:
    """Tests for Exporter abstract base class."""

    def test_cannot_instantiate_abc(self):
        """Test that Exporter ABC cannot be instantiated directly."""
        with pytest.raises(TypeError):
            Exporter()

    def test_subclass_must_implement_export(self):
        """Test that subclass must implement export method."""

        class IncompleteExporter(Exporter):
            def get_format(self):
                return "test"

        with pytest.raises(TypeError):
            IncompleteExporter()


# --- CSVExporter tests ---


class TestCSVExporter:
    """Tests for CSVExporter."""

    def test_get_format(self):
        assert CSVExporter().get_format() == "csv"

    def test_export_frame(self, results_frame, temp_path):
        """Test exporting a result table to CSV."""
        CSVExporter().export(results_frame, temp_path)

        content = Path(temp_path).read_text()
        assert content.startswith("# POXC Export")
        assert "plate_id,sample_id,display_name" in content

        loaded = pd.read_csv(temp_path, comment="#")
        assert list(loaded["sample_id"]) == ["S1", "S2"]
        assert loaded.loc[0, "poxc_mg_per_kg"] == pytest.approx(412.5)
        assert np.isnan(loaded.loc[1, "cv_percent"])

    def test_selected_columns(self, results_frame, temp_path):
        CSVExporter(columns=["sample_id", "poxc_mg_per_kg"]).export(results_frame, temp_path)
        loaded = pd.read_csv(temp_path, comment="#")
        assert list(loaded.columns) == ["sample_id", "poxc_mg_per_kg"]

    def test_unknown_column(self, results_frame, temp_path):
        with pytest.raises(ValueError, match="Columns not in table"):
            CSVExporter(columns=["mass_lb"]).export(results_frame, temp_path)

    def test_export_dict(self, temp_path):
        """Test exporting generic dictionary."""
        data = {"plate_id": "20230601A", "slope": 400.0, "fit": {"r_squared": 0.999}}
        CSVExporter().export(data, temp_path)

        content = Path(temp_path).read_text()
        assert "slope,400" in content
        assert "fit.r_squared,0.999" in content

    def test_custom_delimiter(self, results_frame, temp_path):
        CSVExporter(delimiter="\t").export(results_frame, temp_path)
        assert "plate_id\tsample_id" in Path(temp_path).read_text()

    def test_no_metadata(self, results_frame, temp_path):
        CSVExporter(include_metadata=False).export(results_frame, temp_path)
        assert not Path(temp_path).read_text().startswith("#")

    def test_no_header(self, results_frame, temp_path):
        CSVExporter(include_header=False, include_metadata=False).export(results_frame, temp_path)
        first_line = Path(temp_path).read_text().splitlines()[0]
        assert first_line.startswith("20230601A,S1")

    def test_with_metadata_parameter(self, results_frame, temp_path):
        CSVExporter().export(results_frame, temp_path, metadata={"wells": "plate.csv"})
        assert "# wells: plate.csv" in Path(temp_path).read_text()


# --- JSONExporter tests ---


class TestJSONExporter:
    """Tests for JSONExporter."""

    def test_get_format(self):
        assert JSONExporter().get_format() == "json"

    def test_export_frame(self, results_frame, temp_path):
        JSONExporter().export(results_frame, temp_path)

        with open(temp_path) as f:
            data = json.load(f)

        assert data["metadata"]["format"] == "json"
        assert data["metadata"]["source_type"] == "DataFrame"
        records = data["data"]
        assert [r["sample_id"] for r in records] == ["S1", "S2"]
        assert records[0]["display_name"] == "North field"
        assert records[0]["n_replicates"] == 2

    def test_nan_handling(self, results_frame, temp_path):
        JSONExporter().export(results_frame, temp_path)
        with open(temp_path) as f:
            record = json.load(f)["data"][1]
        assert record["cv_percent"] == "NaN"

    def test_nan_as_null(self, results_frame, temp_path):
        JSONExporter(allow_nan=False).export(results_frame, temp_path)
        with open(temp_path) as f:
            record = json.load(f)["data"][1]
        assert record["cv_percent"] is None

    def test_inf_handling(self, results_frame, temp_path):
        JSONExporter().export(results_frame, temp_path)
        with open(temp_path) as f:
            record = json.load(f)["data"][1]
        assert record["poxc_mg_per_kg"] == "Infinity"

    def test_numpy_scalar_serialization(self, temp_path):
        data = {"n": np.int64(4), "slope": np.float64(400.0), "flag": np.bool_(True)}
        JSONExporter().export(data, temp_path)
        with open(temp_path) as f:
            assert json.load(f)["data"] == {"n": 4, "slope": 400.0, "flag": True}

    def test_no_indent(self, results_frame, temp_path):
        JSONExporter(indent=None).export(results_frame, temp_path)
        assert "\n" not in Path(temp_path).read_text().strip()


# --- Factory tests ---


class TestCreateExporter:
    """Tests for create_exporter factory."""

    def test_create_csv_exporter(self):
        assert isinstance(create_exporter("csv"), CSVExporter)

    def test_create_csv_with_options(self):
        exporter = create_exporter("csv", delimiter=";")
        assert exporter.delimiter == ";"

    def test_create_json_exporter(self):
        assert isinstance(create_exporter("json"), JSONExporter)

    def test_case_insensitive(self):
        assert isinstance(create_exporter("JSON"), JSONExporter)

    def test_unsupported_format(self):
        with pytest.raises(ValueError, match="Unsupported export format"):
            create_exporter("hdf5")


# --- Convenience function tests ---


def test_export_to_csv(results_frame, temp_path):
    export_to_csv(results_frame, temp_path, include_metadata=False)
    assert Path(temp_path).read_text().startswith("plate_id")


def test_export_to_json(results_frame, temp_path):
    export_to_json(results_frame, temp_path)
    with open(temp_path) as f:
        assert len(json.load(f)["data"]) == 2


def test_unsupported_data_type(temp_path):
    with pytest.raises(ValueError, match="Unsupported data type"):
        CSVExporter().export([1, 2, 3], temp_path)


@pytest.mark.parametrize("fmt", ["csv", "json"])
def test_export_pipeline_result(fmt, reference_wells, reference_masses):
    result = run_pipeline(reference_wells, reference_masses, n_workers=1)

    with tempfile.TemporaryDirectory() as tmpdir:
        written = export_pipeline_result(result, Path(tmpdir) / "out", fmt=fmt)

        assert set(written) == {"results", "calibration", "standards", "issues"}
        for name, path in written.items():
            assert path.exists()
            assert path.suffix == f".{fmt}"

        if fmt == "csv":
            results = pd.read_csv(written["results"], comment="#")
            assert list(results["sample_id"]) == ["S1", "S2"]
            issues = pd.read_csv(written["issues"], comment="#")
            assert issues.empty
        else:
            with open(written["calibration"]) as f:
                calibration = json.load(f)["data"]
            assert calibration[0]["slope"] == pytest.approx(400.0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
