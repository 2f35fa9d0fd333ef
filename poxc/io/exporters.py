"""
Export tools for POXC result tables.

This module provides exporters for common data formats:
- CSV: Flat tables with run metadata as comment lines
- JSON: Structured records for API consumption

All exporters follow the Exporter ABC interface and preserve metadata
(timestamp, version info, run parameters).

Example
-------
>>> from poxc.io.exporters import create_exporter, export_pipeline_result
>>> output = run_pipeline(wells, masses, identities)
>>>
>>> # Export the result table to CSV
>>> exporter = create_exporter("csv")
>>> exporter.export(output.results, "results.csv")
>>>
>>> # Export every table of the run to JSON
>>> export_pipeline_result(output, "out/", fmt="json")
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union
import json

import numpy as np
import pandas as pd

from poxc import __version__
from poxc.core.logging_config import get_logger

if TYPE_CHECKING:
    from poxc.assay.pipeline import PipelineResult

logger = get_logger("io.exporters")


# --- Type aliases ---
PathLike = Union[str, Path]
ExportData = Union[pd.DataFrame, Dict[str, Any]]


@dataclass
class ExportMetadata:
    """
    Metadata for exported data.

    Attributes
    ----------
    timestamp : str
        ISO format timestamp of export
    version : str
        POXC package version
    format : str
        Export format (csv, json)
    source_type : str
        Type of source data (DataFrame, dict)
    parameters : Dict[str, Any]
        Run parameters
    """

    timestamp: str
    version: str
    format: str
    source_type: str
    parameters: Dict[str, Any]

    @classmethod
    def create(
        cls,
        format: str,
        source_type: str,
        parameters: Optional[Dict[str, Any]] = None,
    ) -> "ExportMetadata":
        """Create metadata with current timestamp and version."""
        return cls(
            timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            version=__version__,
            format=format,
            source_type=source_type,
            parameters=parameters or {},
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "timestamp": self.timestamp,
            "version": self.version,
            "format": self.format,
            "source_type": self.source_type,
            "parameters": self.parameters,
        }


class Exporter(ABC):
    """
    Abstract base class for data exporters.

    Subclasses
    ----------
    CSVExporter : Export to CSV format
    JSONExporter : Export to JSON format
    """

    @abstractmethod
    def export(
        self,
        data: ExportData,
        path: PathLike,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Export data to file.

        Parameters
        ----------
        data : ExportData
            DataFrame or dictionary to export
        path : PathLike
            Output file path
        metadata : Dict[str, Any], optional
            Additional metadata to include

        Raises
        ------
        ValueError
            If data format is not supported
        """
        pass

    @abstractmethod
    def get_format(self) -> str:
        """Return the export format name (csv, json)."""
        pass

    def _get_source_type(self, data: ExportData) -> str:
        """Get the type name of the source data."""
        if isinstance(data, pd.DataFrame):
            return "DataFrame"
        elif isinstance(data, dict):
            return "dict"
        raise ValueError(f"Unsupported data type: {type(data).__name__}")


class CSVExporter(Exporter):
    """
    Export tables to CSV format.

    Parameters
    ----------
    columns : List[str], optional
        Column names to export (default: all available)
    delimiter : str
        Field delimiter (default: ",")
    include_header : bool
        Include column header row (default: True)
    include_metadata : bool
        Include metadata as comment lines (default: True)
    float_format : str
        Format string for floating point numbers (default: "%.6g")

    Example
    -------
    >>> exporter = CSVExporter(columns=["plate_id", "sample_id", "poxc_mg_per_kg"])
    >>> exporter.export(output.results, "poxc.csv")
    """

    def __init__(
        self,
        columns: Optional[List[str]] = None,
        delimiter: str = ",",
        include_header: bool = True,
        include_metadata: bool = True,
        float_format: str = "%.6g",
    ):
        self.columns = columns
        self.delimiter = delimiter
        self.include_header = include_header
        self.include_metadata = include_metadata
        self.float_format = float_format

    def get_format(self) -> str:
        return "csv"

    def export(
        self,
        data: ExportData,
        path: PathLike,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Export data to CSV file.

        - DataFrame: one row per record, missing values left empty
        - dict: key/value pairs, nested dicts flattened with dotted keys
        """
        path = Path(path)
        source_type = self._get_source_type(data)

        export_meta = ExportMetadata.create(
            format="csv",
            source_type=source_type,
            parameters=metadata,
        )

        lines = []

        # Add metadata as comments
        if self.include_metadata:
            lines.append("# POXC Export")
            lines.append(f"# Timestamp: {export_meta.timestamp}")
            lines.append(f"# Version: {export_meta.version}")
            lines.append(f"# Source: {export_meta.source_type}")
            if metadata:
                for key, value in metadata.items():
                    lines.append(f"# {key}: {value}")
            lines.append("#")

        if isinstance(data, pd.DataFrame):
            lines.extend(self._export_frame(data))
        else:
            lines.extend(self._export_dict(data))

        with open(path, "w") as f:
            f.write("\n".join(lines))
            f.write("\n")

        logger.info(f"Exported {source_type} to CSV: {path}")

    def _export_frame(self, df: pd.DataFrame) -> List[str]:
        """Export a DataFrame to CSV lines."""
        if self.columns is not None:
            missing = [c for c in self.columns if c not in df.columns]
            if missing:
                raise ValueError(f"Columns not in table: {missing}")
            df = df[self.columns]

        text = df.to_csv(
            sep=self.delimiter,
            header=self.include_header,
            index=False,
            float_format=self.float_format,
            lineterminator="\n",
        )
        return text.rstrip("\n").split("\n") if text else []

    def _export_dict(self, data: Dict[str, Any]) -> List[str]:
        """Export generic dictionary to CSV lines."""
        lines = []

        if self.include_header:
            lines.append(self.delimiter.join(["key", "value"]))

        for key, value in data.items():
            if isinstance(value, (list, np.ndarray)):
                # Skip arrays for simple key-value export
                continue
            elif isinstance(value, dict):
                for subkey, subval in value.items():
                    if not isinstance(subval, (list, dict, np.ndarray)):
                        lines.append(self.delimiter.join([f"{key}.{subkey}", str(subval)]))
            elif isinstance(value, float):
                lines.append(self.delimiter.join([key, self.float_format % value]))
            else:
                lines.append(self.delimiter.join([key, str(value)]))

        return lines


class JSONExporter(Exporter):
    """
    Export tables to JSON format.

    DataFrames are written as a list of records. NaN and Inf are written as
    the strings "NaN", "Infinity" and "-Infinity" (or null for NaN when
    ``allow_nan`` is False).

    Parameters
    ----------
    indent : int, optional
        JSON indentation level (default: 2)
    sort_keys : bool
        Sort dictionary keys (default: False, keeps column order)
    allow_nan : bool
        Write NaN as "NaN" instead of null (default: True)
    """

    def __init__(
        self,
        indent: Optional[int] = 2,
        sort_keys: bool = False,
        allow_nan: bool = True,
    ):
        self.indent = indent
        self.sort_keys = sort_keys
        self.allow_nan = allow_nan

    def get_format(self) -> str:
        return "json"

    def export(
        self,
        data: ExportData,
        path: PathLike,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Export data to JSON file."""
        path = Path(path)
        source_type = self._get_source_type(data)

        export_meta = ExportMetadata.create(
            format="json",
            source_type=source_type,
            parameters=metadata,
        )

        if isinstance(data, pd.DataFrame):
            payload = [self._convert_for_json(r) for r in data.to_dict(orient="records")]
        else:
            payload = self._convert_for_json(data)

        output = {
            "metadata": export_meta.to_dict(),
            "data": payload,
        }

        with open(path, "w") as f:
            json.dump(output, f, indent=self.indent, sort_keys=self.sort_keys)

        logger.info(f"Exported {source_type} to JSON: {path}")

    def _convert_for_json(self, value: Any) -> Any:
        """Convert a single value for JSON serialization."""
        if value is None:
            return None
        elif isinstance(value, np.ndarray):
            return self._convert_for_json(value.tolist())
        elif isinstance(value, (np.bool_, bool)):
            return bool(value)
        elif isinstance(value, np.integer):
            return int(value)
        elif isinstance(value, (np.floating, float)):
            return self._float_to_json(float(value))
        elif isinstance(value, dict):
            return {str(k): self._convert_for_json(v) for k, v in value.items()}
        elif isinstance(value, (list, tuple)):
            return [self._convert_for_json(v) for v in value]
        elif hasattr(value, "value"):  # Enum
            return value.value
        else:
            return value

    def _float_to_json(self, value: float) -> Union[float, str, None]:
        """Convert float handling NaN and Inf."""
        if np.isnan(value):
            return "NaN" if self.allow_nan else None
        elif np.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        return value


# --- Factory Function ---


def create_exporter(
    format: str,
    **kwargs,
) -> Exporter:
    """
    Factory function to create exporters by format name.

    Parameters
    ----------
    format : str
        Export format: "csv" or "json"
    **kwargs
        Format-specific options passed to exporter constructor

    Returns
    -------
    Exporter

    Raises
    ------
    ValueError
        If format is not supported
    """
    format_lower = format.lower()

    if format_lower == "csv":
        return CSVExporter(**kwargs)
    elif format_lower == "json":
        return JSONExporter(**kwargs)
    else:
        supported = ["csv", "json"]
        raise ValueError(
            f"Unsupported export format: '{format}'. " f"Supported formats: {supported}"
        )


# --- Convenience functions ---


def export_to_csv(data: ExportData, path: PathLike, **kwargs) -> None:
    """Export a DataFrame or dict to CSV (options passed to CSVExporter)."""
    exporter = CSVExporter(**kwargs)
    exporter.export(data, path)


def export_to_json(data: ExportData, path: PathLike, **kwargs) -> None:
    """Export a DataFrame or dict to JSON (options passed to JSONExporter)."""
    exporter = JSONExporter(**kwargs)
    exporter.export(data, path)


def export_pipeline_result(
    result: "PipelineResult",
    output_dir: PathLike,
    fmt: str = "csv",
    metadata: Optional[Dict[str, Any]] = None,
    **kwargs,
) -> Dict[str, Path]:
    """
    Write every table of a pipeline run to ``output_dir``.

    Parameters
    ----------
    result : PipelineResult
        Pipeline output
    output_dir : PathLike
        Directory to write into (created if missing)
    fmt : str
        "csv" or "json"
    metadata : Dict[str, Any], optional
        Run parameters recorded in every file
    **kwargs
        Options passed to the exporter

    Returns
    -------
    Dict[str, Path]
        Table name -> written file path
    """
    exporter = create_exporter(fmt, **kwargs)
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    tables = {
        "results": result.results,
        "calibration": result.calibration,
        "standards": result.standards,
        "issues": result.issues_frame(),
    }

    written = {}
    for name, table in tables.items():
        path = output_dir / f"{name}.{exporter.get_format()}"
        exporter.export(table, path, metadata=metadata)
        written[name] = path

    logger.info(f"Wrote {len(written)} tables to {output_dir}")
    return written
