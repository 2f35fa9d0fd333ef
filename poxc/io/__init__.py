"""
Input/output utilities.

This module provides:
- CSV loaders for the well, soil mass and sample identity tables
- Export tools for result tables (CSV, JSON)
"""

from poxc.io.tables import (
    load_well_table,
    load_soil_masses,
    load_sample_identities,
    wells_from_frame,
    masses_from_frame,
    identities_from_frame,
)
from poxc.io.exporters import (
    Exporter,
    CSVExporter,
    JSONExporter,
    ExportMetadata,
    create_exporter,
    export_to_csv,
    export_to_json,
    export_pipeline_result,
)

__all__ = [
    # Input tables
    "load_well_table",
    "load_soil_masses",
    "load_sample_identities",
    "wells_from_frame",
    "masses_from_frame",
    "identities_from_frame",
    # Exporters
    "Exporter",
    "CSVExporter",
    "JSONExporter",
    "ExportMetadata",
    "create_exporter",
    "export_to_csv",
    "export_to_json",
    "export_pipeline_result",
]
