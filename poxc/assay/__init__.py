"""
Assay processing for POXC plates.

This module provides the per-plate calibration pipeline: blank correction,
calibration fitting, replicate aggregation, POXC conversion, identity
enrichment and quality-control reporting.
"""

from poxc.assay.wells import (
    QualityFlag,
    WellObservation,
    LabelConvention,
    extract_run_date,
    group_by_plate,
)
from poxc.assay.stats import ReplicateStats, describe
from poxc.assay.blank import BlankValue, CorrectedObservation, BlankCorrector
from poxc.assay.calibration import StandardLevel, CalibrationModel, CalibrationFitter
from poxc.assay.aggregation import SampleGroup, SampleAggregator
from poxc.assay.concentration import (
    SoilMassRecord,
    SoilMassTable,
    ComputedResult,
    ConcentrationCalculator,
    poxc_mg_per_kg,
)
from poxc.assay.enrichment import SampleIdentity, SampleIdentityTable, enrich_results
from poxc.assay.quality import PipelineIssue, QualityReviewer, issues_to_frame
from poxc.assay.config import AssayConfig
from poxc.assay.pipeline import PlateOutcome, PipelineResult, PoxcPipeline, run_pipeline
from poxc.assay.report import format_summary

__all__ = [
    # Wells
    "QualityFlag",
    "WellObservation",
    "LabelConvention",
    "extract_run_date",
    "group_by_plate",
    # Statistics
    "ReplicateStats",
    "describe",
    # Blank correction
    "BlankValue",
    "CorrectedObservation",
    "BlankCorrector",
    # Calibration
    "StandardLevel",
    "CalibrationModel",
    "CalibrationFitter",
    # Aggregation
    "SampleGroup",
    "SampleAggregator",
    # Concentration
    "SoilMassRecord",
    "SoilMassTable",
    "ComputedResult",
    "ConcentrationCalculator",
    "poxc_mg_per_kg",
    # Enrichment
    "SampleIdentity",
    "SampleIdentityTable",
    "enrich_results",
    # Quality
    "PipelineIssue",
    "QualityReviewer",
    "issues_to_frame",
    # Pipeline
    "AssayConfig",
    "PlateOutcome",
    "PipelineResult",
    "PoxcPipeline",
    "run_pipeline",
    "format_summary",
]
