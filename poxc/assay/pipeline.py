"""
Per-plate POXC pipeline.

Each plate is an independent unit of work: blank correction, calibration
fitting and sample aggregation depend only on that plate's wells. Plates are
processed in a thread pool and their outputs concatenated in input order.
Data errors are isolated to the plate or sample that raised them and
reported as issues; the rest of the batch still completes.
"""

import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import asdict, dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from poxc.assay.aggregation import SampleAggregator, SampleGroup
from poxc.assay.blank import BlankCorrector, BlankValue
from poxc.assay.calibration import CalibrationFitter, CalibrationModel, StandardLevel
from poxc.assay.concentration import ComputedResult, ConcentrationCalculator, SoilMassTable
from poxc.assay.config import AssayConfig
from poxc.assay.enrichment import SampleIdentityTable, enrich_results
from poxc.assay.quality import PipelineIssue, QualityReviewer, issues_to_frame
from poxc.assay.wells import WellObservation, group_by_plate
from poxc.core.exceptions import (
    AssayDataError,
    InsufficientCalibrationDataError,
    MissingBlankError,
)
from poxc.core.logging_config import get_logger, get_plate_logger

logger = get_logger("assay.pipeline")

RESULT_COLUMNS = [
    "plate_id",
    "sample_id",
    "display_name",
    "mean_absorbance",
    "stdev_absorbance",
    "cv_percent",
    "slope",
    "intercept",
    "poxc_mg_per_kg",
    "run_date",
    "n_replicates",
    "r_squared",
    "mass_kg",
    "post_reaction_concentration",
]

CALIBRATION_COLUMNS = [
    "plate_id",
    "slope",
    "intercept",
    "r_squared",
    "n_levels",
    "blank_absorbance",
    "n_blank_wells",
]

STANDARD_COLUMNS = [
    "plate_id",
    "concentration",
    "mean_absorbance",
    "stdev_absorbance",
    "cv_percent",
    "n_replicates",
]


@dataclass
class PlateOutcome:
    """
    Everything produced for one plate.

    ``blank`` and ``model`` are None when the plate was skipped; the reason is
    in ``issues``.
    """

    plate_id: str
    blank: Optional[BlankValue] = None
    model: Optional[CalibrationModel] = None
    groups: List[SampleGroup] = field(default_factory=list)
    results: List[ComputedResult] = field(default_factory=list)
    issues: List[PipelineIssue] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.model is not None


@dataclass
class PipelineResult:
    """
    Output of a pipeline run.

    Attributes
    ----------
    results : pd.DataFrame
        One row per (plate_id, sample_id) with POXC and review flags
    calibration : pd.DataFrame
        One row per calibrated plate with fit diagnostics and ``low_r_squared``
    standards : pd.DataFrame
        Per-plate standard level replicate summaries with ``high_cv``
    issues : List[PipelineIssue]
        Skipped plates/samples and non-fatal diagnostics
    """

    results: pd.DataFrame
    calibration: pd.DataFrame
    standards: pd.DataFrame
    issues: List[PipelineIssue] = field(default_factory=list)

    @property
    def skipped(self) -> List[PipelineIssue]:
        """Issues that removed a plate or sample from the results."""
        return [issue for issue in self.issues if issue.fatal]

    def issues_frame(self) -> pd.DataFrame:
        return issues_to_frame(self.issues)

    def summary(self) -> str:
        from poxc.assay.report import format_summary

        return format_summary(self)


class PoxcPipeline:
    """
    Runs blank correction, calibration, aggregation and POXC conversion.

    Parameters
    ----------
    masses : SoilMassTable
        Soil mass lookup keyed by (sample_id, run_date)
    identities : SampleIdentityTable, optional
        Display name lookup; results stay unnamed without it
    config : AssayConfig, optional
        Label conventions, review thresholds and worker count

    Examples
    --------
    >>> pipeline = PoxcPipeline(masses, identities)
    >>> output = pipeline.run(wells)
    >>> print(output.summary())
    """

    def __init__(
        self,
        masses: SoilMassTable,
        identities: Optional[SampleIdentityTable] = None,
        config: Optional[AssayConfig] = None,
    ):
        self.config = config or AssayConfig()
        self.masses = masses
        self.identities = identities or SampleIdentityTable()

        conventions = self.config.conventions
        self.corrector = BlankCorrector(conventions)
        self.fitter = CalibrationFitter(conventions)
        self.aggregator = SampleAggregator(conventions)
        self.calculator = ConcentrationCalculator(masses)
        self.reviewer = QualityReviewer(
            r_squared_threshold=self.config.r_squared_threshold,
            cv_threshold_percent=self.config.cv_threshold_percent,
        )

    def process_plate(self, plate_id: str, wells: Sequence[WellObservation]) -> PlateOutcome:
        """
        Process one plate.

        Plate-level data errors (no blank, too few standards) skip the plate;
        sample-level errors (malformed plate id, missing mass) skip the sample.
        Any other exception propagates.
        """
        outcome = PlateOutcome(plate_id=plate_id)
        plate_log = get_plate_logger("assay.pipeline", plate_id)

        try:
            blank, corrected = self.corrector.correct(plate_id, wells)
            outcome.blank = blank
            outcome.model = self.fitter.fit(plate_id, corrected)
        except (MissingBlankError, InsufficientCalibrationDataError) as e:
            plate_log.warning(f"skipped ({e.reason}): {e}")
            outcome.model = None
            outcome.issues.append(PipelineIssue.from_error(e, plate_id=plate_id))
            return outcome

        outcome.groups = self.aggregator.aggregate(plate_id, corrected)

        for group in outcome.groups:
            if not group.is_defined:
                outcome.issues.append(
                    PipelineIssue.undefined_aggregate(plate_id, group.sample_id, group.n_replicates)
                )
            try:
                outcome.results.append(self.calculator.calculate(group, outcome.model))
            except AssayDataError as e:
                plate_log.warning(f"skipping sample {group.sample_id}: {e}")
                outcome.issues.append(PipelineIssue.from_error(e, plate_id=plate_id))

        plate_log.debug(f"{len(outcome.results)}/{len(outcome.groups)} samples computed")
        return outcome

    def run(
        self, observations: Iterable[WellObservation], n_workers: Optional[int] = None
    ) -> PipelineResult:
        """
        Run the pipeline over all plates.

        Parameters
        ----------
        observations : iterable of WellObservation
            All wells of the batch
        n_workers : int, optional
            Overrides ``config.n_workers``

        Returns
        -------
        PipelineResult
        """
        plates = group_by_plate(observations)
        outcomes = self._process_plates(plates, n_workers)

        computed: List[ComputedResult] = []
        issues: List[PipelineIssue] = []
        for outcome in outcomes:
            computed.extend(outcome.results)
            issues.extend(outcome.issues)

        enriched, enrich_issues = enrich_results(
            computed, self.identities, self.config.conventions
        )
        issues.extend(enrich_issues)

        result = PipelineResult(
            results=self.reviewer.flag_replicates(self._results_frame(enriched)),
            calibration=self.reviewer.flag_calibrations(self._calibration_frame(outcomes)),
            standards=self.reviewer.flag_replicates(self._standards_frame(outcomes)),
            issues=issues,
        )

        n_failed = sum(1 for outcome in outcomes if not outcome.succeeded)
        logger.info(
            f"Processed {len(outcomes)} plate(s) ({n_failed} skipped): "
            f"{len(result.results)} result(s), {len(result.skipped)} skipped item(s)"
        )
        return result

    def _process_plates(
        self, plates: Dict[str, List[WellObservation]], n_workers: Optional[int]
    ) -> List[PlateOutcome]:
        """Process plates, in parallel when more than one worker is available."""
        if not plates:
            return []

        if n_workers is None:
            n_workers = self.config.n_workers
        if n_workers is None:
            n_workers = os.cpu_count() or 1
        n_workers = max(1, min(n_workers, len(plates)))

        plate_ids = list(plates)
        if n_workers == 1:
            return [self.process_plate(pid, plates[pid]) for pid in plate_ids]

        logger.info(f"Processing {len(plate_ids)} plates with {n_workers} workers")

        completed: Dict[str, PlateOutcome] = {}
        with ThreadPoolExecutor(max_workers=n_workers) as executor:
            futures = {
                executor.submit(self.process_plate, pid, plates[pid]): pid for pid in plate_ids
            }
            for future in as_completed(futures):
                completed[futures[future]] = future.result()

        # Return in original order
        return [completed[pid] for pid in plate_ids]

    @staticmethod
    def _results_frame(results: Sequence[ComputedResult]) -> pd.DataFrame:
        return pd.DataFrame([asdict(r) for r in results], columns=RESULT_COLUMNS)

    @staticmethod
    def _calibration_frame(outcomes: Sequence[PlateOutcome]) -> pd.DataFrame:
        rows = []
        for outcome in outcomes:
            if not outcome.succeeded:
                continue
            row = outcome.model.to_dict()
            row["blank_absorbance"] = outcome.blank.mean_blank_absorbance
            row["n_blank_wells"] = outcome.blank.n_wells
            rows.append(row)
        return pd.DataFrame(rows, columns=CALIBRATION_COLUMNS)

    @staticmethod
    def _standards_frame(outcomes: Sequence[PlateOutcome]) -> pd.DataFrame:
        levels: List[StandardLevel] = []
        for outcome in outcomes:
            if outcome.succeeded:
                levels.extend(outcome.model.levels)
        return pd.DataFrame([asdict(lvl) for lvl in levels], columns=STANDARD_COLUMNS)


def run_pipeline(
    observations: Iterable[WellObservation],
    masses: SoilMassTable,
    identities: Optional[SampleIdentityTable] = None,
    config: Optional[AssayConfig] = None,
    n_workers: Optional[int] = None,
) -> PipelineResult:
    """
    Convenience wrapper around ``PoxcPipeline(...).run(...)``.

    Parameters
    ----------
    observations : iterable of WellObservation
        All wells of the batch
    masses : SoilMassTable
        Soil mass lookup
    identities : SampleIdentityTable, optional
        Display name lookup
    config : AssayConfig, optional
        Run configuration
    n_workers : int, optional
        Worker thread override

    Returns
    -------
    PipelineResult
    """
    pipeline = PoxcPipeline(masses, identities=identities, config=config)
    return pipeline.run(observations, n_workers=n_workers)
