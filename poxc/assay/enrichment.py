"""
Joins computed results with sample identity metadata.
"""

from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from poxc.assay.concentration import ComputedResult
from poxc.assay.quality import PipelineIssue
from poxc.assay.wells import LabelConvention
from poxc.core.logging_config import get_logger

logger = get_logger("assay.enrichment")

MISCLASSIFIED_REASON = "UpstreamClassificationError"


@dataclass(frozen=True)
class SampleIdentity:
    """Display name for a sample id."""

    sample_id: str
    display_name: str


class SampleIdentityTable:
    """
    Read-only sample_id -> display_name lookup.

    Many sample ids may share a display name; a sample id may only map to one.

    Raises
    ------
    ValueError
        If a sample id is listed twice with different names
    """

    def __init__(self, identities: Iterable[SampleIdentity] = ()):
        self._names: Dict[str, str] = {}
        for identity in identities:
            existing = self._names.get(identity.sample_id)
            if existing is not None and existing != identity.display_name:
                raise ValueError(
                    f"Sample {identity.sample_id!r} has conflicting display names: "
                    f"{existing!r} vs {identity.display_name!r}"
                )
            self._names[identity.sample_id] = identity.display_name

    @classmethod
    def from_mapping(cls, mapping: Dict[str, str]) -> "SampleIdentityTable":
        return cls(SampleIdentity(k, v) for k, v in mapping.items())

    def __len__(self) -> int:
        return len(self._names)

    def display_name(self, sample_id: str) -> Optional[str]:
        return self._names.get(sample_id)


def enrich_results(
    results: Sequence[ComputedResult],
    identities: SampleIdentityTable,
    conventions: Optional[LabelConvention] = None,
) -> Tuple[List[ComputedResult], List[PipelineIssue]]:
    """
    Attach display names and drop rows that are blanks or standards.

    Blank or standard rows should never reach this stage; any that do are
    dropped, logged, and reported as non-fatal issues.

    Parameters
    ----------
    results : sequence of ComputedResult
        Calculator output, in plate order
    identities : SampleIdentityTable
        Display name lookup
    conventions : LabelConvention, optional
        Label rules used to recognise blanks and standards

    Returns
    -------
    enriched : list of ComputedResult
        Results with ``display_name`` set (None when unmatched)
    issues : list of PipelineIssue
        One entry per dropped row
    """
    conventions = conventions or LabelConvention()
    enriched = []
    issues = []
    n_unmatched = 0

    for result in results:
        if conventions.is_control(result.sample_id):
            message = (
                f"Control label {result.sample_id!r} on plate {result.plate_id} "
                "reached the result table; row dropped"
            )
            logger.warning(message)
            issues.append(
                PipelineIssue(
                    plate_id=result.plate_id,
                    sample_id=result.sample_id,
                    reason=MISCLASSIFIED_REASON,
                    message=message,
                    fatal=False,
                )
            )
            continue

        name = identities.display_name(result.sample_id)
        if name is None:
            n_unmatched += 1
        enriched.append(replace(result, display_name=name))

    if n_unmatched:
        logger.info(f"{n_unmatched} result(s) without a display name")

    return enriched, issues
