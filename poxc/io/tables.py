"""
I/O utilities for the input tables.

Loads the well table, soil-mass table and sample-identity table from CSV
files or from in-memory DataFrames. Lines whose first non-blank character is
``#`` are comments; a ``#`` inside a field is kept. Common alternative column
names are accepted.
"""

from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import pandas as pd

from poxc.assay.concentration import SoilMassRecord, SoilMassTable
from poxc.assay.enrichment import SampleIdentity, SampleIdentityTable
from poxc.assay.wells import QualityFlag, WellObservation
from poxc.core.logging_config import get_logger

logger = get_logger("io.tables")

PathLike = Union[str, Path]

WELL_COLUMNS: Dict[str, Sequence[str]] = {
    "plate_id": ["plate_id", "plate", "plate_name"],
    "well_id": ["well_id", "well"],
    "sample_label": ["sample_label", "sample_id", "sample", "label"],
    "absorbance": ["absorbance", "abs", "od", "raw_absorbance"],
}
QUALITY_COLUMNS = ["quality_flag", "quality", "flag"]

MASS_COLUMNS: Dict[str, Sequence[str]] = {
    "sample_id": ["sample_id", "sample"],
    "run_date": ["run_date", "date"],
}
IDENTITY_COLUMNS: Dict[str, Sequence[str]] = {
    "sample_id": ["sample_id", "sample"],
    "display_name": ["display_name", "name", "sample_name"],
}


def _find_column(df: pd.DataFrame, candidates: Sequence[str]) -> Optional[str]:
    for col in candidates:
        if col in df.columns:
            return col
    return None


def _resolve_columns(
    df: pd.DataFrame, aliases: Dict[str, Sequence[str]], table: str
) -> Dict[str, str]:
    resolved = {}
    for name, candidates in aliases.items():
        col = _find_column(df, candidates)
        if col is None:
            raise ValueError(
                f"Could not find {name} column in {table} table "
                f"(tried: {', '.join(candidates)})"
            )
        resolved[name] = col
    return resolved


def _comment_lines(file_path: Path) -> List[int]:
    """Zero-based numbers of lines whose first non-blank character is ``#``."""
    with open(file_path, "r") as f:
        return [i for i, line in enumerate(f) if line.lstrip().startswith("#")]


def _read_csv(file_path: PathLike) -> pd.DataFrame:
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Table not found: {file_path}")
    sep = "\t" if file_path.suffix.lower() in [".tsv", ".tab"] else ","
    df = pd.read_csv(
        file_path,
        sep=sep,
        dtype=str,
        skipinitialspace=True,
        skiprows=_comment_lines(file_path),
    )
    df.columns = [str(c).strip() for c in df.columns]
    return df


def _text(value: object) -> str:
    return "" if pd.isna(value) else str(value).strip()


def wells_from_frame(df: pd.DataFrame) -> List[WellObservation]:
    """
    Build well observations from a DataFrame.

    Rows with an empty absorbance are kept with a NaN reading and flagged
    EXCLUDED, so the pipeline accounts for them like any other excluded
    well: a sample with no readings at all is reported as an undefined
    aggregate and a plate with no blank readings as a missing blank.

    Raises
    ------
    ValueError
        If a required column is missing or an absorbance is not numeric
    """
    cols = _resolve_columns(df, WELL_COLUMNS, "well")
    quality_col = _find_column(df, QUALITY_COLUMNS)

    absorbance = pd.to_numeric(df[cols["absorbance"]], errors="coerce")
    bad = absorbance.isna() & df[cols["absorbance"]].notna() & (
        df[cols["absorbance"]].astype(str).str.strip() != ""
    )
    if bad.any():
        first = df.loc[bad, cols["absorbance"]].iloc[0]
        raise ValueError(f"Non-numeric absorbance value: {first!r}")

    observations = []
    n_empty = 0
    for idx in df.index:
        if pd.isna(absorbance[idx]):
            n_empty += 1
            flag = QualityFlag.EXCLUDED
        elif quality_col:
            flag = QualityFlag.parse(df.at[idx, quality_col])
        else:
            flag = QualityFlag.OK
        observations.append(
            WellObservation(
                plate_id=_text(df.at[idx, cols["plate_id"]]),
                well_id=_text(df.at[idx, cols["well_id"]]),
                sample_id=_text(df.at[idx, cols["sample_label"]]),
                raw_absorbance=float(absorbance[idx]),
                quality_flag=flag,
            )
        )

    if n_empty:
        logger.warning(f"Excluded {n_empty} well(s) without an absorbance reading")
    return observations


def masses_from_frame(df: pd.DataFrame) -> SoilMassTable:
    """
    Build the soil mass lookup from a DataFrame.

    The mass column is ``mass_kg``; a ``mass_g`` column is accepted and
    converted to kg.
    """
    cols = _resolve_columns(df, MASS_COLUMNS, "soil mass")
    if "mass_kg" in df.columns:
        mass_kg = pd.to_numeric(df["mass_kg"], errors="coerce")
    elif "mass_g" in df.columns:
        mass_kg = pd.to_numeric(df["mass_g"], errors="coerce") / 1000.0
    else:
        raise ValueError("Could not find mass column in soil mass table (tried: mass_kg, mass_g)")

    records = []
    for idx in df.index:
        if pd.isna(mass_kg[idx]):
            logger.warning(f"Skipping soil mass row {idx}: missing or non-numeric mass")
            continue
        records.append(
            SoilMassRecord(
                sample_id=_text(df.at[idx, cols["sample_id"]]),
                run_date=_text(df.at[idx, cols["run_date"]]),
                mass_kg=float(mass_kg[idx]),
            )
        )
    return SoilMassTable(records)


def identities_from_frame(df: pd.DataFrame) -> SampleIdentityTable:
    """Build the sample identity lookup from a DataFrame."""
    cols = _resolve_columns(df, IDENTITY_COLUMNS, "sample identity")
    identities = [
        SampleIdentity(
            sample_id=_text(df.at[idx, cols["sample_id"]]),
            display_name=_text(df.at[idx, cols["display_name"]]),
        )
        for idx in df.index
        if _text(df.at[idx, cols["display_name"]])
    ]
    return SampleIdentityTable(identities)


def load_well_table(file_path: PathLike) -> List[WellObservation]:
    """
    Load the well table.

    Supports CSV files with columns: plate_id, well_id, sample_label,
    absorbance and an optional quality_flag.

    Parameters
    ----------
    file_path : str or Path
        Path to the well table

    Returns
    -------
    List[WellObservation]
    """
    observations = wells_from_frame(_read_csv(file_path))
    logger.info(f"Loaded {len(observations)} wells from {file_path}")
    return observations


def load_soil_masses(file_path: PathLike) -> SoilMassTable:
    """
    Load the soil mass table (columns: sample_id, run_date, mass_kg).

    ``run_date`` is read as text so leading zeros and the 8-digit form survive.
    """
    masses = masses_from_frame(_read_csv(file_path))
    logger.info(f"Loaded {len(masses)} soil masses from {file_path}")
    return masses


def load_sample_identities(file_path: PathLike) -> SampleIdentityTable:
    """Load the sample identity table (columns: sample_id, display_name)."""
    identities = identities_from_frame(_read_csv(file_path))
    logger.info(f"Loaded {len(identities)} sample identities from {file_path}")
    return identities
