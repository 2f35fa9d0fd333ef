"""
Example usage of the POXC pipeline.

This demonstrates building plate readings in memory, running the per-plate
calibration pipeline, reviewing calibration quality and exporting the
result tables.
"""

from pathlib import Path

import pandas as pd

from poxc.assay import AssayConfig, PoxcPipeline
from poxc.core.logging_config import setup_logging
from poxc.io import export_pipeline_result, identities_from_frame, masses_from_frame, wells_from_frame

# Setup logging
setup_logging()


def build_inputs():
    """Two plates from one run date; the second has no blank wells."""
    rows = []
    for plate_id, blank in [("20230601A", 0.052), ("20230601B", None)]:
        if blank is not None:
            rows += [(plate_id, f"A{i}", "Water", blank) for i in (1, 2)]
        base = blank or 0.05
        for i, (conc, absorbance) in enumerate([(0, 0.0), (100, 0.24), (200, 0.51), (400, 0.99)]):
            rows.append((plate_id, f"B{i + 1}", f"{conc}uM", absorbance + base))
        rows += [
            (plate_id, "C1", "S1", 0.31 + base),
            (plate_id, "C2", "S1", 0.29 + base),
            (plate_id, "C3", "S2", 0.12 + base),
            (plate_id, "C4", "S2", 0.14 + base),
        ]

    wells = wells_from_frame(
        pd.DataFrame(rows, columns=["plate_id", "well_id", "sample_label", "absorbance"])
    )
    masses = masses_from_frame(
        pd.DataFrame(
            {"sample_id": ["S1", "S2"], "run_date": ["20230601"] * 2, "mass_g": [2.5, 2.48]}
        )
    )
    identities = identities_from_frame(
        pd.DataFrame({"sample_id": ["S1", "S2"], "display_name": ["North field", "South field"]})
    )
    return wells, masses, identities


def example_run():
    """Example: Run the pipeline and print the summary."""
    print("\n=== Pipeline Example ===")

    wells, masses, identities = build_inputs()
    pipeline = PoxcPipeline(masses, identities=identities, config=AssayConfig(n_workers=2))
    result = pipeline.run(wells)

    print(result.summary())
    print(result.results[["plate_id", "display_name", "poxc_mg_per_kg", "high_cv"]])
    return result


def example_export(result, output_dir="poxc_output"):
    """Example: Write every table to CSV."""
    print("\n=== Export Example ===")

    written = export_pipeline_result(result, Path(output_dir), fmt="csv")
    for name, path in written.items():
        print(f"{name}: {path}")


if __name__ == "__main__":
    result = example_run()
    example_export(result)
