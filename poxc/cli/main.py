"""
Main CLI entry point for POXC.
"""

import argparse
import sys

from poxc import __version__
from poxc.core.logging_config import setup_logging, get_logger

logger = get_logger("cli.main")


def _load_assay_config(config_path):
    from poxc.assay.config import AssayConfig

    if config_path is None:
        return AssayConfig()
    logger.info(f"Loading configuration from {config_path}")
    return AssayConfig.from_file(config_path)


def run_cmd(args):
    """Full pipeline command."""
    from poxc.assay.pipeline import PoxcPipeline
    from poxc.io.exporters import export_pipeline_result
    from poxc.io.tables import load_sample_identities, load_soil_masses, load_well_table

    config = _load_assay_config(args.config)
    if args.workers is not None:
        config.n_workers = args.workers

    wells = load_well_table(args.wells)
    masses = load_soil_masses(args.masses)
    identities = load_sample_identities(args.identities) if args.identities else None

    pipeline = PoxcPipeline(masses, identities=identities, config=config)
    result = pipeline.run(wells)

    print(result.summary())

    if args.output_dir:
        written = export_pipeline_result(
            result,
            args.output_dir,
            fmt=args.format,
            metadata={
                "wells": args.wells,
                "masses": args.masses,
                "blank_marker": config.blank_marker,
                "standard_suffix": config.standard_suffix,
            },
        )
        for name, path in written.items():
            print(f"{name}: {path}")

    logger.info("POXC run complete")


def calibrate_cmd(args):
    """Calibration review command: fit each plate and print diagnostics."""
    from poxc.assay.blank import BlankCorrector
    from poxc.assay.calibration import CalibrationFitter
    from poxc.assay.wells import group_by_plate
    from poxc.core.exceptions import AssayDataError
    from poxc.io.tables import load_well_table

    config = _load_assay_config(args.config)
    corrector = BlankCorrector(config.conventions)
    fitter = CalibrationFitter(config.conventions)

    plates = group_by_plate(load_well_table(args.wells))

    print(f"{'Plate':<20} {'Blank':>8} {'Slope':>12} {'Intercept':>12} {'R2':>8}  Flag")
    n_failed = 0
    for plate_id, wells in plates.items():
        try:
            blank, corrected = corrector.correct(plate_id, wells)
            model = fitter.fit(plate_id, corrected)
        except AssayDataError as e:
            n_failed += 1
            print(f"{plate_id:<20} {'':>8} {'':>12} {'':>12} {'':>8}  {e.reason}")
            logger.warning(str(e))
            continue
        flag = "LOW R2" if model.r_squared < config.r_squared_threshold else ""
        print(
            f"{plate_id:<20} {blank.mean_blank_absorbance:>8.3f} {model.slope:>12.4g} "
            f"{model.intercept:>12.4g} {model.r_squared:>8.4f}  {flag}"
        )

    logger.info(f"Calibrated {len(plates) - n_failed} of {len(plates)} plate(s)")


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="POXC: soil active carbon from permanganate assay plates",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Set logging level (default: INFO)",
    )

    parser.add_argument(
        "--plate-detail",
        action="store_true",
        help="Include per-plate DEBUG output from blank, calibration and aggregation",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Pipeline command
    run_parser = subparsers.add_parser("run", help="Compute POXC per sample from plate readings")
    run_parser.add_argument("wells", type=str, help="Path to well table (CSV)")
    run_parser.add_argument(
        "--masses", type=str, required=True, help="Path to soil mass table (CSV)"
    )
    run_parser.add_argument(
        "--identities", type=str, default=None, help="Path to sample identity table (CSV)"
    )
    run_parser.add_argument(
        "--config", type=str, default=None, help="Path to configuration file (YAML or JSON)"
    )
    run_parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Directory for result tables (default: print summary only)",
    )
    run_parser.add_argument(
        "--format", choices=["csv", "json"], default="csv", help="Output format (default: csv)"
    )
    run_parser.add_argument(
        "--workers", type=int, default=None, help="Worker threads (default: CPU count)"
    )
    run_parser.set_defaults(func=run_cmd)

    # Calibration review command
    calibrate_parser = subparsers.add_parser(
        "calibrate", help="Fit and print per-plate calibration diagnostics"
    )
    calibrate_parser.add_argument("wells", type=str, help="Path to well table (CSV)")
    calibrate_parser.add_argument(
        "--config", type=str, default=None, help="Path to configuration file (YAML or JSON)"
    )
    calibrate_parser.set_defaults(func=calibrate_cmd)

    args = parser.parse_args()

    # Setup logging
    setup_logging(level=args.log_level, plate_detail=args.plate_detail)

    # Execute command
    if args.command is None:
        parser.print_help()
        sys.exit(1)

    try:
        args.func(args)
    except Exception as e:
        logger.error(f"Error executing command: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
