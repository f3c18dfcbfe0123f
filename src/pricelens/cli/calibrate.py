#!/usr/bin/env python
"""
CLI for calibrating the feature-based price estimator.

Reads the reference dataset, fits the calibration constants and writes
them to the calibration JSON used by the API.

Usage:
    python -m pricelens.cli.calibrate
    python -m pricelens.cli.calibrate --dataset data/socal_houses.csv --output models/calibration.json
"""

import argparse
import sys

from pricelens.config import get_config
from pricelens.core.constants import MIN_CALIBRATION_SAMPLES
from pricelens.logging_config import setup_logging, get_logger


def main():
    """Main entry point for the calibration CLI."""
    parser = argparse.ArgumentParser(
        description="Calibrate the feature-based price estimator from the reference dataset",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m pricelens.cli.calibrate
    python -m pricelens.cli.calibrate --min-samples 100
    python -m pricelens.cli.calibrate --dataset houses.db --table houses
        """,
    )
    parser.add_argument(
        "--dataset",
        type=str,
        default=None,
        help="Reference dataset, CSV or SQLite (default: from config)",
    )
    parser.add_argument(
        "--table",
        type=str,
        default=None,
        help="Table name for SQLite datasets (default: from config)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Calibration JSON to write (default: from config)",
    )
    parser.add_argument(
        "--min-samples",
        type=int,
        default=MIN_CALIBRATION_SAMPLES,
        help=f"Minimum usable records (default: {MIN_CALIBRATION_SAMPLES})",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Set log level (default: INFO)",
    )

    args = parser.parse_args()

    setup_logging(level=args.log_level, force=True)
    logger = get_logger(__name__)

    config = get_config()
    dataset_path = args.dataset or config.dataset.path
    output_path = args.output or config.estimator.calibration_path

    logger.info("Starting calibration")
    logger.info("Dataset: %s", dataset_path)

    try:
        from pricelens.core.dataset import load_reference_dataset
        from pricelens.ml.calibration import calibrate

        dataset = load_reference_dataset(dataset_path, args.table)
        calibration = calibrate(dataset, min_samples=args.min_samples, source=dataset_path)
        calibration.save(output_path)

        metrics = calibration.metrics
        print("\nCalibration:")
        print(f"  Records: {calibration.sample_count}")
        print(f"  Sqft/price correlation: {calibration.sqft_price_correlation:.3f}")
        print(f"  Price per sqft: ${calibration.sqft_slope:,.2f} (intercept ${calibration.sqft_intercept:,.0f})")
        print(f"  Bedroom increment: ${calibration.bed_increment:,.0f} (baseline {calibration.baseline_bed:g})")
        print(f"  Bathroom increment: ${calibration.bath_increment:,.0f} (baseline {calibration.baseline_bath:g})")
        print(f"  Cities: {len(calibration.city_multipliers)}")
        print(f"  R² Score: {metrics.get('r2', 0):.4f}")
        print(f"  MAE: ${metrics.get('mae', 0):,.0f}")
        print(f"  MAPE: {metrics.get('mape', 0):.2f}%")
        print(f"  Saved to: {output_path}")

    except Exception as e:
        logger.error("Calibration error: %s", e, exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
