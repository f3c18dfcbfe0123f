#!/usr/bin/env python
"""
CLI for reference dataset statistics.

Usage:
    python -m pricelens.cli.stats
    python -m pricelens.cli.stats --dataset data/socal_houses.csv --json
"""

import argparse
import json
import sys

from pricelens.logging_config import setup_logging, get_logger
from pricelens.utils.price_parser import format_price, format_price_range


def main():
    """Main entry point for the statistics CLI."""
    parser = argparse.ArgumentParser(description="Show reference dataset statistics")
    parser.add_argument("--dataset", type=str, default=None, help="Reference dataset (default: from config)")
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Set log level (default: WARNING)",
    )

    args = parser.parse_args()

    setup_logging(level=args.log_level, force=True)
    logger = get_logger(__name__)

    try:
        from pricelens.core.dataset import load_reference_dataset
        from pricelens.core.statistics import aggregate

        stats = aggregate(load_reference_dataset(args.dataset))
    except Exception as e:
        logger.error("Statistics failed: %s", e, exc_info=True)
        print(f"Error: {e}")
        sys.exit(1)

    if args.json:
        print(json.dumps(stats.to_api_dict(), indent=2))
        return

    print(f"\nHouses: {stats.total_count:,}")
    print(f"Average price: {format_price(stats.average_price)}")
    print(f"Average size: {stats.average_sqft:,.0f} sqft")
    print(f"Average bed/bath: {stats.average_bed:.1f} / {stats.average_bath:.1f}")
    print("\nPrice ranges:")
    for name, bucket in stats.price_range_buckets.items():
        band = format_price_range(bucket.min, bucket.max, open_ended=name == "high")
        print(f"  {name:<5} {band:<28} {bucket.count:>7,} ({stats.percentage(bucket.count)}%)")
    print("\nBedrooms:")
    for beds, count in stats.bed_distribution.items():
        print(f"  {beds:>3}: {count:,} ({stats.percentage(count)}%)")
    print("\nBathrooms:")
    for baths, count in stats.bath_distribution.items():
        print(f"  {baths:>4}: {count:,} ({stats.percentage(count)}%)")
    print()


if __name__ == "__main__":
    main()
