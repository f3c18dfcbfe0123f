#!/usr/bin/env python
"""
CLI for house price predictions.

Usage:
    python -m pricelens.cli.predict --sqft 1500 --bed 3 --bath 2 --city "Los Angeles, CA"
    python -m pricelens.cli.predict --image house.jpg --sqft 2200 --bed 4 --bath 2.1
"""

import argparse
import json
import sys

from pricelens.logging_config import setup_logging, get_logger
from pricelens.utils.price_parser import format_price, format_price_range


def _print_result(result) -> None:
    print("\n" + "=" * 50)
    print("House Price Prediction")
    print("=" * 50)

    image = result.image_result
    print("\nImage classifier:")
    if image is not None:
        band = image.price_band
        print(f"  Tier: {image.tier.value} ({image.confidence:.1%})")
        print(f"  Band: {format_price_range(band.min, band.max, open_ended=band.open_ended)}")
        for tier, confidence in image.per_tier_confidences.items():
            print(f"    {tier}: {confidence:.1%}")
    elif result.image_error is not None:
        print(f"  Failed: {result.image_error.message}")
    else:
        print("  Not run")

    feature = result.feature_result
    print("\nFeature model:")
    if feature is not None:
        print(f"  Estimated Value: {format_price(feature.predicted_price)}")
        print(f"  Range: {feature.price_range_label}")
        print(f"  Confidence: {feature.confidence:.1%}")
        print("  Factors:")
        for name, text in feature.factors.items():
            print(f"    {name}: {text}")
    elif result.feature_error is not None:
        print(f"  Failed: {result.feature_error.message}")
    else:
        print("  Not run")

    if result.reconciliation_notes:
        print("\nNotes:")
        for note in result.reconciliation_notes:
            print(f"  - {note}")
    print()


def main():
    """Main entry point for the prediction CLI."""
    parser = argparse.ArgumentParser(
        description="Predict house prices from a photo and/or property features",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m pricelens.cli.predict --sqft 1500 --bed 3 --bath 2 --city "Los Angeles, CA"
    python -m pricelens.cli.predict --image house.jpg
    python -m pricelens.cli.predict --image house.jpg --sqft 1800 --bed 3 --bath 2.1 --json
        """,
    )
    parser.add_argument("--image", type=str, default=None, help="House photo to classify")
    parser.add_argument("--sqft", type=float, default=None, help="Square footage")
    parser.add_argument("--bed", type=int, default=None, help="Number of bedrooms")
    parser.add_argument("--bath", type=float, default=None, help="Bathrooms as full.half (2.1 = 2 full + 1 half)")
    parser.add_argument("--city", type=str, default=None, help='City, e.g. "Los Angeles, CA"')
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

    features = {"sqft": args.sqft, "bed": args.bed, "bath": args.bath, "city": args.city}
    has_features = any(value is not None for value in features.values())

    if args.image is None and not has_features:
        parser.error("provide --image and/or at least one property feature")

    try:
        from pricelens.service import PredictionService

        service = PredictionService.from_config()
        image_bytes = None
        if args.image:
            service.classifier.load()
            with open(args.image, "rb") as f:
                image_bytes = f.read()

        result = service.predict_combined(image_bytes, features if has_features else None)

        if args.json:
            print(json.dumps(result.to_dict(), indent=2))
        else:
            _print_result(result)

        if result.image_result is None and result.feature_result is None:
            sys.exit(1)

    except Exception as e:
        logger.error("Prediction failed: %s", e, exc_info=True)
        if args.json:
            print(json.dumps({"error": str(e)}))
        else:
            print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
