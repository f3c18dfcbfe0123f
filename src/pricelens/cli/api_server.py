#!/usr/bin/env python
"""
CLI for running the PriceLens API server.

Usage:
    python -m pricelens.cli.api_server
    python -m pricelens.cli.api_server --port 8080 --no-model
"""

import argparse
import sys

from pricelens.config import get_config
from pricelens.logging_config import setup_logging


def main():
    """Start the Flask API serving image, feature and combined predictions."""
    parser = argparse.ArgumentParser(
        description="PriceLens prediction API server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m pricelens.cli.api_server
    python -m pricelens.cli.api_server --host 0.0.0.0 --port 8080
    python -m pricelens.cli.api_server --no-model      # feature estimates and stats only
        """,
    )
    parser.add_argument("--host", type=str, default=None, help="Host to bind to (default: PRICELENS_API_HOST)")
    parser.add_argument("--port", type=int, default=None, help="Port to bind to (default: PRICELENS_API_PORT)")
    parser.add_argument("--debug", action="store_true", help="Enable Flask debug mode")
    parser.add_argument(
        "--no-model",
        action="store_true",
        help="Do not load the image classifier; /api/classify answers 503",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set log level (default: PRICELENS_LOG_LEVEL)",
    )

    args = parser.parse_args()

    logger = setup_logging(level=args.log_level, force=args.log_level is not None)

    config = get_config()
    load_model = False if args.no_model else config.image_model.load_on_startup

    logger.info("Reference dataset: %s", config.dataset.path)
    logger.info("Calibration file: %s", config.estimator.calibration_path)
    if load_model:
        logger.info("Image model: %s", config.image_model.model_path)
    else:
        logger.info("Image model loading disabled")
    logger.info("Upload limit: %.1f MB", config.api.max_upload_mb)

    try:
        from pricelens.api.server import run_server
        run_server(host=args.host, port=args.port, debug=args.debug or None, load_model=load_model)
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
        sys.exit(0)
    except Exception as e:
        logger.error("Server error: %s", e, exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
