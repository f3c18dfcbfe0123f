"""
Flask Application Factory

Creates and configures the Flask application.
"""

from typing import Optional

from flask import Flask

from pricelens.config import get_config
from pricelens.api.routes import register_routes
from pricelens.logging_config import setup_logging, get_logger
from pricelens.service import PredictionService

logger = get_logger(__name__)


def create_app(
    test_config=None,
    service: Optional[PredictionService] = None,
    load_model: Optional[bool] = None,
) -> Flask:
    """Create and configure the Flask application.

    Args:
        test_config: Optional test configuration dict.
        service: Prediction service to expose. Built from config if not provided.
        load_model: Start loading the image model in the background when the
            service is built here. Defaults to PRICELENS_LOAD_MODEL_ON_STARTUP.

    Returns:
        Configured Flask application.
    """
    config = get_config()

    setup_logging()

    app = Flask(__name__)

    app.config["DEBUG"] = config.api.debug
    app.config["MAX_CONTENT_LENGTH"] = int(config.api.max_upload_mb * 1024 * 1024)

    if test_config:
        app.config.update(test_config)

    # Enable CORS
    try:
        from flask_cors import CORS
        CORS(app)
    except ImportError:
        logger.warning("flask-cors not installed, CORS not enabled")

    if service is None:
        service = PredictionService.from_config(config)
        if load_model is None:
            load_model = config.image_model.load_on_startup
        if load_model:
            service.start_model_loading()

    app.extensions["pricelens"] = service

    register_routes(app)

    logger.info("Flask app created")
    return app


def run_server(host: str = None, port: int = None, debug: bool = None, load_model: bool = None):
    """Run the Flask development server.

    Args:
        host: Host to bind to.
        port: Port to bind to.
        debug: Enable debug mode.
        load_model: Load the image model at startup (default: from config).
    """
    config = get_config()

    host = host or config.api.host
    port = port or config.api.port
    debug = debug if debug is not None else config.api.debug

    app = create_app(load_model=load_model)

    logger.info("Starting server on %s:%d", host, port)
    app.run(host=host, port=port, debug=debug)
