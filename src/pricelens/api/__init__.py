"""
REST API for the price prediction service.

Flask-based API with endpoints for image classification, feature-based
estimates, combined predictions and dataset statistics.
"""

from pricelens.api.server import create_app, run_server

__all__ = [
    "create_app",
    "run_server",
]
