"""
Command-line interface modules.

Provides CLI entry points for:
- api_server: Start the REST API
- calibrate: Calibrate the feature-based estimator from the reference dataset
- predict: Predict a price from a photo and/or property features
- stats: Show reference dataset statistics
"""
