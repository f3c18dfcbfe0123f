"""
Image modules: preprocessing and the price-tier classifier adapter.
"""

from pricelens.imaging.preprocessor import ImagePreprocessor, preprocess
from pricelens.imaging.classifier import ImageClassifier

__all__ = [
    "ImagePreprocessor",
    "preprocess",
    "ImageClassifier",
]
