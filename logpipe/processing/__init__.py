"""
Log processing module.

This module handles filtering, cleaning, transformation, normalization,
enrichment and validation of raw log records.
"""

from logpipe.processing.filters import Filter, FilterType, parse_condition
from logpipe.processing.transformations import Transformation, default_transformations
from logpipe.processing.cleaning import REDACTION_MARKER, SENSITIVE_KEYS
from logpipe.processing.preprocessor import LogPreprocessor

__all__ = [
    'Filter',
    'FilterType',
    'parse_condition',
    'Transformation',
    'default_transformations',
    'REDACTION_MARKER',
    'SENSITIVE_KEYS',
    'LogPreprocessor',
]
