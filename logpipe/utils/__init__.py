"""
Utilities module.

This module contains configuration loading and logging setup.
"""

from logpipe.utils.config import (
    PipelineConfig,
    SourceConfig,
    FilterConfig,
    CollectorConfig,
    PreprocessorConfig,
    load_config,
    create_default_config,
    DEFAULT_CONFIG,
    parse_duration,
)
from logpipe.utils.logsetup import setup_logging

__all__ = [
    'PipelineConfig',
    'SourceConfig',
    'FilterConfig',
    'CollectorConfig',
    'PreprocessorConfig',
    'load_config',
    'create_default_config',
    'DEFAULT_CONFIG',
    'parse_duration',
    'setup_logging',
]
