"""
CLI module.

This module provides the command-line interface for interacting with logpipe.
"""

from logpipe.cli.main import main, app

__all__ = ['main', 'app']
