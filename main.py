#!/usr/bin/env python3
"""
Main entry point for logpipe.
"""

from logpipe.cli import main


if __name__ == "__main__":
    main()
