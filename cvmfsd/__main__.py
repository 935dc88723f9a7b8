"""Entry point for running the cvmfs volume plugin.

This module provides the `python -m cvmfsd` entry point.
"""

from .cli import main

if __name__ == "__main__":
    main()
