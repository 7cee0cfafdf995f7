"""
Entry point for running the primate store as a module.

Usage:
    python -m services.primate_store [args]
"""

import sys

from .main import cli_main

if __name__ == "__main__":
    sys.exit(cli_main())
