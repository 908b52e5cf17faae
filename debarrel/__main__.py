"""Entry point for running debarrel as a module."""

import sys

from debarrel.cli.main import main

if __name__ == "__main__":
    sys.exit(main())
