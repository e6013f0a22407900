"""Code to run if this package is used as a Python module."""

# Standard Python Libraries
import sys

from .cli import main

sys.exit(main())
