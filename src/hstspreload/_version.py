"""This file defines the version of this module."""
__version__ = "1.0.0"
