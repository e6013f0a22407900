"""Define utility functions for the hstspreload library."""

# Standard Python Libraries
import contextlib
import datetime
import json
import logging
import re
import sys


def json_for(data):
    """Pretty format the given object to JSON."""
    return json.dumps(data, sort_keys=True, indent=2, default=format_datetime)


def format_datetime(obj):
    """Provide a formatted datetime."""
    if isinstance(obj, datetime.date):
        return obj.isoformat()
    if isinstance(obj, str):
        return obj
    return None


# Load domains from a file (or stdin) with one domain per line.
def load_domains(lines):
    """Load a list of domains, skipping blank lines and # comments."""
    domains = []
    for line in lines:
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        domains.append(line.lower())
    return domains


def format_domains(domains):
    """Format a given list of domains."""
    formatted_domains = []

    for domain in domains:
        # Drop a single leading http:// or https:// and any trailing slash.
        formatted_domains.append(re.sub(r"^https?://", "", domain).rstrip("/"))

    return formatted_domains


# Configure logging level, so logging.debug can hinge on --debug.
def configure_logging(debug_logging=False):
    """Configure the logging library."""
    log_level = logging.DEBUG if debug_logging else logging.WARNING
    logging.basicConfig(format="%(message)s", level=log_level)


def debug(*args, divider=False):
    """Output a debugging message."""
    if divider:
        logging.debug("\n-------------------------\n")

    if args:
        logging.debug(*args)


@contextlib.contextmanager
def smart_open(filename=None):
    """Context manager that can handle writing to a file or stdout.

    Adapted from: https://stackoverflow.com/a/17603000
    """
    handle = sys.stdout if filename is None else open(filename, "w", encoding="utf-8")

    try:
        yield handle
    finally:
        if handle is not sys.stdout:
            handle.close()
