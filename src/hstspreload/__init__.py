"""The hstspreload library checks sites against the HSTS preload list requirements."""

# We disable a Flake8 check for "Module imported but unused (F401)" here because
# although this import is not directly used, it populates the value
# package_name.__version__, which is used to get version information about this
# Python package.
from ._version import __version__  # noqa: F401
from .domain import preloadable_domain, preloadable_domain_response, removable_domain
from .header import (
    HSTSHeader,
    parse_header_string,
    preloadable_header,
    preloadable_header_string,
    removable_header,
    removable_header_string,
)
from .issues import Issue, Issues, combine_issues
from .response import preloadable_response, removable_response

__all__ = [
    "HSTSHeader",
    "Issue",
    "Issues",
    "combine_issues",
    "parse_header_string",
    "preloadable_domain",
    "preloadable_domain_response",
    "preloadable_header",
    "preloadable_header_string",
    "preloadable_response",
    "removable_domain",
    "removable_header",
    "removable_header_string",
    "removable_response",
]
