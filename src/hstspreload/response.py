"""Check the HSTS header served on an HTTP response."""

# Standard Python Libraries
from typing import List, Optional, Tuple

# Third-Party Libraries
import requests

from .header import preloadable_header_string, removable_header_string
from .issues import Issues, combine_issues

HSTS_HEADER = "Strict-Transport-Security"


def hsts_headers(response: requests.Response) -> List[str]:
    """Return every Strict-Transport-Security value on the response.

    requests joins repeated headers with commas, so the values are read
    from the raw urllib3 headers when those are available.
    """
    raw_headers = getattr(response.raw, "headers", None)
    if raw_headers is not None and hasattr(raw_headers, "getlist"):
        return list(raw_headers.getlist(HSTS_HEADER))

    value = response.headers.get(HSTS_HEADER)
    if value is None:
        return []
    return [value]


def check_single_header(response: requests.Response) -> Tuple[Optional[str], Issues]:
    """Return the response's HSTS header if there is exactly one."""
    issues = Issues()
    headers = hsts_headers(response)

    if not headers:
        return None, issues.add_error(
            "response.no_header",
            "No HSTS header",
            "Response error: No HSTS header is present on the response.",
        )

    if len(headers) > 1:
        return None, issues.add_error(
            "response.multiple_headers",
            "Multiple HSTS headers",
            "Response error: Multiple HSTS headers (number of HSTS headers: %d).",
            len(headers),
        )

    return headers[0], issues


def check_response(response, header_condition):
    """Check the single HSTS header of `response` with `header_condition`."""
    header, issues = check_single_header(response)
    if issues.errors:
        return None, issues

    return header, combine_issues(issues, header_condition(header))


def preloadable_response(response: requests.Response) -> Tuple[Optional[str], Issues]:
    """Check that the response has one HSTS header meeting the preload requirements.

    The header is returned only if exactly one HSTS header was received.
    """
    return check_response(response, preloadable_header_string)


def removable_response(response: requests.Response) -> Tuple[Optional[str], Issues]:
    """Check that the response has one HSTS header meeting the removal requirements."""
    return check_response(response, removable_header_string)
