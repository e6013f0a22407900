"""Check whether a domain can be added to, or removed from, the preload list.

preloadable_domain() checks the format of the name, that it is a whole
registrable domain, that it serves a suitable HSTS header, that it
upgrades HTTP to HTTPS properly, and that its TLS setup won't cause new
problems for browser users once preloaded.
"""

# Standard Python Libraries
import concurrent.futures
import logging
import socket
import threading
from typing import Optional, Tuple

# Third-Party Libraries
from OpenSSL import SSL
from publicsuffixlist import PublicSuffixList
import requests

from . import client, utils
from .issues import Issues, combine_issues
from .redirects import preloadable_http_redirects, preloadable_https_redirects
from .response import preloadable_response, removable_response
from .tls import ConnectionState, check_chain, get_connection_state

VALID_DOMAIN_CHARACTERS = frozenset("abcdefghijklmnopqrstuvwxyz0123456789-.")

# Used for determining the registrable domain via Mozilla's public suffix
# list.  Loaded on first use.
suffix_list = None
suffix_list_lock = threading.Lock()


def load_suffix_list():
    """Return the public suffix list, loading it if necessary."""
    global suffix_list

    with suffix_list_lock:
        if suffix_list is None:
            utils.debug("Loading the Public Suffix List...", divider=True)
            suffix_list = PublicSuffixList()
    return suffix_list


def check_domain_format(domain: str) -> Issues:
    """Check that `domain` is a well-formed domain name.

    Only the first problem found is reported.
    """
    issues = Issues()

    if domain.startswith("."):
        return issues.add_error(
            "domain.format.begins_with_dot",
            "Invalid domain name",
            "Please provide a domain that does not begin with `.`",
        )
    if domain.endswith("."):
        return issues.add_error(
            "domain.format.ends_with_dot",
            "Invalid domain name",
            "Please provide a domain that does not end with `.`",
        )
    if ".." in domain:
        return issues.add_error(
            "domain.format.contains_double_dot",
            "Invalid domain name",
            "Please provide a domain that does not contain `..`",
        )
    if domain.count(".") < 1:
        return issues.add_error(
            "domain.format.only_one_label",
            "Invalid domain name",
            "Please provide a domain with least two labels (e.g. `example.com` rather than `example` or `com`).",
        )
    if any(character not in VALID_DOMAIN_CHARACTERS for character in domain.lower()):
        return issues.add_error(
            "domain.format.invalid_characters",
            "Invalid domain name",
            "Please provide a domain using valid characters (letters, numbers, dashes, dots).",
        )

    return issues


def check_etld1(domain: str) -> Issues:
    """Check that `domain` is a registrable domain (eTLD+1), not a subdomain."""
    issues = Issues()
    domain = domain.lower()

    canonical = load_suffix_list().privatesuffix(domain)
    if canonical is None:
        return issues.add_error(
            "internal.domain.name.cannot_compute_etld1",
            "Could not compute eTLD+1",
            "Internal error: could not compute eTLD+1 for `%s`.",
            domain,
        )

    if canonical != domain:
        return issues.add_error(
            "domain.is_subdomain",
            "Subdomain",
            "`%s` is a subdomain. Please preload `%s` instead. "
            "(Due to the size of the preload list and the behaviour of "
            "cookies across subdomains, we only accept automated preload list "
            "submissions of whole registered domains.)",
            domain,
            canonical,
        )

    return issues


def get_response(domain: str) -> Tuple[Optional[requests.Response], Issues]:
    """Make the initial HTTPS request to a domain.

    The request is tried twice with certificate validation.  If both
    attempts fail, one more request is made without validation, only to
    tell an invalid certificate chain apart from a site we can't reach
    at all.  Nothing from that last response is used.
    """
    issues = Issues()
    url = "https://" + domain

    for attempt in (1, 2):
        try:
            return client.get(url), issues
        except requests.exceptions.RequestException as err:
            utils.debug("%s: attempt %d failed: %s", url, attempt, err)

    try:
        with client.get(url, verify=False):
            pass
    except requests.exceptions.RequestException as err:
        return None, issues.add_error(
            "domain.tls.cannot_connect",
            "Cannot connect using TLS",
            "We cannot connect to https://%s using TLS (%s).",
            domain,
            err,
        )

    return None, issues.add_error(
        "domain.tls.invalid_cert_chain",
        "Invalid Certificate Chain",
        "https://%s uses an incomplete or invalid certificate chain. "
        "Check out your site at https://www.ssllabs.com/ssltest/",
        domain,
    )


def check_www(domain: str) -> Issues:
    """Check that www.domain supports HTTPS, if it exists at all."""
    issues = Issues()
    host = "www." + domain

    try:
        socket.create_connection((host, 443), timeout=client.TIMEOUT).close()
    except OSError as err:
        utils.debug("%s: no www subdomain on port 443: %s", domain, err)
        return issues

    # Only a failed connection or handshake counts. SSLError and
    # ConnectTimeout are both ConnectionErrors.
    try:
        with client.get("https://" + host):
            pass
    except requests.exceptions.ConnectionError as err:
        return issues.add_error(
            "domain.www.no_tls",
            "www subdomain does not support HTTPS",
            "Domain error: The www subdomain exists, but we couldn't connect to it using HTTPS (%s). "
            "Since many people type this by habit, HSTS preloading would likely cause issues for your site.",
            err,
        )
    except requests.exceptions.RequestException as err:
        utils.debug("%s: TLS connection succeeded, but the request failed: %s", host, err)

    return issues


def check_tls(domain: str) -> Tuple[Optional[ConnectionState], Issues]:
    """Inspect the TLS connection to a domain we already reached over HTTPS."""
    try:
        state = get_connection_state(domain)
    except (OSError, SSL.Error) as err:
        return None, Issues().add_error(
            "internal.domain.tls.connection_state",
            "Could not inspect TLS connection",
            "Internal error: we reached https://%s, but could not inspect its TLS connection (%s).",
            domain,
            err,
        )

    return state, check_chain(state)


def _unexpected_error(name):
    return Issues().add_error(
        "internal.check.unexpected_error",
        "Internal error",
        "An unexpected error occurred while running the %s check.",
        name,
    )


def _result(future, name, fallback):
    """Return the result of a finished check, or `fallback` if it raised."""
    try:
        return future.result()
    except Exception:
        logging.exception("Unexpected exception in the %s check.", name)
        return fallback


def preloadable_domain_response(
    domain: str,
) -> Tuple[Optional[str], Issues, Optional[ConnectionState]]:
    """Check a domain against the preload requirements.

    Returns the HSTS header (only if exactly one was received), the
    issues found, and the TLS connection state (if a connection could
    be inspected).
    """
    utils.debug("Checking %s for preload requirements...", domain, divider=True)

    # Format problems make every other check meaningless.
    issues = check_domain_format(domain)
    if issues.errors:
        return None, issues, None

    # Subdomains are rejected, but we still report everything else.
    etld1_issues = check_etld1(domain)
    issues = combine_issues(issues, etld1_issues)

    response, response_issues = get_response(domain)
    issues = combine_issues(issues, response_issues)
    if response_issues.errors:
        return None, issues, None

    state, tls_issues = check_tls(domain)

    with response:
        # Leaving this block waits for every check, even ones whose result
        # ends up unused.
        with concurrent.futures.ThreadPoolExecutor(max_workers=4) as executor:
            header_future = executor.submit(preloadable_response, response)
            http_future = executor.submit(preloadable_http_redirects, domain)
            https_future = executor.submit(preloadable_https_redirects, domain)
            www_future = None
            if not etld1_issues.errors:
                www_future = executor.submit(check_www, domain)

    header, header_issues = _result(
        header_future, "header", (None, _unexpected_error("header"))
    )
    http_issues, first_redirect_hsts_issues = _result(
        http_future, "HTTP redirect", (_unexpected_error("HTTP redirect"), Issues())
    )
    https_issues = _result(
        https_future, "HTTPS redirect", _unexpected_error("HTTPS redirect")
    )
    www_issues = Issues()
    if www_future is not None:
        www_issues = _result(www_future, "www", _unexpected_error("www"))

    issues = combine_issues(issues, tls_issues)
    issues = combine_issues(issues, header_issues)
    issues = combine_issues(issues, http_issues)
    # A missing header on the first redirect is usually the same problem as
    # a missing header on the site, so only report it if the site is fine.
    if not header_issues.errors:
        issues = combine_issues(issues, first_redirect_hsts_issues)
    issues = combine_issues(issues, https_issues)
    issues = combine_issues(issues, www_issues)

    return header, issues, state


def preloadable_domain(domain: str) -> Tuple[Optional[str], Issues]:
    """Check a domain against the preload requirements.

    Returns the HSTS header (only if exactly one was received) and the
    issues found.
    """
    header, issues, _ = preloadable_domain_response(domain)
    return header, issues


def removable_domain(domain: str) -> Tuple[Optional[str], Issues]:
    """Check a domain against the requirements for removal from the preload list."""
    utils.debug("Checking %s for removal requirements...", domain, divider=True)

    response, issues = get_response(domain)
    if issues.errors:
        return None, issues

    with response:
        header, response_issues = removable_response(response)

    return header, combine_issues(issues, response_issues)
