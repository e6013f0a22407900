"""Follow the redirects of a site and check how it upgrades to HTTPS.

Redirects are never followed automatically.  Each hop is requested
individually so that the chain can be recorded and capped at
MAX_REDIRECTS.
"""

# Standard Python Libraries
from typing import List, Optional, Tuple
from urllib import parse as urlparse

# Third-Party Libraries
import requests

from . import client, utils
from .issues import Issues, combine_issues
from .response import hsts_headers, preloadable_response

MAX_REDIRECTS = 3


def redirect_target(response: requests.Response) -> Optional[str]:
    """Return the absolute URL a redirect response points to, or None."""
    if not response.is_redirect:
        return None

    return urlparse.urljoin(response.url, response.headers["Location"])


def preloadable_redirects(initial_url: str) -> Tuple[List[str], Issues]:
    """Follow the redirects starting at `initial_url`.

    Returns the URLs redirected to, in order, and any problems met on
    the way.  An empty chain means the first response was not a
    redirect.  When there are more than MAX_REDIRECTS hops, the chain
    ends with the hop that went over the limit.
    """
    chain = []
    issues = Issues()
    url = initial_url

    try:
        while True:
            with client.get(url) as response:
                target = redirect_target(response)

            if target is None:
                break

            utils.debug("%s redirects to %s", url, target)
            chain.append(target)

            if len(chain) > MAX_REDIRECTS:
                return chain, issues.add_error(
                    "redirects.too_many",
                    "Too many redirects",
                    "There are more than %d redirects starting from `%s`.",
                    MAX_REDIRECTS,
                    initial_url,
                )

            url = target
    # urljoin raises ValueError on a malformed Location header.
    except (requests.exceptions.RequestException, ValueError) as err:
        utils.debug("%s: error following redirects: %s", initial_url, err)
        issues = issues.add_error(
            "redirects.follow_error",
            "Error following redirects",
            "Redirect error: %s",
            err,
        )

    return chain, issues


def preloadable_redirect_chain(initial_url: str, chain: List[str]) -> Issues:
    """Report the first hop of the chain that is not HTTPS."""
    issues = Issues()

    for i, url in enumerate(chain):
        if urlparse.urlparse(url).scheme == "https":
            continue

        if i == 0:
            return issues.add_error(
                "redirects.insecure.initial",
                "Insecure redirect",
                "`%s` redirects to an insecure page: `%s`",
                initial_url,
                url,
            )

        return issues.add_error(
            "redirects.insecure.subsequent",
            "Insecure redirect",
            "`%s` redirects to an insecure page on redirect #%d: `%s`",
            initial_url,
            i + 1,
            url,
        )

    return issues


def preloadable_http_redirects(domain: str) -> Tuple[Issues, Issues]:
    """Check how http://domain redirects.

    Returns two ledgers: general redirect issues, and the issues caused by
    the first redirect not serving a suitable HSTS header.  The second
    kind is often the same root cause as a missing header on the site
    itself, so callers may choose to drop it.
    """
    initial_url = "http://" + domain
    issues = Issues()

    try:
        with client.get(initial_url) as response:
            if hsts_headers(response):
                issues = issues.add_warning(
                    "redirects.http.useless_header",
                    "Unnecessary HSTS header over HTTP",
                    "The HTTP page at %s sends an HSTS header. This has no effect over HTTP, and should be removed.",
                    initial_url,
                )
    except requests.exceptions.RequestException as err:
        utils.debug("%s: not available over HTTP: %s", initial_url, err)
        return (
            issues.add_warning(
                "redirects.http.does_not_exist",
                "Unavailable over HTTP",
                "The site appears to be unavailable over plain HTTP (%s). "
                "This can prevent users without a freshly updated modern browser "
                "from connecting to the site when they visit a URL with http://",
                initial_url,
            ),
            Issues(),
        )

    general, first_redirect_hsts = preloadable_http_redirects_url(initial_url, domain)
    return combine_issues(issues, general), first_redirect_hsts


def preloadable_http_redirects_url(initial_url: str, domain: str) -> Tuple[Issues, Issues]:
    """Classify the redirects from `initial_url`, an HTTP URL for `domain`."""
    first_redirect_hsts = Issues()
    chain, general = preloadable_redirects(initial_url)
    secure_url = "https://" + domain

    if not chain:
        return (
            general.add_error(
                "redirects.http.no_redirect",
                "No redirect from HTTP",
                "`%s` does not redirect to `%s`.",
                initial_url,
                secure_url,
            ),
            first_redirect_hsts,
        )

    first = urlparse.urlparse(chain[0])
    # The port is part of the host, so https://example.com:8443 is a
    # different host.
    host = first.netloc.lower()

    if first.scheme == "https" and host == domain.lower():
        try:
            with client.get(chain[0]) as response:
                _, redirect_hsts_issues = preloadable_response(response)
        except requests.exceptions.RequestException as err:
            # This masks any other redirect problems.
            return general, first_redirect_hsts.add_error(
                "redirects.http.first_redirect.invalid",
                "Invalid redirect",
                "`%s` redirects to `%s`, which we could not connect to: %s",
                initial_url,
                chain[0],
                err,
            )

        if redirect_hsts_issues.errors:
            first_redirect_hsts = first_redirect_hsts.add_error(
                "redirects.http.first_redirect.no_hsts",
                "HTTP redirects to a page without HSTS",
                "`%s` redirects to `%s`, which does not serve a HSTS header that satisfies preload conditions. First error: %s",
                initial_url,
                chain[0],
                redirect_hsts_issues.errors[0].summary,
            )

        general = combine_issues(general, preloadable_redirect_chain(initial_url, chain))
        return general, first_redirect_hsts

    if host == "www." + domain.lower():
        # Same message for http://example.com -> http://www.example.com
        # and http://example.com -> https://www.example.com
        return (
            general.add_error(
                "redirects.http.www_first",
                "HTTP redirects to www first",
                "`%s` (HTTP) should immediately redirect to `%s` (HTTPS) "
                "before adding the www subdomain. Right now, the first redirect is to `%s`. "
                "The extra redirect is required to ensure that any browser which supports HSTS "
                "will record the HSTS entry for the top level domain, not just the subdomain.",
                initial_url,
                secure_url,
                chain[0],
            ),
            first_redirect_hsts,
        )

    return (
        general.add_error(
            "redirects.http.first_redirect.insecure",
            "HTTP does not redirect to HTTPS",
            "`%s` (HTTP) redirects to `%s`. The first redirect "
            "from `%s` should be to a secure page on the same host (`%s`).",
            initial_url,
            chain[0],
            initial_url,
            secure_url,
        ),
        first_redirect_hsts,
    )


def preloadable_https_redirects(domain: str) -> Issues:
    """Check that https://domain never redirects to an insecure page."""
    return preloadable_https_redirects_url("https://" + domain)


def preloadable_https_redirects_url(initial_url: str) -> Issues:
    """Check that `initial_url` never redirects to an insecure page."""
    chain, issues = preloadable_redirects(initial_url)
    return combine_issues(issues, preloadable_redirect_chain(initial_url, chain))
