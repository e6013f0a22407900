"""The HTTP client used by every check.

TIMEOUT and USER_AGENT are module-level defaults that configure() can
override (the CLI does this for --timeout and --user-agent).
"""

# Third-Party Libraries
import requests
import urllib3

# Some probes deliberately skip certificate validation, and we don't want
# a warning for each of them.
urllib3.disable_warnings()

# Seconds; applies to connecting and to each read.  Overridable via --timeout.
TIMEOUT = 10

# Overridable via --user-agent.
USER_AGENT = "hstspreload, HSTS preload checks"


def configure(options):
    """Override the client defaults from an options dict."""
    global TIMEOUT, USER_AGENT

    if options.get("timeout"):
        TIMEOUT = int(options["timeout"])
    if options.get("user_agent"):
        USER_AGENT = options["user_agent"]


def get(url, verify=True):
    """GET a URL without following redirects.

    Callers follow redirects themselves, one hop at a time, so that each
    hop can be recorded and the number of hops capped.

    The response is streamed and its body is never read, so that sites
    that stream endless content can't hang a check.  The caller must
    close() the response (or use it in a `with` statement) to release
    the connection.
    """
    return requests.get(
        url,
        allow_redirects=False,
        verify=verify,
        stream=True,
        headers={"User-Agent": USER_AGENT},
        timeout=TIMEOUT,
    )
