"""Check many domains for preload requirements in parallel.

Results are produced in the order the checks finish, not in the order
the domains were given.
"""

# Standard Python Libraries
import concurrent.futures
import logging
import textwrap
from typing import Iterable, Iterator, List

# Third-Party Libraries
import pytablewriter

from . import utils
from .domain import preloadable_domain_response
from .issues import Issues
from .models import CertSummary, Result

# Caps the number of domains being checked (and so the number of open
# connections) at once.
PARALLELISM = 100

MARKDOWN_HEADERS = ["Domain", "Header", "Errors", "Warnings"]


def check_domain(domain: str, retry_on_errors: bool = False) -> Result:
    """Check one domain and wrap the outcome in a Result.

    With retry_on_errors, a domain whose first check reports any errors
    is checked exactly once more, and the second outcome is kept.
    """
    header, issues, state = preloadable_domain_response(domain)

    if retry_on_errors and issues.errors:
        utils.debug("%s: retrying after %d errors", domain, len(issues.errors))
        header, issues, state = preloadable_domain_response(domain)

    return Result(
        domain,
        issues,
        header=header,
        leaf_cert_summary=CertSummary.from_connection_state(state),
    )


def preloadable(
    domains: Iterable[str], workers: int = PARALLELISM, retry_on_errors: bool = False
) -> Iterator[Result]:
    """Check every domain, yielding each Result as soon as it is ready.

    Exactly one Result is yielded per domain.  A check that raises is
    reported as an internal error for that domain instead of stopping
    the batch.
    """
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {
            executor.submit(check_domain, domain, retry_on_errors): domain
            for domain in domains
        }

        for future in concurrent.futures.as_completed(futures):
            domain = futures[future]
            try:
                yield future.result()
            except Exception as err:
                logging.exception("Unexpected exception while checking %s.", domain)
                yield Result(
                    domain,
                    Issues().add_error(
                        "internal.batch.unexpected_error",
                        "Internal error",
                        "An unexpected error occurred while checking `%s`: %s",
                        domain,
                        err,
                    ),
                )


def run_batch(
    domains: Iterable[str], workers: int = PARALLELISM, retry_on_errors: bool = False
) -> List[Result]:
    """Check every domain and return all the Results, in completion order."""
    return list(preloadable(domains, workers=workers, retry_on_errors=retry_on_errors))


def fprint(
    stream, domains: Iterable[str], workers: int = PARALLELISM, retry_on_errors: bool = False
) -> List[Result]:
    """Check every domain, writing a JSON array of Results to `stream`.

    Each Result is written as soon as it is ready.  Returns the Results.
    """
    domains = list(domains)
    results = []

    stream.write("[\n")
    for i, result in enumerate(
        preloadable(domains, workers=workers, retry_on_errors=retry_on_errors)
    ):
        results.append(result)
        comma = "," if i != len(domains) - 1 else ""
        stream.write(textwrap.indent(utils.json_for(result.to_object()), "  "))
        stream.write(comma + "\n")
        stream.flush()
    stream.write("]\n")

    return results


def to_markdown(results: Iterable[Result], stream):
    """Write a Markdown table summarizing each Result."""
    table = [
        [
            result.domain,
            result.header or "",
            ", ".join(issue.code for issue in result.issues.errors),
            ", ".join(issue.code for issue in result.issues.warnings),
        ]
        for result in results
    ]

    utils.debug("Printing Markdown...", divider=True)
    writer = pytablewriter.MarkdownTableWriter()

    writer.headers = MARKDOWN_HEADERS
    writer.value_matrix = table
    writer.stream = stream

    writer.write_table()
