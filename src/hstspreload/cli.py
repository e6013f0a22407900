"""hstspreload checks sites against the requirements of the HSTS preload list.

EXIT STATUS
    0   Passed all checks.
    1   Error (failed at least one requirement).
    2   Had warnings, but passed all requirements.
    3   Invalid command line arguments.

Usage:
  hstspreload preloadabledomain <domain> [options]
  hstspreload removabledomain <domain> [options]
  hstspreload preloadableheader <header> [options]
  hstspreload removableheader <header> [options]
  hstspreload batch [<file>] [options]
  hstspreload scan-pending [options]
  hstspreload scan-preloaded [options]
  hstspreload status <domain> [options]
  hstspreload (-h | --help)
  hstspreload --version

Commands:
  preloadabledomain (+d)  Check the TLS configuration and headers of a domain
                          for preload requirements.
  removabledomain (-d)    Check the headers of a domain for removal
                          requirements.
  preloadableheader (+h)  Check an HSTS header for preload requirements.
  removableheader (-h)    Check an HSTS header for removal requirements.
  batch                   Check a batch of domains for preload requirements.
                          Reads one domain per line from <file> (or stdin),
                          and outputs JSON in completion order.
  scan-pending            Run the batch check on every domain pending
                          submission at hstspreload.org.
  scan-preloaded          Run the batch check on every domain on the
                          preload list.
  status                 Check whether a domain is on the preload list.

Options:
  -h --help                 Show this message.
  --version                 Show the version.
  -d --debug                Print debug output.
  -t --timeout=SECONDS      Override the timeout of each request (in seconds).
  -u --user-agent=AGENT     Override the user agent.
  -m --markdown             Output batch results as a Markdown table.
  -o --output=FILE          Write batch results to FILE. (Defaults to stdout.)
  -w --workers=N            Number of domains to check at once. [default: 100]
  -r --retry                Check a domain a second time if the first check
                            reports errors.
  -p --preload-list=PATH    Read the preload list from a JSON file instead of
                            fetching the latest one.

Examples:
  hstspreload +d wikipedia.org
  hstspreload +h "max-age=10886400; includeSubDomains; preload"
  hstspreload -h "max-age=10886400; includeSubDomains"
  hstspreload batch domains.txt --markdown
"""

# Standard Python Libraries
import logging
import sys
from typing import Any, Dict

# Third-Party Libraries
import docopt
import requests
from schema import And, Or, Schema, SchemaError, Use

from . import batch, client, preloadlist, utils
from ._version import __version__
from .domain import preloadable_domain, removable_domain
from .header import preloadable_header_string, removable_header_string
from .issues import Issues

EXIT_PASSED = 0
EXIT_ERRORS = 1
EXIT_WARNINGS = 2
EXIT_INVALID_ARGUMENTS = 3

# Short names for the single-site commands.
ALIASES = {
    "+d": "preloadabledomain",
    "-d": "removabledomain",
    "+h": "preloadableheader",
    "-h": "removableheader",
}


def probably_header(text):
    return ";" in text or " " in text


def probably_url(text):
    return text.startswith(("http://", "https://")) or ":" in text or "/" in text


def probably_domain(text):
    return "." in text and " " not in text


def warn_if_not_header(text):
    """Warn when the argument looks like something other than a header."""
    if probably_url(text):
        logging.warning(
            "Warning: please supply an HSTS header string (it appears you supplied a URL)."
        )
    elif probably_domain(text):
        logging.warning(
            "Warning: please supply an HSTS header string (it appears you supplied a domain)."
        )


def domain_argument_error(text):
    """Explain why the argument can't be a domain, or return None."""
    if probably_header(text):
        return "Invalid argument: please supply a domain (example.com), not a header string."
    if probably_url(text):
        return (
            "Invalid argument: please supply a domain (example.com) "
            "rather than a URL (https://example.com/index.html)."
        )
    return None


def format_issue_list(issue_list, title):
    """Render a numbered list of issues, or "" if there are none."""
    if not issue_list:
        return ""

    if len(issue_list) != 1:
        title += "s"

    lines = ["%s:" % title]
    for i, issue in enumerate(issue_list, start=1):
        lines.append("")
        lines.append("%d. %s [%s]" % (i, issue.summary, issue.code))
        lines.append(issue.message)
    lines.append("")

    return "\n".join(lines) + "\n"


def exit_code(issues: Issues) -> int:
    if issues.errors:
        return EXIT_ERRORS
    if issues.warnings:
        return EXIT_WARNINGS
    return EXIT_PASSED


def show_result(header, issues: Issues, out=None) -> int:
    """Print the observed header and the issues, and return the exit code."""
    out = out or sys.stdout

    if header is not None:
        out.write("Observed header: %s\n" % header)
    out.write("\n")

    code = exit_code(issues)
    if code == EXIT_PASSED:
        out.write("Satisfies requirements.\n\n")

    out.write(format_issue_list(issues.errors, "Error"))
    out.write(format_issue_list(issues.warnings, "Warning"))

    return code


def show_status(domain, entry, status, out=None):
    out = out or sys.stdout

    if status is preloadlist.Status.ENTRY_NOT_FOUND:
        out.write("%s is not preloaded.\n\n" % domain)
        return

    out.write(
        "%s is preloaded:\n\n"
        "           domain: %s\n"
        "             mode: %s\n"
        "includeSubDomains: %s\n\n"
        % (domain, entry.name, entry.mode, str(entry.include_subdomains).lower())
    )


def handle_batch(args) -> int:
    if args["<file>"]:
        with open(args["<file>"], encoding="utf-8") as f:
            domains = utils.load_domains(f)
    else:
        domains = utils.load_domains(sys.stdin)

    # Accept https://example.com/ as well as example.com
    return write_batch(args, utils.format_domains(domains))


def handle_scan(args) -> int:
    """Run the batch check on the pending or the preloaded domains."""
    try:
        if args["scan-pending"]:
            entries = preloadlist.fetch_pending()
        else:
            entries = preloadlist.load(args["--preload-list"]).entries
    except (OSError, ValueError, requests.exceptions.RequestException) as err:
        logging.error("Could not load the domains to scan: %s", err)
        return EXIT_ERRORS

    return write_batch(args, [entry.name for entry in entries])


def write_batch(args, domains) -> int:
    with utils.smart_open(args["--output"]) as out_file:
        if args["--markdown"]:
            results = batch.run_batch(
                domains, workers=args["--workers"], retry_on_errors=args["--retry"]
            )
            batch.to_markdown(results, out_file)
        else:
            batch.fprint(
                out_file,
                domains,
                workers=args["--workers"],
                retry_on_errors=args["--retry"],
            )

    if args["--output"] is not None:
        logging.warning("Wrote results to %s.", args["--output"])

    return EXIT_PASSED


def handle_status(args) -> int:
    domain = args["<domain>"]

    try:
        preload_list = preloadlist.load(args["--preload-list"])
    except (OSError, ValueError, requests.exceptions.RequestException) as err:
        logging.error("Could not load the preload list: %s", err)
        return EXIT_ERRORS

    entry, status = preload_list.index().get(domain)
    show_status(domain, entry, status)
    return EXIT_PASSED


def main(argv=None) -> int:
    """Parse the command line and run the requested check."""
    if argv is None:
        argv = sys.argv[1:]
    argv = list(argv)
    if len(argv) >= 2 and argv[0] in ALIASES:
        argv[0] = ALIASES[argv[0]]

    try:
        args: Dict[str, Any] = docopt.docopt(__doc__, argv=argv, version=__version__)
    except docopt.DocoptExit as err:
        print(err, file=sys.stderr)
        return EXIT_INVALID_ARGUMENTS

    schema: Schema = Schema(
        {
            "--timeout": Or(
                None,
                And(Use(int), lambda n: n > 0),
                error="--timeout must be a positive integer.",
            ),
            "--workers": And(
                Use(int), lambda n: n > 0, error="--workers must be a positive integer."
            ),
            str: object,  # Don't care about other keys, if any
        }
    )

    try:
        args = schema.validate(args)
    except SchemaError as err:
        # Exit because one or more of the arguments were invalid
        print(err, file=sys.stderr)
        return EXIT_INVALID_ARGUMENTS

    utils.configure_logging(args["--debug"])
    client.configure({"timeout": args["--timeout"], "user_agent": args["--user-agent"]})

    if args["batch"]:
        return handle_batch(args)

    if args["scan-pending"] or args["scan-preloaded"]:
        return handle_scan(args)

    if args["status"]:
        return handle_status(args)

    if args["preloadableheader"] or args["removableheader"]:
        header = args["<header>"]
        warn_if_not_header(header)

        if args["preloadableheader"]:
            print('Checking header "%s" for preload requirements...' % header)
            return show_result(None, preloadable_header_string(header))

        print('Checking header "%s" for removal requirements...' % header)
        return show_result(None, removable_header_string(header))

    domain = args["<domain>"]
    error = domain_argument_error(domain)
    if error is not None:
        print(error, file=sys.stderr)
        return EXIT_INVALID_ARGUMENTS

    if args["preloadabledomain"]:
        print("Checking domain %s for preload requirements..." % domain)
        header, issues = preloadable_domain(domain)
    else:
        print("Checking domain %s for removal requirements..." % domain)
        header, issues = removable_domain(domain)

    return show_result(header, issues)


if __name__ == "__main__":
    sys.exit(main())
