#!/usr/bin/env pytest -vs
"""Test the command line interface."""

# Standard Python Libraries
import json
import logging
import os
import sys
from unittest.mock import patch

# Third-Party Libraries
import pytest
import requests

import hstspreload
from hstspreload import cli, client
from hstspreload.issues import Issues
from hstspreload.models import Result
from hstspreload.preloadlist import Entry, PreloadList

# define sources of version strings
RELEASE_TAG = os.getenv("RELEASE_TAG")
PROJECT_VERSION = hstspreload.__version__

GOOD_HEADER = "max-age=10886400; includeSubDomains; preload"


@pytest.fixture(autouse=True)
def restore_client_defaults():
    """Undo any client configuration done by a test."""
    with patch.object(client, "TIMEOUT", client.TIMEOUT), patch.object(
        client, "USER_AGENT", client.USER_AGENT
    ):
        yield


def test_stdout_version(capsys):
    """Verify that version string sent to stdout agrees with the module version."""
    with pytest.raises(SystemExit):
        cli.main(["--version"])
    captured = capsys.readouterr()
    assert (
        captured.out == f"{PROJECT_VERSION}\n"
    ), "standard output by '--version' should agree with module.__version__"


def test_running_as_module(capsys):
    """Verify that the __main__.py file loads correctly."""
    with pytest.raises(SystemExit):
        with patch.object(sys, "argv", ["bogus", "--version"]):
            # F401 is a "Module imported but unused" warning. This import
            # emulates how this project would be run as a module. The only thing
            # being done by __main__ is importing the main entrypoint of the
            # package and running it, so there is nothing to use from this
            # import. As a result, we can safely ignore this warning.
            import hstspreload.__main__  # noqa: F401
    captured = capsys.readouterr()
    assert (
        captured.out == f"{PROJECT_VERSION}\n"
    ), "standard output by '--version' should agree with module.__version__"


@pytest.mark.skipif(
    RELEASE_TAG in [None, ""], reason="this is not a release (RELEASE_TAG not set)"
)
def test_release_version():
    """Verify that release tag version agrees with the module version."""
    assert (
        RELEASE_TAG == f"v{PROJECT_VERSION}"
    ), "RELEASE_TAG does not match the project version"


@pytest.mark.parametrize(
    "argv, code",
    [
        (["preloadableheader", GOOD_HEADER], cli.EXIT_PASSED),
        (["+h", GOOD_HEADER], cli.EXIT_PASSED),
        (["+h", "max-age=10886400"], cli.EXIT_ERRORS),
        (["+h", "max-age=315360001; includeSubDomains; preload"], cli.EXIT_WARNINGS),
        (["removableheader", "max-age=0"], cli.EXIT_PASSED),
        (["-h", "max-age=0"], cli.EXIT_PASSED),
        (["-h", GOOD_HEADER], cli.EXIT_ERRORS),
    ],
)
def test_header_commands(argv, code, capsys):
    """Verify the exit code of the header commands."""
    assert cli.main(argv) == code


def test_header_output(capsys):
    """Verify that the issues are listed with their codes."""
    cli.main(["+h", "max-age=10886400"])

    captured = capsys.readouterr()
    assert 'Checking header "max-age=10886400" for preload requirements...' in captured.out
    assert "Errors:" in captured.out
    assert "[header.preloadable.include_sub_domains.missing]" in captured.out
    assert "[header.preloadable.preload.missing]" in captured.out


def test_passing_output(capsys):
    """Verify the output for a header that passes."""
    cli.main(["+h", GOOD_HEADER])

    assert "Satisfies requirements." in capsys.readouterr().out


@pytest.mark.parametrize(
    "argv",
    [
        ["frobnicate", "example.com"],
        ["preloadabledomain"],
        ["+d", "https://example.com/"],
        ["-d", "max-age=0; preload"],
        ["+d", "example.com", "--timeout=soon"],
        ["batch", "--workers=0"],
    ],
)
def test_invalid_arguments(argv, capsys):
    """Verify that invalid arguments exit with the right code."""
    assert cli.main(argv) == cli.EXIT_INVALID_ARGUMENTS


@patch("hstspreload.cli.preloadable_domain", return_value=(GOOD_HEADER, Issues()))
def test_preloadable_domain(check, capsys):
    """Verify checking a domain for preload requirements."""
    assert cli.main(["+d", "example.com"]) == cli.EXIT_PASSED

    check.assert_called_once_with("example.com")
    assert f"Observed header: {GOOD_HEADER}" in capsys.readouterr().out


@patch(
    "hstspreload.cli.removable_domain",
    return_value=(
        None,
        Issues().add_error("domain.tls.cannot_connect", "Cannot connect using TLS", "nope"),
    ),
)
def test_removable_domain(check, capsys):
    """Verify checking a domain for removal requirements."""
    assert cli.main(["removabledomain", "example.com"]) == cli.EXIT_ERRORS

    check.assert_called_once_with("example.com")
    output = capsys.readouterr().out
    assert "Observed header" not in output
    assert "1. Cannot connect using TLS [domain.tls.cannot_connect]" in output


@patch("hstspreload.cli.preloadable_domain", return_value=(None, Issues()))
def test_client_options(check):
    """Verify that --timeout and --user-agent configure the client."""
    cli.main(["+d", "example.com", "--timeout=3", "--user-agent=test agent"])

    assert client.TIMEOUT == 3
    assert client.USER_AGENT == "test agent"


@pytest.mark.parametrize(
    "debug, level",
    [(["--debug"], logging.DEBUG), ([], logging.WARNING)],
)
def test_log_levels(debug, level):
    """Validate the --debug argument."""
    with patch.object(logging.root, "handlers", []):
        assert (
            logging.root.hasHandlers() is False
        ), "root logger should not have handlers yet"
        return_code = cli.main(["+h", GOOD_HEADER] + debug)
        assert return_code == cli.EXIT_PASSED, "main() should return success"
        assert (
            logging.root.hasHandlers() is True
        ), "root logger should now have a handler"
        assert logging.root.getEffectiveLevel() == level


def fake_results(domains, workers, retry_on_errors):
    """Stand in for the batch runner."""
    return [Result(domain, Issues(), header=GOOD_HEADER) for domain in domains]


def test_batch_json(tmp_path):
    """Verify a batch read from a file and written as JSON."""
    domains_file = tmp_path / "domains.txt"
    domains_file.write_text("# comment\nExample.com\n\nexample.org\n")
    output_file = tmp_path / "results.json"

    with patch(
        "hstspreload.batch.preloadable",
        side_effect=lambda domains, workers, retry_on_errors: iter(
            fake_results(domains, workers, retry_on_errors)
        ),
    ) as run:
        code = cli.main(
            ["batch", str(domains_file), "--output", str(output_file), "--workers=5", "--retry"]
        )

    assert code == cli.EXIT_PASSED
    run.assert_called_once_with(["example.com", "example.org"], workers=5, retry_on_errors=True)
    results = json.loads(output_file.read_text())
    assert [result["domain"] for result in results] == ["example.com", "example.org"]


def test_batch_markdown_from_stdin(capsys):
    """Verify a batch read from stdin and written as Markdown."""
    with patch("sys.stdin", ["example.com\n"]), patch(
        "hstspreload.batch.run_batch", side_effect=fake_results
    ) as run:
        code = cli.main(["batch", "--markdown"])

    assert code == cli.EXIT_PASSED
    run.assert_called_once_with(["example.com"], workers=100, retry_on_errors=False)
    assert "example.com" in capsys.readouterr().out


@patch(
    "hstspreload.preloadlist.load",
    return_value=PreloadList([Entry("example.com", "force-https", True)]),
)
def test_status(load, capsys):
    """Verify looking up the preload status of a domain."""
    assert cli.main(["status", "www.example.com", "--preload-list=list.json"]) == cli.EXIT_PASSED

    load.assert_called_once_with("list.json")
    output = capsys.readouterr().out
    assert "www.example.com is preloaded:" in output
    assert "includeSubDomains: true" in output


@patch("hstspreload.preloadlist.load", return_value=PreloadList([]))
def test_status_not_preloaded(load, capsys):
    """Verify the status of a domain that is not preloaded."""
    assert cli.main(["status", "example.com"]) == cli.EXIT_PASSED

    load.assert_called_once_with(None)
    assert "example.com is not preloaded." in capsys.readouterr().out


@patch("hstspreload.preloadlist.load", side_effect=OSError("No such file"))
def test_status_unreadable_list(load):
    """Verify that a preload list that can't be read is an error."""
    assert cli.main(["status", "example.com", "--preload-list=missing.json"]) == cli.EXIT_ERRORS


def test_scan_pending(capsys):
    """Verify a batch check of the pending submissions."""
    pending = [Entry("example.com", "", False), Entry("example.org", "", False)]

    with patch("hstspreload.preloadlist.fetch_pending", return_value=pending), patch(
        "hstspreload.batch.run_batch", side_effect=fake_results
    ) as run:
        code = cli.main(["scan-pending", "--markdown", "--workers=2"])

    assert code == cli.EXIT_PASSED
    run.assert_called_once_with(["example.com", "example.org"], workers=2, retry_on_errors=False)
    assert "example.org" in capsys.readouterr().out


@patch(
    "hstspreload.preloadlist.load",
    return_value=PreloadList(
        [Entry("example.com", "force-https", True), Entry("example.net", "", False)]
    ),
)
def test_scan_preloaded(load, tmp_path):
    """Verify a batch check of every preloaded domain, written as JSON."""
    output_file = tmp_path / "results.json"

    with patch(
        "hstspreload.batch.preloadable",
        side_effect=lambda domains, workers, retry_on_errors: iter(
            fake_results(domains, workers, retry_on_errors)
        ),
    ):
        code = cli.main(
            ["scan-preloaded", "--preload-list=list.json", "--output", str(output_file)]
        )

    assert code == cli.EXIT_PASSED
    load.assert_called_once_with("list.json")
    results = json.loads(output_file.read_text())
    assert [result["domain"] for result in results] == ["example.com", "example.net"]


@patch(
    "hstspreload.preloadlist.fetch_pending",
    side_effect=requests.exceptions.ConnectionError("cannot connect"),
)
def test_scan_pending_unreachable(fetch):
    """Verify that failing to fetch the pending submissions is an error."""
    with patch("hstspreload.batch.run_batch") as run:
        assert cli.main(["scan-pending"]) == cli.EXIT_ERRORS

    run.assert_not_called()
