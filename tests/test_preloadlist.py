"""Test reading and searching the preload list."""

# Standard Python Libraries
import base64
import os
import tempfile
import unittest
from unittest.mock import patch

# Third-Party Libraries
import pytest

from fakes import make_response
from hstspreload import preloadlist
from hstspreload.preloadlist import Entry, PreloadList, Status

LIST_JSON = """{
  // Comments like this one
    // (indented or not) are allowed.
  "entries": [
    { "name": "example.com", "mode": "force-https", "include_subdomains": true },
    { "name": "Mixed.Example", "mode": "force-https" },
    { "name": "sub.example.org", "mode": "force-https", "include_subdomains": true },
    { "name": "deep.sub.example.org", "mode": "" }
  ]
}
"""


class TestParse(unittest.TestCase):
    """Test parsing the preload list."""

    def test_parse(self):
        """Test that comments are dropped and entries are read."""
        preload_list = preloadlist.parse(LIST_JSON)

        self.assertEqual(len(preload_list.entries), 4)
        self.assertEqual(
            preload_list.entries[0],
            Entry("example.com", preloadlist.FORCE_HTTPS, True),
        )
        self.assertEqual(preload_list.entries[1].include_subdomains, False)

    def test_invalid(self):
        """Test that invalid JSON is an error."""
        with self.assertRaises(ValueError):
            preloadlist.parse("{ entries: ")

    def test_load_file(self):
        """Test reading the list from a file."""
        with tempfile.TemporaryDirectory() as tmp_dirname:
            filename = os.path.join(tmp_dirname, "transport_security_state_static.json")
            with open(filename, "w", encoding="utf-8") as f:
                f.write(LIST_JSON)

            preload_list = preloadlist.load(filename)

        self.assertEqual(len(preload_list.entries), 4)

    def test_fetch(self):
        """Test that the fetched list is Base64-decoded."""
        response = make_response(preloadlist.LATEST_CHROMIUM_URL)
        response._content = base64.b64encode(LIST_JSON.encode("utf-8"))

        with patch("hstspreload.preloadlist.requests.get", return_value=response):
            preload_list = preloadlist.load()

        self.assertEqual(preload_list.entries[0].name, "example.com")

    def test_fetch_pending(self):
        """Test reading the pending submissions."""
        response = make_response(preloadlist.PENDING_URL)
        response._content = (
            b'[{"name": "example.com", "include_subdomains": true, "mode": "force-https"},'
            b' {"name": "example.org"}]'
        )

        with patch(
            "hstspreload.preloadlist.requests.get", return_value=response
        ) as get:
            entries = preloadlist.fetch_pending()

        self.assertEqual(get.call_args[0][0], preloadlist.PENDING_URL)
        self.assertEqual(
            entries,
            [Entry("example.com", "force-https", True), Entry("example.org", "", False)],
        )


@pytest.mark.parametrize(
    "domain, name, status",
    [
        ("example.com", "example.com", Status.EXACT_ENTRY_FOUND),
        ("EXAMPLE.COM", "example.com", Status.EXACT_ENTRY_FOUND),
        ("www.example.com", "example.com", Status.ANCESTOR_ENTRY_FOUND),
        ("a.b.example.com", "example.com", Status.ANCESTOR_ENTRY_FOUND),
        ("mixed.example", "Mixed.Example", Status.EXACT_ENTRY_FOUND),
        ("www.mixed.example", "", Status.ENTRY_NOT_FOUND),
        ("deep.sub.example.org", "deep.sub.example.org", Status.EXACT_ENTRY_FOUND),
        ("www.deep.sub.example.org", "sub.example.org", Status.ANCESTOR_ENTRY_FOUND),
        ("example.org", "", Status.ENTRY_NOT_FOUND),
        ("com", "", Status.ENTRY_NOT_FOUND),
    ],
)
def test_index_get(domain, name, status):
    """Verify finding the entry that preloads a domain."""
    entry, found = preloadlist.parse(LIST_JSON).index().get(domain)

    assert found is status
    assert entry.name == name


def test_empty_index():
    """Verify searching an empty list."""
    assert PreloadList([]).index().get("example.com") == (Entry(), Status.ENTRY_NOT_FOUND)


@pytest.mark.parametrize(
    "domain, parent",
    [("www.example.com", "example.com"), ("example.com", "com"), ("com", None)],
)
def test_parent_domain(domain, parent):
    """Verify finding the parent of a domain."""
    assert preloadlist.parent_domain(domain) == parent
