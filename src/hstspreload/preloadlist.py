"""Read the Chromium HSTS preload list and look domains up in it.

Only the HSTS-related parts of each entry (name, mode and
include_subdomains) are kept.
"""

# Standard Python Libraries
import base64
import enum
import json
import re
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

# Third-Party Libraries
import requests

from . import client, utils

# Upgrade every request to HTTPS (https://tools.ietf.org/html/rfc6797).
FORCE_HTTPS = "force-https"

# This list may be up to 12 weeks fresher than the one used by the current
# stable version of Chrome.
LATEST_CHROMIUM_URL = "https://chromium.googlesource.com/chromium/src/+/main/net/http/transport_security_state_static.json?format=TEXT"

# Submissions that hstspreload.org has accepted but Chromium has not yet
# added to the list.
PENDING_URL = "https://hstspreload.org/api/v2/pending"


class Status(enum.Enum):
    """How a domain was found on the preload list."""

    ENTRY_NOT_FOUND = 0
    # The domain itself is on the list.
    EXACT_ENTRY_FOUND = 1
    # An ancestor domain is on the list with include_subdomains set.
    ANCESTOR_ENTRY_FOUND = 2


class Entry(NamedTuple):
    """One entry of the preload list."""

    name: str = ""
    mode: str = ""
    include_subdomains: bool = False

    @classmethod
    def from_object(cls, obj):
        return cls(
            name=obj.get("name", ""),
            mode=obj.get("mode", ""),
            include_subdomains=bool(obj.get("include_subdomains", False)),
        )

    def to_object(self):
        return {
            "name": self.name,
            "mode": self.mode,
            "include_subdomains": self.include_subdomains,
        }


class IndexedEntries:
    """A case-insensitive index of preload list entries."""

    def __init__(self, entries: Iterable[Entry]):
        self.index: Dict[str, Entry] = {}
        for entry in entries:
            self.index[entry.name.lower()] = entry

    def get(self, domain: str) -> Tuple[Entry, Status]:
        """Find the entry that preloads `domain`.

        The domain's own entry wins.  Otherwise the closest ancestor
        whose entry includes subdomains is returned.  If neither exists,
        an empty entry is returned with Status.ENTRY_NOT_FOUND.
        """
        domain = domain.lower()

        entry = self.index.get(domain)
        if entry is not None:
            return entry, Status.EXACT_ENTRY_FOUND

        ancestor = parent_domain(domain)
        while ancestor is not None:
            entry = self.index.get(ancestor)
            if entry is not None and entry.include_subdomains:
                return entry, Status.ANCESTOR_ENTRY_FOUND
            ancestor = parent_domain(ancestor)

        return Entry(), Status.ENTRY_NOT_FOUND


class PreloadList(NamedTuple):
    """The parsed preload list."""

    entries: List[Entry]

    def index(self) -> IndexedEntries:
        return IndexedEntries(self.entries)


def parent_domain(domain: str) -> Optional[str]:
    """Return the immediate parent of `domain`, or None for a single label."""
    dot = domain.find(".")
    if dot == -1 or dot == len(domain) - 1:
        return None
    return domain[dot + 1:]


def remove_comments(text: str) -> str:
    """Drop the lines starting with `//`, which are not valid JSON."""
    return "\n".join(
        line for line in text.splitlines() if not re.match(r"^\s*//", line)
    )


def parse(text: str) -> PreloadList:
    """Parse the preload list JSON (comments allowed).

    Raises ValueError if the text is not valid JSON.
    """
    data = json.loads(remove_comments(text))
    return PreloadList([Entry.from_object(obj) for obj in data.get("entries", [])])


def fetch(url: str = LATEST_CHROMIUM_URL) -> PreloadList:
    """Download the preload list from a URL serving it Base64-encoded.

    googlesource.com Base64-encodes raw files to avoid content injection
    issues, so the body is decoded before parsing.
    """
    utils.debug("Fetching Chrome preload list from %s...", url, divider=True)

    response = requests.get(
        url, headers={"User-Agent": client.USER_AGENT}, timeout=client.TIMEOUT
    )
    response.raise_for_status()

    return parse(base64.b64decode(response.content).decode("utf-8"))


def fetch_pending(url: str = PENDING_URL) -> List[Entry]:
    """Download the pending submissions, a JSON array of entries.

    Raises ValueError if the body is not valid JSON.
    """
    utils.debug("Fetching pending submissions from %s...", url, divider=True)

    response = requests.get(
        url, headers={"User-Agent": client.USER_AGENT}, timeout=client.TIMEOUT
    )
    response.raise_for_status()

    return [Entry.from_object(obj) for obj in response.json()]


def load(path: Optional[str] = None) -> PreloadList:
    """Load the preload list from a JSON file, or the latest one from Chromium.

    In a Chromium checkout, the file is at
    net/http/transport_security_state_static.json
    """
    if path is None:
        return fetch()

    utils.debug("Reading preload list from %s...", path, divider=True)
    with open(path, encoding="utf-8") as f:
        return parse(f.read())
