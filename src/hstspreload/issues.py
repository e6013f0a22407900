"""Accumulate the errors and warnings found while checking a site.

An Issues value is never modified in place.  Every add_* call and
combine_issues() return a new value, so concurrent checks can each
build their own ledger and have them merged afterwards.

By convention:

- errors lists problems that prevent preloading (or removal).
- warnings lists problems that are a good idea to fix, but do not
  block preloading.
- An Issues value with no errors means the checks passed.
- The list of errors is not guaranteed to be exhaustive; fixing one
  error (e.g. "could not connect") may bring another to light.
"""

# Standard Python Libraries
from typing import Any, Dict, NamedTuple, Tuple


class Issue(NamedTuple):
    """A single error or warning.

    code is a stable, dotted identifier such as
    "header.preloadable.max_age.too_low" that other programs can act
    on.  summary is a few words, message the full explanation.
    """

    code: str
    summary: str = ""
    message: str = ""

    def to_object(self) -> Dict[str, str]:
        """Return the issue as a JSON-friendly dict."""
        return {"code": self.code, "summary": self.summary, "message": self.message}


class Issues(NamedTuple):
    """An ordered set of errors and warnings."""

    errors: Tuple[Issue, ...] = ()
    warnings: Tuple[Issue, ...] = ()

    def add_error(self, code: str, summary: str, message: str, *args: Any) -> "Issues":
        """Return a copy with an error appended."""
        return Issues(self.errors + (Issue(code, summary, _format(message, args)),), self.warnings)

    def add_warning(self, code: str, summary: str, message: str, *args: Any) -> "Issues":
        """Return a copy with a warning appended."""
        return Issues(self.errors, self.warnings + (Issue(code, summary, _format(message, args)),))

    def add_unique_error(self, code: str, summary: str, message: str, *args: Any) -> "Issues":
        """Append an error unless one with the same code is already present."""
        if any(error.code == code for error in self.errors):
            return self
        return self.add_error(code, summary, message, *args)

    def add_unique_warning(self, code: str, summary: str, message: str, *args: Any) -> "Issues":
        """Append a warning unless one with the same code is already present."""
        if any(warning.code == code for warning in self.warnings):
            return self
        return self.add_warning(code, summary, message, *args)

    def match(self, wanted: "Issues") -> bool:
        """Check that these issues match the wanted ones.

        Both lists must have the same length and the same codes in the
        same order.  The summary and message of an issue are compared
        only when the corresponding wanted issue sets them.
        """
        return _match_list(self.errors, wanted.errors) and _match_list(
            self.warnings, wanted.warnings
        )

    def to_object(self) -> Dict[str, Any]:
        """Return the issues as a JSON-friendly dict (empty lists, never None)."""
        return {
            "errors": [error.to_object() for error in self.errors],
            "warnings": [warning.to_object() for warning in self.warnings],
        }


def combine_issues(first: Issues, second: Issues) -> Issues:
    """Concatenate two ledgers, keeping the issues of `first` in front."""
    return Issues(first.errors + second.errors, first.warnings + second.warnings)


def _format(message, args):
    if not args:
        return message
    return message % args


def _match_list(actual, wanted):
    if len(actual) != len(wanted):
        return False

    for got, want in zip(actual, wanted):
        if got.code != want.code:
            return False
        if want.summary and got.summary != want.summary:
            return False
        if want.message and got.message != want.message:
            return False

    return True
