"""Parse Strict-Transport-Security header values and check them.

parse_header_string() never fails.  It always returns the best-effort
HSTSHeader it could build, along with the syntax problems it saw.
preloadable_header() and removable_header() then check a parsed header
against the requirements for adding a site to the preload list, or for
removing it.
"""

# Standard Python Libraries
import enum
from typing import Iterator, NamedTuple, Optional, Tuple

from .issues import Issues, combine_issues

# 18 weeks
MIN_MAX_AGE = 10886400

# 86400 * 365 * 10
TEN_YEARS = 315360000

MAX_UINT64 = (1 << 64) - 1

# Only space and tab are trimmed around a directive (https://crbug.com/596561#c10).
DIRECTIVE_WHITESPACE = " \t"


class HSTSHeader(NamedTuple):
    """The meaning of one HSTS header.

    max_age is None when the header has no (valid) max-age directive;
    this is distinct from max-age=0.
    """

    max_age: Optional[int] = None
    include_sub_domains: bool = False
    preload: bool = False

    def to_header_string(self) -> str:
        """Render the header in canonical directive order."""
        directives = []
        if self.max_age is not None:
            directives.append("max-age=%d" % self.max_age)
        if self.include_sub_domains:
            directives.append("includeSubDomains")
        if self.preload:
            directives.append("preload")
        return "; ".join(directives)

    def to_object(self):
        """Return the header as a JSON-friendly dict."""
        return {
            "max_age": self.max_age,
            "include_sub_domains": self.include_sub_domains,
            "preload": self.preload,
        }


class DirectiveKind(enum.Enum):
    """Every kind of directive the tokenizer can produce."""

    EMPTY = "empty"
    PRELOAD = "preload"
    PRELOAD_EXTRA = "preload with extra characters"
    INCLUDE_SUB_DOMAINS = "includeSubDomains"
    INCLUDE_SUB_DOMAINS_EXTRA = "includeSubDomains with extra characters"
    MAX_AGE = "max-age"
    MAX_AGE_NO_VALUE = "max-age without a value"
    UNKNOWN = "unknown"


class Directive(NamedTuple):
    """One trimmed directive, as written in the header."""

    kind: DirectiveKind
    text: str


def classify_directive(text: str) -> DirectiveKind:
    """Decide what kind of directive `text` is, ignoring case."""
    lower = text.lower()

    if lower == "":
        return DirectiveKind.EMPTY
    if lower == "preload":
        return DirectiveKind.PRELOAD
    if lower.startswith("preload"):
        return DirectiveKind.PRELOAD_EXTRA
    if lower == "includesubdomains":
        return DirectiveKind.INCLUDE_SUB_DOMAINS
    if lower.startswith("includesubdomains"):
        return DirectiveKind.INCLUDE_SUB_DOMAINS_EXTRA
    if lower.startswith("max-age="):
        return DirectiveKind.MAX_AGE
    if lower.startswith("max-age"):
        return DirectiveKind.MAX_AGE_NO_VALUE
    return DirectiveKind.UNKNOWN


def tokenize(header_string: str) -> Iterator[Directive]:
    """Split a header value into directives."""
    for part in header_string.split(";"):
        text = part.strip(DIRECTIVE_WHITESPACE)
        yield Directive(classify_directive(text), text)


def parse_max_age(directive: str) -> Tuple[Optional[int], Issues]:
    """Parse the value of a `max-age=` directive.

    Every character must be an ASCII digit.  Checking this before
    converting means values like "-101" or "+101" are reported instead
    of being accepted by int() (https://crbug.com/596561).
    """
    issues = Issues()
    value = directive[len("max-age="):]

    if len(value) > 1 and value[0] == "0":
        issues = issues.add_warning(
            "header.parse.max_age.leading_zero",
            "Unexpected max-age syntax",
            "The header's max-age value contains a leading 0: `%s`",
            directive,
        )

    for character in value:
        if character not in "0123456789":
            return None, issues.add_error(
                "header.parse.max_age.non_digit_characters",
                "Invalid max-age syntax",
                "The header's max-age value contains characters that are not digits: `%s`",
                directive,
            )

    try:
        seconds = int(value, 10)
    except ValueError:
        seconds = None

    if seconds is None or seconds > MAX_UINT64:
        return None, issues.add_error(
            "header.parse.max_age.parse_int_error",
            "Invalid max-age syntax",
            "We could not parse the header's max-age value `%s`.",
            value,
        )

    return seconds, issues


def parse_header_string(header_string: str) -> Tuple[HSTSHeader, Issues]:
    """Parse an HSTS header value.

    Returns the parsed header and any syntax errors or warnings.  A
    header is always returned, even when there are errors.
    """
    directives = list(tokenize(header_string))
    issues = Issues()

    if len(directives) == 1 and directives[0].kind is DirectiveKind.EMPTY:
        return HSTSHeader(), issues.add_warning(
            "header.parse.empty", "Empty Header", "The HSTS header is empty."
        )

    max_age = None
    include_sub_domains = False
    preload = False

    for directive in directives:
        kind, text = directive.kind, directive.text

        if kind is DirectiveKind.PRELOAD:
            if preload:
                issues = issues.add_unique_warning(
                    "header.parse.repeated.preload",
                    "Repeated preload directive",
                    "Header contains a repeated directive: `preload`",
                )
            preload = True

        elif kind is DirectiveKind.PRELOAD_EXTRA:
            issues = issues.add_warning(
                "header.parse.invalid.preload.extra_characters",
                "Invalid preload directive",
                "Header contains a `preload` directive with extra characters: `%s`",
                text,
            )

        elif kind is DirectiveKind.INCLUDE_SUB_DOMAINS:
            if include_sub_domains:
                issues = issues.add_unique_warning(
                    "header.parse.repeated.include_sub_domains",
                    "Repeated includeSubDomains directive",
                    "Header contains a repeated directive: `includeSubDomains`",
                )
            include_sub_domains = True

            if text != "includeSubDomains":
                issues = issues.add_unique_warning(
                    "header.parse.spelling.include_sub_domains",
                    "Non-standard capitalization of includeSubDomains",
                    "Header contains the token `%s`. The recommended capitalization is `includeSubDomains`.",
                    text,
                )

        elif kind is DirectiveKind.INCLUDE_SUB_DOMAINS_EXTRA:
            issues = issues.add_warning(
                "header.parse.invalid.include_sub_domains.extra_characters",
                "Invalid includeSubDomains directive",
                "Header contains an `includeSubDomains` directive with extra characters: `%s`",
                text,
            )

        elif kind is DirectiveKind.MAX_AGE:
            seconds, max_age_issues = parse_max_age(text)
            issues = combine_issues(issues, max_age_issues)
            if seconds is None:
                continue

            if max_age is None:
                max_age = seconds
            else:
                issues = issues.add_unique_warning(
                    "header.parse.repeated.max_age",
                    "Repeated max-age directive",
                    "The header contains a repeated directive: `max-age`",
                )

        elif kind is DirectiveKind.MAX_AGE_NO_VALUE:
            issues = issues.add_unique_error(
                "header.parse.invalid.max_age.no_value",
                "max-age directive without a value",
                "The header contains a max-age directive name without an associated value. Please specify the max-age in seconds.",
            )

        elif kind is DirectiveKind.EMPTY:
            issues = issues.add_unique_warning(
                "header.parse.empty_directive",
                "Empty directive or extra semicolon",
                "The header includes an empty directive or extra semicolon.",
            )

        elif kind is DirectiveKind.UNKNOWN:
            issues = issues.add_warning(
                "header.parse.unknown_directive",
                "Unknown directive",
                "The header contains an unknown directive: `%s`",
                text,
            )

        else:
            raise ValueError("unhandled directive kind: %r" % kind)

    return HSTSHeader(max_age, include_sub_domains, preload), issues


def preloadable_header(header: HSTSHeader) -> Issues:
    """Check a parsed header against the preload requirements.

    All checks run, so a header missing everything reports every
    missing directive.
    """
    issues = Issues()

    if not header.include_sub_domains:
        issues = issues.add_error(
            "header.preloadable.include_sub_domains.missing",
            "No includeSubDomains directive",
            "The header must contain the `includeSubDomains` directive.",
        )

    if not header.preload:
        issues = issues.add_error(
            "header.preloadable.preload.missing",
            "No preload directive",
            "The header must contain the `preload` directive.",
        )

    if header.max_age is None:
        issues = issues.add_error(
            "header.preloadable.max_age.missing",
            "No max-age directive",
            "The header must contain a valid `max-age` directive.",
        )
    elif header.max_age < MIN_MAX_AGE:
        issues = issues.add_error(
            "header.preloadable.max_age.too_low",
            "max-age too low",
            "The max-age must be at least %d seconds (== 18 weeks), but the header currently only has max-age=%d.",
            MIN_MAX_AGE,
            header.max_age,
        )
    elif header.max_age > TEN_YEARS:
        issues = issues.add_warning(
            "header.preloadable.max_age.over_10_years",
            "max-age unusually large",
            "FYI: The max-age (%d seconds) is longer than 10 years, which is an unusually long value.",
            header.max_age,
        )

    return issues


def removable_header(header: HSTSHeader) -> Issues:
    """Check a parsed header against the requirements for removal."""
    issues = Issues()

    if header.preload:
        issues = issues.add_error(
            "header.removable.contains.preload",
            "Contains preload directive",
            "Header requirement error: For preload list removal, the header must not contain the `preload` directive.",
        )

    if header.max_age is None:
        issues = issues.add_error(
            "header.removable.missing.max_age",
            "No max-age directive",
            "Header requirement error: Header must contain a valid `max-age` directive.",
        )

    return issues


def preloadable_header_string(header_string: str) -> Issues:
    """Parse a header value and check it against the preload requirements."""
    header, issues = parse_header_string(header_string)
    return combine_issues(issues, preloadable_header(header))


# The name used by callers that only want a yes/no answer for a header.
check_header_string = preloadable_header_string


def removable_header_string(header_string: str) -> Issues:
    """Parse a header value and check it against the removal requirements.

    Parse warnings are dropped: sites asking for removal often have
    cosmetic header problems that should not block the removal.
    """
    header, parse_issues = parse_header_string(header_string)
    issues = Issues(errors=parse_issues.errors)
    return combine_issues(issues, removable_header(header))
