"""Value types reported by the batch runner."""

# Standard Python Libraries
import datetime
from typing import Optional

# Third-Party Libraries
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.x509.oid import NameOID

from .header import HSTSHeader, parse_header_string
from .issues import Issues
from .tls import ConnectionState


class CertSummary:
    """Interesting facts about a leaf certificate.

    The SHA-256 hash of a public certificate can be looked up at
    https://crt.sh/
    """

    def __init__(self, issuer_common_name, not_before, not_after, sha256_hash):
        self.issuer_common_name = issuer_common_name
        self.not_before = not_before
        self.not_after = not_after
        self.sha256_hash = sha256_hash

    @classmethod
    def from_certificate(cls, certificate: x509.Certificate) -> "CertSummary":
        """Summarize a certificate."""
        issuer = certificate.issuer.get_attributes_for_oid(NameOID.COMMON_NAME)
        return cls(
            issuer_common_name=issuer[0].value if issuer else "",
            not_before=_validity(certificate, "not_valid_before"),
            not_after=_validity(certificate, "not_valid_after"),
            sha256_hash=certificate.fingerprint(hashes.SHA256()).hex(),
        )

    @classmethod
    def from_connection_state(cls, state: Optional[ConnectionState]):
        """Summarize the leaf certificate of a connection, if there is one."""
        if state is None or not state.verified_chains or not state.verified_chains[0]:
            return None
        return cls.from_certificate(state.verified_chains[0][0])

    def to_object(self):
        return {
            "issuer_common_name": self.issuer_common_name,
            "not_before": self.not_before,
            "not_after": self.not_after,
            "sha256_hash": self.sha256_hash,
        }


class Result:
    """The outcome of checking one domain in a batch."""

    def __init__(self, domain, issues, header=None, leaf_cert_summary=None):
        self.domain = domain
        self.issues: Issues = issues
        self.header: Optional[str] = header
        self.parsed_header: Optional[HSTSHeader] = None
        if header is not None:
            self.parsed_header, _ = parse_header_string(header)
        self.leaf_cert_summary: Optional[CertSummary] = leaf_cert_summary

    # The fields we want to serialize to JSON.
    def to_object(self):
        obj = {
            "domain": self.domain,
            "issues": self.issues.to_object(),
        }

        if self.header is not None:
            obj["header"] = self.header
        if self.parsed_header is not None:
            obj["parsed_header"] = self.parsed_header.to_object()
        if self.leaf_cert_summary is not None:
            obj["leaf_cert_summary"] = self.leaf_cert_summary.to_object()

        return obj


def _validity(certificate, name):
    # cryptography 42 added timezone-aware variants of these properties.
    value = getattr(certificate, name + "_utc", None)
    if value is None:
        value = getattr(certificate, name)
    if isinstance(value, datetime.datetime) and value.tzinfo is None:
        value = value.replace(tzinfo=datetime.timezone.utc)
    return value
