"""Inspect the TLS connection to a site.

get_connection_state() performs a verified TLS handshake with pyOpenSSL
and reports the negotiated cipher suite and the verified certificate
chain.  The check_* functions look for settings that would cause
problems for browser users once a site is preloaded.
"""

# Standard Python Libraries
import selectors
import socket
from typing import List, NamedTuple, Sequence

# Third-Party Libraries
import certifi
from cryptography import x509
from cryptography.x509.oid import NameOID, SignatureAlgorithmOID
from OpenSSL import SSL

from . import client, utils
from .issues import Issues, combine_issues

SHA1_SIGNATURE_ALGORITHMS = frozenset(
    [
        SignatureAlgorithmOID.RSA_WITH_SHA1,
        SignatureAlgorithmOID.ECDSA_WITH_SHA1,
        SignatureAlgorithmOID.DSA_WITH_SHA1,
    ]
)

# ECDHE key exchange with an AEAD cipher, by OpenSSL name.  TLS 1.3
# suites always use (EC)DHE and AEAD, so they are all listed.
MODERN_CIPHER_SUITES = frozenset(
    [
        "ECDHE-ECDSA-AES128-GCM-SHA256",
        "ECDHE-ECDSA-AES256-GCM-SHA384",
        "ECDHE-ECDSA-CHACHA20-POLY1305",
        "ECDHE-RSA-AES128-GCM-SHA256",
        "ECDHE-RSA-AES256-GCM-SHA384",
        "ECDHE-RSA-CHACHA20-POLY1305",
        "TLS_AES_128_GCM_SHA256",
        "TLS_AES_256_GCM_SHA384",
        "TLS_CHACHA20_POLY1305_SHA256",
    ]
)


class ConnectionState(NamedTuple):
    """What a completed TLS handshake told us.

    Each verified chain is ordered from the leaf to the root.
    """

    cipher_suite: str
    verified_chains: List[List[x509.Certificate]]


def _verify_callback(connection, certificate, error_number, depth, ok):
    return bool(ok)


def _handshake(connection, sock):
    # select.select() can't wait on file descriptors above FD_SETSIZE.
    with selectors.DefaultSelector() as selector:
        selector.register(sock, selectors.EVENT_READ)
        while True:
            try:
                connection.do_handshake()
                return
            except SSL.WantReadError:
                selector.modify(sock, selectors.EVENT_READ)
            except SSL.WantWriteError:
                selector.modify(sock, selectors.EVENT_WRITE)

            if not selector.select(client.TIMEOUT):
                raise socket.timeout("TLS handshake timed out")


def get_connection_state(host: str, port: int = 443) -> ConnectionState:
    """Complete a verified TLS handshake with host:port.

    Raises OSError or OpenSSL.SSL.Error if the host can't be reached or
    its certificate chain does not verify.
    """
    context = SSL.Context(SSL.TLS_CLIENT_METHOD)
    context.load_verify_locations(certifi.where())
    context.set_verify(SSL.VERIFY_PEER, _verify_callback)

    utils.debug("Opening TLS connection to %s:%d...", host, port)
    with socket.create_connection((host, port), timeout=client.TIMEOUT) as sock:
        connection = SSL.Connection(context, sock)
        connection.set_tlsext_host_name(host.encode("idna"))
        connection.set_connect_state()
        _handshake(connection, sock)

        cipher_suite = connection.get_cipher_name() or ""
        chain = connection.get_verified_chain() or []

    return ConnectionState(
        cipher_suite=cipher_suite,
        verified_chains=[[cert.to_cryptography() for cert in chain]],
    )


def cert_chain(state: ConnectionState) -> List[x509.Certificate]:
    """Return the first verified chain, without the root CA."""
    chain = state.verified_chains[0]
    return chain[:-1]


def common_name(certificate) -> str:
    """Return the subject common name of a certificate, or ""."""
    attributes = certificate.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
    if not attributes:
        return ""
    return attributes[0].value


def check_sha1(chain: Sequence[x509.Certificate]) -> Issues:
    """Report the first certificate in the chain signed with SHA-1."""
    issues = Issues()

    for certificate in chain:
        if certificate.signature_algorithm_oid in SHA1_SIGNATURE_ALGORITHMS:
            return issues.add_error(
                "domain.tls.sha1",
                "SHA-1 Certificate",
                "One or more of the certificates in your certificate chain "
                "is signed using SHA-1. This needs to be replaced. "
                "See https://security.googleblog.com/2015/12/an-update-on-sha-1-certificates-in.html. "
                '(The first SHA-1 certificate found has a common-name of "%s".)',
                common_name(certificate),
            )

    return issues


def check_cipher_suite(state: ConnectionState) -> Issues:
    """Warn if the negotiated cipher suite is not a modern one."""
    issues = Issues()

    if state.cipher_suite in MODERN_CIPHER_SUITES:
        return issues

    return issues.add_warning(
        "tls.obsolete_cipher_suite",
        "Obsolete Cipher Suite",
        "The site is using obsolete TLS settings (cipher suite: %s). "
        "Check out the site at https://www.ssllabs.com/ssltest/",
        state.cipher_suite or "unknown",
    )


def check_chain(state: ConnectionState) -> Issues:
    """Run the certificate chain and cipher suite checks."""
    return combine_issues(check_sha1(cert_chain(state)), check_cipher_suite(state))
