import enum
import logging
import re
import ssl
from dataclasses import dataclass
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives import serialization

from mqbroker.bootstrap.config.settings import TLSInfo
from mqbroker.core.exception import TlsMaterialError
from mqbroker.core.ports.log import Logger


MINIMUM_TLS_VERSION = ssl.TLSVersion.TLSv1_2

_PEM_CERTIFICATE = re.compile(
    rb"-----BEGIN CERTIFICATE-----.+?-----END CERTIFICATE-----",
    re.DOTALL,
)


class ClientAuth(enum.Enum):
    NO_CLIENT_CERT = "no-client-cert"
    REQUIRE_AND_VERIFY = "require-and-verify-client-cert"


@dataclass(frozen=True)
class TrustContext:
    ssl_context: ssl.SSLContext
    chain: tuple[x509.Certificate, ...]
    leaf: x509.Certificate
    minimum_version: ssl.TLSVersion
    client_auth: ClientAuth
    client_cas: tuple[x509.Certificate, ...] | None = None


def parse_pem_bundle(data: bytes) -> list[x509.Certificate]:
    """
    Extract every parsable certificate from a PEM bundle.

    Blocks that are not certificates, or that fail to parse, are skipped.
    An empty list means the bundle holds no usable certificate.
    """
    certs = []
    for block in _PEM_CERTIFICATE.findall(data):
        try:
            certs.append(x509.load_pem_x509_certificate(block))
        except ValueError:
            continue
    return certs


class TrustContextBuilder:
    """
    Builds the server-side TLS context of the broker from files on disk.

    The builder runs once at startup. Every failure is raised as a
    ``TlsMaterialError``; there is no degraded mode.
    """

    def __init__(self, logger: Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("mqbroker.bootstrap.tls")

    def build(self, material: TLSInfo) -> TrustContext:
        ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        try:
            ctx.load_cert_chain(certfile=material.cert_file, keyfile=material.key_file)
        except OSError as exc:
            raise TlsMaterialError(f"error parsing X509 certificate/key pair: {exc}") from exc

        chain = self._load_chain(material.cert_file)
        leaf = chain[0]
        self._logger.info(
            f"Loaded TLS certificate subject={leaf.subject.rfc4514_string()} "
            f"issuer={leaf.issuer.rfc4514_string()} "
            f"valid={leaf.not_valid_before_utc}..{leaf.not_valid_after_utc}"
        )

        ctx.minimum_version = MINIMUM_TLS_VERSION

        if material.verify:
            client_auth = ClientAuth.REQUIRE_AND_VERIFY
            ctx.verify_mode = ssl.CERT_REQUIRED
        else:
            client_auth = ClientAuth.NO_CLIENT_CERT
            ctx.verify_mode = ssl.CERT_NONE

        client_cas = None
        if material.ca_file:
            client_cas = self._load_client_cas(material.ca_file)
            ctx.load_verify_locations(
                cadata=b"".join(cert.public_bytes(serialization.Encoding.DER) for cert in client_cas)
            )
            self._logger.info(f"Loaded {len(client_cas)} client CA certificate(s) from {material.ca_file}")
        elif material.verify:
            # No CA bundle: client certificates are checked against the system store.
            ctx.load_default_certs(ssl.Purpose.CLIENT_AUTH)

        return TrustContext(
            ssl_context=ctx,
            chain=chain,
            leaf=leaf,
            minimum_version=MINIMUM_TLS_VERSION,
            client_auth=client_auth,
            client_cas=client_cas,
        )

    @staticmethod
    def _load_chain(cert_file: str) -> tuple[x509.Certificate, ...]:
        try:
            data = Path(cert_file).read_bytes()
            chain = x509.load_pem_x509_certificates(data)
        except (OSError, ValueError) as exc:
            raise TlsMaterialError(f"error parsing certificate: {exc}") from exc
        return tuple(chain)

    def _load_client_cas(self, ca_file: str) -> tuple[x509.Certificate, ...]:
        try:
            data = Path(ca_file).read_bytes()
        except OSError as exc:
            self._logger.error(f"Read CA file error: {exc}")
            raise TlsMaterialError(f"failed to read root CA file {ca_file}: {exc}") from exc

        if not data:
            raise TlsMaterialError(f"root CA file {ca_file} is empty")

        certs = parse_pem_bundle(data)
        if not certs:
            raise TlsMaterialError("failed to parse root CA certificate(s)")
        return tuple(certs)
