from dataclasses import dataclass, field
from datetime import datetime, timedelta, UTC
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID


def gen_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def gen_cert(
    cn: str,
    key: rsa.RSAPrivateKey,
    issuer: x509.Certificate | None = None,
    issuer_key: rsa.RSAPrivateKey | None = None,
    ca: bool = False,
) -> x509.Certificate:
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, cn)])
    now = datetime.now(tz=UTC)

    return (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer.subject if issuer else subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(minutes=1))
        .not_valid_after(now + timedelta(days=1))
        .add_extension(x509.BasicConstraints(ca=ca, path_length=None), critical=True)
        .sign(private_key=issuer_key or key, algorithm=hashes.SHA256())
    )


def cert_pem(cert: x509.Certificate) -> bytes:
    return cert.public_bytes(serialization.Encoding.PEM)


def key_pem(key: rsa.RSAPrivateKey) -> bytes:
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )


@dataclass
class Pki:
    root: Path
    ca_cert: Path
    other_ca_cert: Path
    server_cert: Path
    server_key: Path
    server_chain: Path
    stray_key: Path
    client_cert: Path
    client_key: Path
    rogue_client_cert: Path
    rogue_client_key: Path

    def write(self, name: str, content: bytes) -> Path:
        path = self.root / name
        path.write_bytes(content)
        return path


@pytest.fixture(scope="session")
def pki(tmp_path_factory) -> Pki:
    root = tmp_path_factory.mktemp("pki")

    ca_key = gen_key()
    ca = gen_cert("Test Root CA", ca_key, ca=True)
    other_ca_key = gen_key()
    other_ca = gen_cert("Other Root CA", other_ca_key, ca=True)

    server_key = gen_key()
    server = gen_cert("broker.local", server_key, issuer=ca, issuer_key=ca_key)
    client_key = gen_key()
    client = gen_cert("client-1", client_key, issuer=ca, issuer_key=ca_key)
    rogue_client_key = gen_key()
    rogue_client = gen_cert("rogue-client", rogue_client_key, issuer=other_ca, issuer_key=other_ca_key)

    files = {
        "ca.crt": cert_pem(ca),
        "other-ca.crt": cert_pem(other_ca),
        "server.crt": cert_pem(server),
        "server.key": key_pem(server_key),
        "server-chain.crt": cert_pem(server) + cert_pem(ca),
        "stray.key": key_pem(gen_key()),
        "client.crt": cert_pem(client),
        "client.key": key_pem(client_key),
        "rogue-client.crt": cert_pem(rogue_client),
        "rogue-client.key": key_pem(rogue_client_key),
    }
    for name, content in files.items():
        (root / name).write_bytes(content)

    return Pki(
        root=root,
        ca_cert=root / "ca.crt",
        other_ca_cert=root / "other-ca.crt",
        server_cert=root / "server.crt",
        server_key=root / "server.key",
        server_chain=root / "server-chain.crt",
        stray_key=root / "stray.key",
        client_cert=root / "client.crt",
        client_key=root / "client.key",
        rogue_client_cert=root / "rogue-client.crt",
        rogue_client_key=root / "rogue-client.key",
    )


@dataclass
class RecordingLogger:
    infos: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def info(self, msg: str, *args, **kwargs) -> None:
        self.infos.append(msg)

    def error(self, msg: str, *args, **kwargs) -> None:
        self.errors.append(msg)


@pytest.fixture
def logger() -> RecordingLogger:
    return RecordingLogger()
