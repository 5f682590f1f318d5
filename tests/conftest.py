from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID


def make_name(cn: str, o: str | None = None) -> x509.Name:
    attrs = [x509.NameAttribute(NameOID.COMMON_NAME, cn)]
    if o:
        attrs.append(x509.NameAttribute(NameOID.ORGANIZATION_NAME, o))
    return x509.Name(attrs)


def issue(
    *,
    subject: x509.Name,
    issuer: x509.Name,
    public_key: Any,
    signing_key: Any,
    ca: bool,
    sans: tuple[str, ...] = (),
    not_before: datetime | None = None,
    not_after: datetime | None = None,
    issuer_public_key: Any = None,
) -> x509.Certificate:
    now = datetime.now(timezone.utc)
    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(public_key)
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before or now - timedelta(days=1))
        .not_valid_after(not_after or now + timedelta(days=90))
        .add_extension(x509.BasicConstraints(ca=ca, path_length=None), critical=True)
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(public_key), critical=False)
        .add_extension(
            x509.AuthorityKeyIdentifier.from_issuer_public_key(issuer_public_key or signing_key.public_key()),
            critical=False,
        )
    )
    if ca:
        builder = builder.add_extension(
            x509.KeyUsage(
                digital_signature=True, content_commitment=False, key_encipherment=False,
                data_encipherment=False, key_agreement=False, key_cert_sign=True,
                crl_sign=True, encipher_only=False, decipher_only=False,
            ),
            critical=True,
        )
    else:
        builder = builder.add_extension(
            x509.KeyUsage(
                digital_signature=True, content_commitment=False, key_encipherment=True,
                data_encipherment=False, key_agreement=False, key_cert_sign=False,
                crl_sign=False, encipher_only=False, decipher_only=False,
            ),
            critical=True,
        ).add_extension(
            x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]), critical=False
        )
    if sans:
        builder = builder.add_extension(
            x509.SubjectAlternativeName([x509.DNSName(s) for s in sans]), critical=False
        )
    return builder.sign(signing_key, hashes.SHA256())


@dataclass
class Pki:
    root_key: Any
    root: x509.Certificate
    leaf_key: Any
    leaf: x509.Certificate

    def issue_leaf(self, **kwargs: Any) -> x509.Certificate:
        kwargs.setdefault("sans", ("localhost",))
        cn = kwargs.pop("cn", "localhost")
        return issue(
            subject=make_name(cn, "Example Org"),
            issuer=self.root.subject,
            public_key=self.leaf_key.public_key(),
            signing_key=self.root_key,
            ca=False,
            **kwargs,
        )

    def pem_bundle(self) -> bytes:
        return b"".join(
            c.public_bytes(serialization.Encoding.PEM) for c in (self.leaf, self.root)
        )

    def leaf_key_pem(self) -> bytes:
        return self.leaf_key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )


@pytest.fixture(scope="session")
def pki() -> Pki:
    root_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    root_name = make_name("Test Root CA", "Test Trust Services")
    root = issue(
        subject=root_name,
        issuer=root_name,
        public_key=root_key.public_key(),
        signing_key=root_key,
        ca=True,
        not_after=datetime.now(timezone.utc) + timedelta(days=3650),
    )
    leaf_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    pki = Pki(root_key=root_key, root=root, leaf_key=leaf_key, leaf=None)  # type: ignore[arg-type]
    pki.leaf = pki.issue_leaf(sans=("localhost", "www.localhost"))
    return pki


@pytest.fixture(scope="session")
def cross_signed() -> tuple[x509.Certificate, x509.Certificate]:
    """Two CAs that each issued the other: an issuer-link cycle."""
    a_key = ec.generate_private_key(ec.SECP256R1())
    b_key = ec.generate_private_key(ec.SECP256R1())
    a_name, b_name = make_name("Cycle A"), make_name("Cycle B")
    a = issue(
        subject=a_name, issuer=b_name, public_key=a_key.public_key(),
        signing_key=b_key, ca=True,
    )
    b = issue(
        subject=b_name, issuer=a_name, public_key=b_key.public_key(),
        signing_key=a_key, ca=True,
    )
    return a, b
