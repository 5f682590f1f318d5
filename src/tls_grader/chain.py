from __future__ import annotations

import logging
from typing import Callable, Iterable, Sequence

from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization

from .models import CertificateRecord, LeafCertificate
from .names import format_dn, subject_alt_names, to_distinguished_name
from .utils import as_utc, serial_hex, sha256_fingerprint

logger = logging.getLogger(__name__)

MAX_CHAIN_DEPTH = 16

IssuerLookup = Callable[[x509.Certificate], "x509.Certificate | None"]


def fingerprint(cert: x509.Certificate) -> str:
    return sha256_fingerprint(cert.public_bytes(serialization.Encoding.DER))


def _sig_alg(cert: x509.Certificate) -> str:
    oid = cert.signature_algorithm_oid
    # _name is private; without it, or for unregistered OIDs, report the dotted form
    name = getattr(oid, "_name", None)
    if name and name != "Unknown OID":
        return name
    return oid.dotted_string or "Unknown"


def _key_bits(cert: x509.Certificate) -> int | None:
    try:
        return getattr(cert.public_key(), "key_size", None)
    except (UnsupportedAlgorithm, ValueError):
        return None


def to_record(cert: x509.Certificate) -> CertificateRecord:
    subject = format_dn(to_distinguished_name(cert.subject))
    issuer = format_dn(to_distinguished_name(cert.issuer))
    return CertificateRecord(
        subject=subject,
        issuer=issuer,
        valid_from=as_utc(cert.not_valid_before_utc),
        valid_to=as_utc(cert.not_valid_after_utc),
        serial_number=serial_hex(cert.serial_number),
        fingerprint=fingerprint(cert),
        signature_algorithm=_sig_alg(cert),
        bits=_key_bits(cert),
        is_self_signed=subject == issuer,
    )


def to_leaf(cert: x509.Certificate) -> LeafCertificate:
    cn = to_distinguished_name(cert.subject).cn
    return LeafCertificate(
        record=to_record(cert),
        common_name=cn,
        subject_alt_names=subject_alt_names(cert),
    )


def _issued_by(cert: x509.Certificate, candidate: x509.Certificate) -> bool:
    if cert.issuer != candidate.subject:
        return False
    try:
        cert.verify_directly_issued_by(candidate)
    except (UnsupportedAlgorithm, TypeError):
        # Signature can't be checked with this key type; trust the name link.
        return True
    except (InvalidSignature, ValueError):
        return False
    return True


def issuer_lookup(pool: Iterable[x509.Certificate]) -> IssuerLookup:
    """
    Resolve a certificate's issuer back-reference from ``pool``.

    Candidates are tried in pool order (presented certificates first, then
    trust anchors), so a self-signed root resolves to itself.
    """
    candidates = list(pool)

    def lookup(cert: x509.Certificate) -> x509.Certificate | None:
        for candidate in candidates:
            if _issued_by(cert, candidate):
                return candidate
        return None

    return lookup


def walk_chain(
    leaf: x509.Certificate,
    issuer_of: IssuerLookup,
    *,
    max_depth: int = MAX_CHAIN_DEPTH,
) -> list[x509.Certificate]:
    """
    Follow issuer links from ``leaf``: stops at a repeated fingerprint (cycle,
    including a root pointing at itself), a missing issuer, or ``max_depth``.
    Every returned certificate has a distinct fingerprint.
    """
    chain: list[x509.Certificate] = []
    seen: set[str] = set()
    current: x509.Certificate | None = leaf

    while current is not None and len(chain) < max_depth:
        fp = fingerprint(current)
        if fp in seen:
            logger.debug("chain walk stopped at repeated certificate %s", fp)
            break
        seen.add(fp)
        chain.append(current)
        current = issuer_of(current)

    return chain


def build_chain(
    leaf: x509.Certificate,
    presented: Sequence[x509.Certificate] = (),
    anchors: Sequence[x509.Certificate] = (),
) -> list[CertificateRecord]:
    certs = walk_chain(leaf, issuer_lookup([*presented, *anchors]))
    logger.debug("walked chain of %d certificate(s)", len(certs))
    return [to_record(c) for c in certs]
