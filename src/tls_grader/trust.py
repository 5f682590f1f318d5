from __future__ import annotations

import ipaddress
import logging
import ssl
from datetime import datetime
from pathlib import Path
from typing import Sequence

import certifi
from cryptography import x509
from cryptography.x509.verification import PolicyBuilder, Store, VerificationError

logger = logging.getLogger(__name__)


def _load_pem_bundle(path: str | Path) -> list[x509.Certificate]:
    return x509.load_pem_x509_certificates(Path(path).read_bytes())


def _system_anchors() -> list[x509.Certificate]:
    ctx = ssl.create_default_context()
    ders = ctx.get_ca_certs(binary_form=True)
    if ders:
        return [x509.load_der_x509_certificate(der) for der in ders]

    # CAs loaded lazily from a capath are not listed; read the default bundle.
    cafile = ssl.get_default_verify_paths().cafile
    if cafile and Path(cafile).exists():
        return _load_pem_bundle(cafile)
    return []


def load_trust_anchors(store: str) -> list[x509.Certificate]:
    """
    Root certificates of the named store: "mozilla" (certifi bundle) or
    "system" (what the default SSL context trusts).
    """
    if store == "mozilla":
        anchors = _load_pem_bundle(certifi.where())
    elif store == "system":
        anchors = _system_anchors()
    else:
        raise ValueError(f"unknown trust store: {store}")
    logger.debug("loaded %d trust anchors from %s store", len(anchors), store)
    return anchors


def _subject_for(hostname: str) -> x509.GeneralName:
    try:
        return x509.IPAddress(ipaddress.ip_address(hostname))
    except ValueError:
        return x509.DNSName(hostname)


def verify_trust(
    hostname: str,
    leaf: x509.Certificate,
    intermediates: Sequence[x509.Certificate],
    anchors: Sequence[x509.Certificate],
    now: datetime,
) -> tuple[bool, str | None]:
    """
    Default trust decision for a presented chain: (authorized, error).

    Never raises for an untrusted chain; the error text says why.
    """
    if not anchors:
        return False, "No trust anchors available"

    try:
        verifier = (
            PolicyBuilder()
            .store(Store(list(anchors)))
            .time(now)
            .build_server_verifier(_subject_for(hostname))
        )
        verifier.verify(leaf, list(intermediates))
    except VerificationError as e:
        logger.debug("trust verification failed for %s: %s", hostname, e)
        return False, str(e) or "Unknown error"
    except ValueError as e:
        logger.debug("trust verification could not run for %s: %s", hostname, e)
        return False, str(e) or "Unknown error"

    return True, None
