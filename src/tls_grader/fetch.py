from __future__ import annotations

import asyncio
import logging
import ssl
from datetime import datetime
from typing import Any, Sequence

from cryptography import x509

from .config import Settings
from .errors import (
    ConnectionFailedError,
    InspectionError,
    InspectionTimeoutError,
    InternalInspectionError,
    NoCertificateError,
)
from .models import Report
from .report import PeerSession, build_report, connection_info
from .trust import load_trust_anchors
from .utils import utc_now

logger = logging.getLogger(__name__)


def client_context() -> ssl.SSLContext:
    """
    Handshake context that never rejects the peer: the trust verdict is
    computed separately so an untrusted host still gets a full report.
    """
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx


def _to_der(cert: Any) -> bytes:
    if isinstance(cert, (bytes, bytearray)):
        return bytes(cert)
    # _ssl.Certificate (3.10-3.12) defaults to PEM
    return ssl.PEM_cert_to_DER_cert(cert.public_bytes())


def _presented_chain(ssl_obj: Any) -> list[bytes]:
    """
    Certificates the server sent, as DER. Public API on 3.13+, the private
    one before that; empty when neither is available.
    """
    getter = getattr(ssl_obj, "get_unverified_chain", None)
    if getter is None:
        getter = getattr(getattr(ssl_obj, "_sslobj", None), "get_unverified_chain", None)
    if getter is None:
        return []
    try:
        return [_to_der(c) for c in (getter() or [])]
    except (AttributeError, TypeError, ValueError, ssl.SSLError) as e:
        logger.debug("could not read presented chain: %s", e)
        return []


def capture_session(ssl_obj: Any, *, hostname: str | None = None) -> PeerSession:
    if ssl_obj is None:
        raise InternalInspectionError("no TLS session on connection", hostname=hostname)

    leaf_der = ssl_obj.getpeercert(binary_form=True)
    if not leaf_der:
        raise NoCertificateError(hostname=hostname)

    ders = [leaf_der]
    for der in _presented_chain(ssl_obj):
        if der and der not in ders:
            ders.append(der)

    cipher = ssl_obj.cipher()
    return PeerSession(
        certificates=tuple(x509.load_der_x509_certificate(der) for der in ders),
        protocol=ssl_obj.version(),
        cipher=cipher[0] if cipher else None,
    )


async def _close(writer: asyncio.StreamWriter, timeout: float) -> None:
    writer.close()
    try:
        await asyncio.wait_for(writer.wait_closed(), timeout)
    except (asyncio.TimeoutError, OSError) as e:
        logger.debug("connection did not close cleanly (%s); aborting", str(e) or type(e).__name__)
        writer.transport.abort()


async def inspect_host(
    hostname: str,
    *,
    settings: Settings | None = None,
    anchors: Sequence[x509.Certificate] | None = None,
    now: datetime | None = None,
) -> Report:
    """
    Connect to ``hostname`` over TLS, grade what it presents and return the
    report.

    Exactly one outcome per call: a Report, or an InspectionError
    (NoCertificate, ConnectionError, Timeout, InternalError). The socket is
    closed before either is handed back.
    """
    settings = settings or Settings()

    if anchors is None:
        try:
            anchors = load_trust_anchors(settings.trust_store)
        except (OSError, ValueError) as e:
            raise InternalInspectionError(e, hostname=hostname) from e

    logger.info("connecting to %s:%d", hostname, settings.port)
    try:
        _reader, writer = await asyncio.wait_for(
            asyncio.open_connection(
                hostname,
                settings.port,
                ssl=client_context(),
                server_hostname=hostname,
            ),
            timeout=settings.timeout,
        )
    except asyncio.TimeoutError as e:
        # wait_for cancelled the attempt, which tears the transport down
        logger.warning("timed out after %ss connecting to %s", settings.timeout, hostname)
        raise InspectionTimeoutError(hostname=hostname) from e
    except (OSError, ValueError) as e:
        # ValueError: hostname the resolver cannot encode
        logger.warning("connection to %s failed: %s", hostname, e)
        raise ConnectionFailedError(e, hostname=hostname) from e

    try:
        session = capture_session(writer.get_extra_info("ssl_object"), hostname=hostname)
        checked = now or utc_now()
        connection = connection_info(hostname, session, anchors, checked)
        return build_report(hostname, session, connection, anchors, now=checked)
    except InspectionError:
        raise
    except Exception as e:
        logger.warning("inspection of %s failed: %s", hostname, e)
        raise InternalInspectionError(e, hostname=hostname) from e
    finally:
        await _close(writer, settings.close_timeout)
