from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from cryptography import x509

from .chain import build_chain, to_leaf
from .grading import grade_for, tally
from .models import ConnectionInfo, Report
from .trust import verify_trust
from .utils import utc_now
from .validation import ValidationInput, days_remaining, run_validations

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PeerSession:
    """
    What the handshake left us with: the parsed presented chain (leaf first)
    and the negotiated parameters.
    """
    certificates: tuple[x509.Certificate, ...]
    protocol: str | None
    cipher: str | None

    @property
    def leaf(self) -> x509.Certificate:
        return self.certificates[0]

    @property
    def intermediates(self) -> tuple[x509.Certificate, ...]:
        return self.certificates[1:]


def connection_info(
    hostname: str,
    session: PeerSession,
    anchors: Sequence[x509.Certificate],
    now: datetime,
) -> ConnectionInfo:
    authorized, error = verify_trust(hostname, session.leaf, session.intermediates, anchors, now)
    return ConnectionInfo(
        protocol=session.protocol,
        cipher=session.cipher,
        authorized=authorized,
        authorization_error=error,
    )


def build_report(
    hostname: str,
    session: PeerSession,
    connection: ConnectionInfo,
    anchors: Sequence[x509.Certificate] = (),
    *,
    now: datetime | None = None,
) -> Report:
    now = now or utc_now()

    leaf = to_leaf(session.leaf)
    chain = build_chain(session.leaf, session.intermediates, anchors)

    ctx = ValidationInput(
        hostname=hostname,
        leaf=leaf,
        chain_length=len(chain),
        connection=connection,
        now=now,
    )
    validations = run_validations(ctx)
    summary = tally(validations)
    grade = grade_for(summary)
    logger.info(
        "%s graded %s (%d passed, %d warnings, %d failed)",
        hostname, grade.value, summary.passed, summary.warnings, summary.failed,
    )

    return Report(
        hostname=hostname,
        grade=grade,
        summary=summary,
        certificate=leaf,
        days_remaining=days_remaining(leaf, now),
        connection=connection,
        chain=tuple(chain),
        validations=tuple(validations),
        checked_at=now,
    )
