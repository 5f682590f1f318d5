from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from .utils import dt_to_iso_millis, dt_to_utc_iso


class Status(str, Enum):
    PASS = "pass"
    WARNING = "warning"
    FAIL = "fail"


class Grade(str, Enum):
    A_PLUS = "A+"
    A = "A"
    B = "B"
    C = "C"
    F = "F"


@dataclass(frozen=True)
class DistinguishedName:
    """
    The subset of a subject/issuer name we render, in canonical order.
    """
    cn: str | None = None
    o: str | None = None
    ou: str | None = None
    l: str | None = None  # noqa: E741
    st: str | None = None
    c: str | None = None
    fallback: str = ""  # RFC 4514 text, used when none of the fields above are set

    def fields(self) -> list[tuple[str, str | None]]:
        return [
            ("CN", self.cn),
            ("O", self.o),
            ("OU", self.ou),
            ("L", self.l),
            ("ST", self.st),
            ("C", self.c),
        ]


@dataclass(frozen=True)
class CertificateRecord:
    """
    One certificate of the walked chain.
    """
    subject: str
    issuer: str
    valid_from: datetime
    valid_to: datetime
    serial_number: str
    fingerprint: str
    signature_algorithm: str
    bits: int | None
    is_self_signed: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "subject": self.subject,
            "issuer": self.issuer,
            "validFrom": dt_to_utc_iso(self.valid_from),
            "validTo": dt_to_utc_iso(self.valid_to),
            "serialNumber": self.serial_number,
            "fingerprint": self.fingerprint,
            "signatureAlgorithm": self.signature_algorithm,
            "bits": self.bits if self.bits else "Unknown",
            "isSelfSigned": self.is_self_signed,
        }


@dataclass(frozen=True)
class LeafCertificate:
    """
    Leaf record plus the raw name data the hostname rule needs.
    """
    record: CertificateRecord
    common_name: str | None
    subject_alt_names: str  # "DNS:a.example, DNS:b.example, IP Address:..."


@dataclass(frozen=True)
class ConnectionInfo:
    protocol: str | None
    cipher: str | None
    authorized: bool
    authorization_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "protocol": self.protocol,
            "cipher": self.cipher or "Unknown",
            "authorized": self.authorized,
        }


@dataclass(frozen=True)
class ValidationResult:
    name: str
    status: Status
    message: str

    def __post_init__(self) -> None:
        if not isinstance(self.status, Status):
            raise TypeError(f"status must be a Status, got {self.status!r}")
        if not self.message:
            raise ValueError("validation message must not be empty")

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "status": self.status.value, "message": self.message}


@dataclass(frozen=True)
class Summary:
    passed: int
    warnings: int
    failed: int

    def to_dict(self) -> dict[str, int]:
        return {"passed": self.passed, "warnings": self.warnings, "failed": self.failed}


@dataclass(frozen=True)
class Report:
    hostname: str
    grade: Grade
    summary: Summary
    certificate: LeafCertificate
    days_remaining: int
    connection: ConnectionInfo
    chain: tuple[CertificateRecord, ...]
    validations: tuple[ValidationResult, ...]
    checked_at: datetime

    def to_dict(self) -> dict[str, Any]:
        leaf = self.certificate.record
        return {
            "hostname": self.hostname,
            "grade": self.grade.value,
            "summary": self.summary.to_dict(),
            "certificate": {
                "subject": leaf.subject,
                "issuer": leaf.issuer,
                "validFrom": dt_to_utc_iso(leaf.valid_from),
                "validTo": dt_to_utc_iso(leaf.valid_to),
                "daysRemaining": self.days_remaining,
                "serialNumber": leaf.serial_number,
                "fingerprint": leaf.fingerprint,
                "subjectAltNames": self.certificate.subject_alt_names,
                "signatureAlgorithm": leaf.signature_algorithm,
                "keySize": leaf.bits if leaf.bits else "Unknown",
            },
            "connection": self.connection.to_dict(),
            "chain": [c.to_dict() for c in self.chain],
            "validations": [v.to_dict() for v in self.validations],
            "checkedAt": dt_to_iso_millis(self.checked_at),
        }
