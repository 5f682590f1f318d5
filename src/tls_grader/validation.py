from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from .models import ConnectionInfo, LeafCertificate, Status, ValidationResult
from .names import certificate_matches_host

SECURE_PROTOCOLS = ("TLSv1.2", "TLSv1.3")
WEAK_SIGNATURE_MARKERS = ("sha1", "md5")
EXPIRY_WARNING_DAYS = 30
MIN_KEY_BITS = 2048
LEGACY_KEY_BITS = 1024


@dataclass(frozen=True)
class ValidationInput:
    hostname: str
    leaf: LeafCertificate
    chain_length: int
    connection: ConnectionInfo
    now: datetime

    @property
    def days_remaining(self) -> int:
        return days_remaining(self.leaf, self.now)


def days_remaining(leaf: LeafCertificate, now: datetime) -> int:
    # timedelta.days already floors toward negative infinity
    return (leaf.record.valid_to - now).days


def check_validity(ctx: ValidationInput) -> ValidationResult:
    rec = ctx.leaf.record
    if ctx.now < rec.valid_from:
        return ValidationResult("Certificate Validity", Status.FAIL, "Certificate not yet valid")
    if ctx.now > rec.valid_to:
        return ValidationResult("Certificate Validity", Status.FAIL, "Certificate has expired")
    return ValidationResult(
        "Certificate Validity", Status.PASS, f"Valid ({ctx.days_remaining} days remaining)"
    )


def check_expiration(ctx: ValidationInput) -> ValidationResult:
    days = ctx.days_remaining
    if days <= 0:
        return ValidationResult("Expiration Warning", Status.FAIL, "Certificate has expired")
    if days <= EXPIRY_WARNING_DAYS:
        return ValidationResult(
            "Expiration Warning", Status.WARNING, f"Certificate expires in {days} days"
        )
    return ValidationResult("Expiration Warning", Status.PASS, f"{days} days until expiration")


def check_chain(ctx: ValidationInput) -> ValidationResult:
    if ctx.chain_length > 1:
        return ValidationResult(
            "Certificate Chain", Status.PASS, f"Chain complete ({ctx.chain_length} certificates)"
        )
    return ValidationResult("Certificate Chain", Status.WARNING, "Single certificate (no chain)")


def check_trust(ctx: ValidationInput) -> ValidationResult:
    if ctx.connection.authorized:
        return ValidationResult("Trust Status", Status.PASS, "Certificate is trusted")
    error = ctx.connection.authorization_error or "Unknown error"
    return ValidationResult("Trust Status", Status.FAIL, f"Not trusted: {error}")


def check_hostname(ctx: ValidationInput) -> ValidationResult:
    if certificate_matches_host(ctx.leaf.common_name, ctx.leaf.subject_alt_names, ctx.hostname):
        return ValidationResult("Hostname Match", Status.PASS, "Hostname matches certificate")
    return ValidationResult("Hostname Match", Status.FAIL, "Hostname does not match certificate")


def check_protocol(ctx: ValidationInput) -> ValidationResult:
    protocol = ctx.connection.protocol
    status = Status.PASS if protocol in SECURE_PROTOCOLS else Status.WARNING
    return ValidationResult("TLS Protocol", status, f"Using {protocol or 'Unknown'}")


def check_key_strength(ctx: ValidationInput) -> ValidationResult:
    bits = ctx.leaf.record.bits or 0
    if bits >= MIN_KEY_BITS:
        status = Status.PASS
    elif bits >= LEGACY_KEY_BITS:
        status = Status.WARNING
    else:
        status = Status.FAIL
    return ValidationResult("Key Strength", status, f"{bits} bits" if bits else "Unknown")


def check_signature(ctx: ValidationInput) -> ValidationResult:
    alg = ctx.leaf.record.signature_algorithm or ""
    if alg == "Unknown":
        alg = ""
    weak = any(marker in alg.lower() for marker in WEAK_SIGNATURE_MARKERS)
    return ValidationResult(
        "Signature Algorithm", Status.WARNING if weak else Status.PASS, alg or "Unknown"
    )


RULES: tuple[Callable[[ValidationInput], ValidationResult], ...] = (
    check_validity,
    check_expiration,
    check_chain,
    check_trust,
    check_hostname,
    check_protocol,
    check_key_strength,
    check_signature,
)


def run_validations(ctx: ValidationInput) -> list[ValidationResult]:
    """All eight rules, always, in their fixed order."""
    return [rule(ctx) for rule in RULES]
