from __future__ import annotations

from .models import CertificateRecord, Report, Status
from .utils import dt_to_utc_iso

_MARKERS = {
    Status.PASS: "[PASS]",
    Status.WARNING: "[WARN]",
    Status.FAIL: "[FAIL]",
}


def chain_label(index: int, total: int, record: CertificateRecord) -> str:
    if index == 0:
        return "End-Entity"
    if index == total - 1 and record.is_self_signed:
        return "Root CA"
    return "Intermediate"


def _row(label: str, value: object) -> str:
    return f"  {label:<20} {value}"


def render_text(report: Report) -> str:
    leaf = report.certificate.record
    lines = [
        f"{report.hostname}: grade {report.grade.value}",
        (
            f"  {report.summary.passed} passed, {report.summary.warnings} warnings, "
            f"{report.summary.failed} failed"
        ),
        "",
        "Validations",
    ]
    for v in report.validations:
        lines.append(f"  {_MARKERS[v.status]} {v.name}: {v.message}")

    lines += [
        "",
        "Certificate",
        _row("Subject", leaf.subject),
        _row("Issuer", leaf.issuer),
        _row("Valid", f"{dt_to_utc_iso(leaf.valid_from)} .. {dt_to_utc_iso(leaf.valid_to)}"),
        _row("Days remaining", report.days_remaining),
        _row("Serial", leaf.serial_number),
        _row("Signature", leaf.signature_algorithm),
        _row("Key size", f"{leaf.bits} bits" if leaf.bits else "Unknown"),
        _row("SHA-256", leaf.fingerprint),
    ]
    if report.certificate.subject_alt_names:
        sans = ", ".join(
            s.replace("DNS:", "", 1) for s in report.certificate.subject_alt_names.split(", ")
        )
        lines.append(_row("Alt names", sans))

    conn = report.connection
    lines += [
        "",
        "Connection",
        _row("Protocol", conn.protocol or "Unknown"),
        _row("Cipher", conn.cipher or "Unknown"),
        _row("Trusted", "yes" if conn.authorized else f"no ({conn.authorization_error or 'Unknown error'})"),
        "",
        "Chain",
    ]
    total = len(report.chain)
    for i, rec in enumerate(report.chain):
        lines.append(f"  {i}. {chain_label(i, total, rec)}: {rec.subject}")
        lines.append(
            f"     {rec.bits or '?'} bits, {rec.signature_algorithm}, "
            f"expires {dt_to_utc_iso(rec.valid_to)}"
        )

    lines += ["", f"Checked at {dt_to_utc_iso(report.checked_at)}"]
    return "\n".join(lines)
