from __future__ import annotations

import hashlib
from datetime import datetime, timezone


def sha256_fingerprint(der: bytes) -> str:
    digest = hashlib.sha256(der).hexdigest().upper()
    return ":".join(digest[i:i + 2] for i in range(0, len(digest), 2))


def serial_hex(serial: int) -> str:
    text = format(serial, "X")
    if len(text) % 2:
        text = "0" + text
    return text


def as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def dt_to_utc_iso(dt: datetime) -> str:
    return as_utc(dt).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def dt_to_iso_millis(dt: datetime) -> str:
    return as_utc(dt).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
