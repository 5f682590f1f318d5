from __future__ import annotations

import re

from cryptography import x509
from cryptography.x509.oid import NameOID

from .models import DistinguishedName


_SAN_DNS_RE = re.compile(r"^DNS:(.+)$", re.IGNORECASE)


def _first_value(name: x509.Name, oid: x509.ObjectIdentifier) -> str | None:
    attrs = name.get_attributes_for_oid(oid)
    if not attrs:
        return None
    value = attrs[0].value
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    return value or None


def to_distinguished_name(name: x509.Name) -> DistinguishedName:
    try:
        fallback = name.rfc4514_string()
    except ValueError:
        fallback = str(name)
    return DistinguishedName(
        cn=_first_value(name, NameOID.COMMON_NAME),
        o=_first_value(name, NameOID.ORGANIZATION_NAME),
        ou=_first_value(name, NameOID.ORGANIZATIONAL_UNIT_NAME),
        l=_first_value(name, NameOID.LOCALITY_NAME),
        st=_first_value(name, NameOID.STATE_OR_PROVINCE_NAME),
        c=_first_value(name, NameOID.COUNTRY_NAME),
        fallback=fallback,
    )


def format_dn(dn: DistinguishedName | None) -> str:
    """
    Render a DN as "CN=..., O=..., OU=..., L=..., ST=..., C=...".

    Only present fields are emitted. A name with none of them falls back to
    its RFC 4514 text, an empty one to "Unknown".
    """
    if dn is None:
        return "Unknown"
    parts = [f"{key}={value}" for key, value in dn.fields() if value]
    if parts:
        return ", ".join(parts)
    return dn.fallback or "Unknown"


def subject_alt_names(cert: x509.Certificate) -> str:
    try:
        ext = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)
    except x509.ExtensionNotFound:
        return ""

    entries: list[str] = []
    for gn in ext.value:
        if isinstance(gn, x509.DNSName):
            entries.append(f"DNS:{gn.value}")
        elif isinstance(gn, x509.IPAddress):
            entries.append(f"IP Address:{gn.value}")
        elif isinstance(gn, x509.RFC822Name):
            entries.append(f"email:{gn.value}")
        elif isinstance(gn, x509.UniformResourceIdentifier):
            entries.append(f"URI:{gn.value}")
    return ", ".join(entries)


def match_hostname(pattern: str, hostname: str) -> bool:
    """
    Exact match, or a single leading "*." label standing for exactly one
    hostname label: "*.example.com" covers "www.example.com" but neither
    "example.com" nor "a.b.example.com".
    """
    if pattern == hostname:
        return True

    if pattern.startswith("*."):
        suffix = pattern[2:]
        host_parts = hostname.split(".")
        if len(host_parts) >= 2:
            return ".".join(host_parts[1:]) == suffix

    return False


def certificate_matches_host(common_name: str | None, san: str, hostname: str) -> bool:
    if common_name and match_hostname(common_name, hostname):
        return True

    if san:
        for entry in san.split(", "):
            m = _SAN_DNS_RE.match(entry)
            if m and match_hostname(m.group(1), hostname):
                return True

    return False
