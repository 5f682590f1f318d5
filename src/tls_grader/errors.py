from __future__ import annotations

from typing import Any


class InspectionError(Exception):
    """
    Request-level failure of one inspection.

    ``kind`` is the classification handed to the caller; the HTTP or CLI
    layer decides what it means for its own transport.
    """

    kind = "InspectionError"

    def __init__(self, message: str, *, hostname: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hostname = hostname

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "kind": self.kind}


class NoCertificateError(InspectionError):
    kind = "NoCertificate"

    def __init__(self, *, hostname: str | None = None) -> None:
        super().__init__("No certificate found", hostname=hostname)


class ConnectionFailedError(InspectionError):
    kind = "ConnectionError"

    def __init__(self, cause: object, *, hostname: str | None = None) -> None:
        super().__init__(f"Connection failed: {cause}", hostname=hostname)


class InspectionTimeoutError(InspectionError):
    kind = "Timeout"

    def __init__(self, *, hostname: str | None = None) -> None:
        super().__init__("Connection timeout", hostname=hostname)


class InternalInspectionError(InspectionError):
    kind = "InternalError"

    def __init__(self, cause: object, *, hostname: str | None = None) -> None:
        super().__init__(f"Failed to check certificate: {cause}", hostname=hostname)
