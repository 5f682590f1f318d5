from __future__ import annotations

__version__ = "0.1.0"

from .config import Settings
from .errors import (
    ConnectionFailedError,
    InspectionError,
    InspectionTimeoutError,
    InternalInspectionError,
    NoCertificateError,
)
from .fetch import inspect_host
from .models import Grade, Report, Status

__all__ = [
    "__version__",
    "ConnectionFailedError",
    "Grade",
    "InspectionError",
    "InspectionTimeoutError",
    "InternalInspectionError",
    "NoCertificateError",
    "Report",
    "Settings",
    "Status",
    "inspect_host",
]
