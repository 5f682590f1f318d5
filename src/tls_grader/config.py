from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any

from dotenv import load_dotenv


TRUST_STORES = ("mozilla", "system")
ENV_PREFIX = "TLS_GRADER_"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Settings:
    port: int = 443
    timeout: float = 10.0
    trust_store: str = "mozilla"
    close_timeout: float = 2.0
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if not (1 <= self.port <= 65535):
            raise ValueError("port out of range")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.close_timeout <= 0:
            raise ValueError("close_timeout must be positive")
        if self.trust_store not in TRUST_STORES:
            raise ValueError(f"trust_store must be one of: {', '.join(TRUST_STORES)}")
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of: {', '.join(LOG_LEVELS)}")

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        """Build settings from ``TLS_GRADER_*`` variables (and a ``.env`` file)."""
        if environ is None:
            load_dotenv()
            environ = dict(os.environ)

        values: dict[str, Any] = {}
        for field_name, convert in (
            ("port", int),
            ("timeout", float),
            ("trust_store", str),
            ("close_timeout", float),
            ("log_level", str),
        ):
            var = ENV_PREFIX + field_name.upper()
            raw = environ.get(var)
            if raw is None or raw.strip() == "":
                continue
            try:
                values[field_name] = convert(raw.strip())
            except ValueError as e:
                raise ValueError(f"{var}: {e}") from e

        if "log_level" in values:
            values["log_level"] = values["log_level"].upper()
        return cls(**values)

    def with_overrides(self, **overrides: Any) -> "Settings":
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
