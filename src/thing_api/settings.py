"""thing-api configuration settings.

ThingAPISettings is the single configuration object accepted by create_app().
It is a plain dataclass (not env-coupled) so tests can inject config
without touching os.environ.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .kinds import BUILTIN_KINDS, ResourceKind
from .observability.logging import LOG_FORMATS

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _split_csv(raw: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True, slots=True)
class ThingAPISettings:
    """Configuration for the resource API application."""

    # ── Auth ───────────────────────────────────────────────────────
    api_token: str = ""
    """Shared secret every request must present in Authorization. Never log this."""

    # ── Server ─────────────────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 8080

    # ── Resources ──────────────────────────────────────────────────
    kinds: tuple[str, ...] = ("thing", "token")
    """Names of the resource kinds to mount under /api/<kind>."""

    eligibility_seconds: float = 3.0
    """Age a pending resource must exceed before reads may complete it."""

    # ── Rate limiting ──────────────────────────────────────────────
    rate_limit_max_requests: int = 1
    rate_limit_window_seconds: float = 1.0

    # ── CORS ───────────────────────────────────────────────────────
    cors_origins: tuple[str, ...] = ("*",)

    # ── Logging ────────────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "json"
    """One of LOG_FORMATS: "json" lines or the "console" dev renderer."""

    @property
    def resource_kinds(self) -> tuple[ResourceKind, ...]:
        return tuple(BUILTIN_KINDS[name] for name in self.kinds if name in BUILTIN_KINDS)

    def validate(self) -> list[str]:
        """Return a list of configuration errors. Empty means valid."""
        errors: list[str] = []
        if not self.api_token:
            errors.append("api_token is required")
        if not 0 < self.port < 65536:
            errors.append(f"port must be in 1..65535, got {self.port}")
        if not self.kinds:
            errors.append("at least one resource kind must be enabled")
        unknown = [name for name in self.kinds if name not in BUILTIN_KINDS]
        if unknown:
            errors.append(
                f"unknown resource kinds {unknown}; known: {sorted(BUILTIN_KINDS)}"
            )
        if len(set(self.kinds)) != len(self.kinds):
            errors.append("resource kinds must not repeat")
        if self.rate_limit_max_requests < 1:
            errors.append("rate_limit_max_requests must be >= 1")
        if self.rate_limit_window_seconds <= 0:
            errors.append("rate_limit_window_seconds must be > 0")
        if self.eligibility_seconds < 0:
            errors.append("eligibility_seconds must be >= 0")
        if self.log_level.upper() not in LOG_LEVELS:
            errors.append(f"log_level must be one of {list(LOG_LEVELS)}, got {self.log_level!r}")
        if self.log_format not in LOG_FORMATS:
            errors.append(f"log_format must be one of {list(LOG_FORMATS)}, got {self.log_format!r}")
        return errors

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None) -> ThingAPISettings:
        """Build settings from environment variables.

        Malformed numeric values raise ValueError naming the variable.
        """
        if env is None:
            env = dict(os.environ)

        def _number(name: str, default, cast):
            raw = env.get(name, "").strip()
            if not raw:
                return default
            try:
                return cast(raw)
            except ValueError:
                raise ValueError(f"{name} must be a number, got {raw!r}") from None

        defaults = cls()
        kinds_raw = env.get("RESOURCE_KINDS", "")
        cors_raw = env.get("CORS_ORIGINS", "")

        return cls(
            api_token=env.get("API_TOKEN", ""),
            host=env.get("HOST", "") or defaults.host,
            port=_number("PORT", defaults.port, int),
            kinds=_split_csv(kinds_raw) if kinds_raw else defaults.kinds,
            eligibility_seconds=_number("ELIGIBILITY_SECONDS", defaults.eligibility_seconds, float),
            rate_limit_max_requests=_number(
                "RATE_LIMIT_MAX_REQUESTS", defaults.rate_limit_max_requests, int,
            ),
            rate_limit_window_seconds=_number(
                "RATE_LIMIT_WINDOW_SECONDS", defaults.rate_limit_window_seconds, float,
            ),
            cors_origins=_split_csv(cors_raw) if cors_raw else defaults.cors_origins,
            log_level=env.get("LOG_LEVEL", "").strip() or defaults.log_level,
            log_format=env.get("LOG_FORMAT", "").strip().lower() or defaults.log_format,
        )
