"""Client configuration.

PostgrestSettings is a plain frozen dataclass so tests can construct it
directly; ``from_env`` is the convenience factory for applications.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class PostgrestSettings:
    """Configuration for a PostgrestClient."""

    endpoint: str = ""
    """Base REST URL (e.g. https://db.example.com or https://xyz.supabase.co/rest/v1)."""

    api_key: str = ""
    """Optional anon/service key sent as ``apikey``. Never log this."""

    schema: str = ""
    """Default PostgREST schema profile. Empty means the server default."""

    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    """Timeout for the httpx.AsyncClient the client creates for itself."""

    def validate(self) -> list[str]:
        """Return a list of configuration errors. Empty means valid."""
        errors: list[str] = []
        if not self.endpoint:
            errors.append("endpoint is required")
        elif not self.endpoint.startswith(("http://", "https://")):
            errors.append(f"endpoint must be an http(s) URL: {self.endpoint!r}")
        if self.timeout_seconds <= 0:
            errors.append("timeout_seconds must be positive")
        return errors

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None) -> PostgrestSettings:
        """Build settings from POSTGREST_* environment variables."""
        if env is None:
            env = dict(os.environ)

        timeout_raw = env.get("POSTGREST_TIMEOUT_SECONDS", "").strip()
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT_SECONDS
        except ValueError:
            raise ValueError(
                f"POSTGREST_TIMEOUT_SECONDS must be a number, got {timeout_raw!r}"
            ) from None

        return cls(
            endpoint=env.get("POSTGREST_URL", "").strip().rstrip("/"),
            api_key=env.get("POSTGREST_API_KEY", "").strip(),
            schema=env.get("POSTGREST_SCHEMA", "").strip(),
            timeout_seconds=timeout,
        )
