"""Provisioner configuration.

build_context() takes one ProvisionerSettings value. Construction never reads
the environment; only from_env() does, and only the CLI calls it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_SOFTLAYER_ENDPOINT = "https://api.softlayer.com/rest/v3.1"


@dataclass(frozen=True, slots=True)
class ProvisionerSettings:
    """Configuration for talking to SoftLayer and the VPX management API.

    Non-local environments must supply real SoftLayer credentials.
    """

    # ── Environment ────────────────────────────────────────────────
    environment: str = "local"
    """One of: local, staging, production."""

    # ── SoftLayer ──────────────────────────────────────────────────
    softlayer_username: str = ""
    softlayer_api_key: str = ""
    """SoftLayer API key. Never log this."""

    softlayer_endpoint_url: str = DEFAULT_SOFTLAYER_ENDPOINT
    softlayer_timeout_seconds: float = 60.0

    # ── NITRO (appliance management API) ───────────────────────────
    nitro_scheme: str = "http"
    nitro_timeout_seconds: float = 30.0

    # ── Provisioning ───────────────────────────────────────────────
    settle_seconds: float = 60.0
    """Extra delay after the management API first answers."""

    @property
    def is_local(self) -> bool:
        return self.environment == "local"

    def validate(self) -> list[str]:
        """Return a list of configuration errors. Empty means valid."""
        errors: list[str] = []
        if self.environment not in ("local", "staging", "production"):
            errors.append(f"unknown environment: {self.environment!r}")
        if not self.is_local:
            if not self.softlayer_username:
                errors.append(f"{self.environment}: softlayer_username is required")
            if not self.softlayer_api_key:
                errors.append(f"{self.environment}: softlayer_api_key is required")
        if self.nitro_scheme not in ("http", "https"):
            errors.append(f"nitro_scheme must be http or https, got {self.nitro_scheme!r}")
        if self.settle_seconds < 0:
            errors.append("settle_seconds must be >= 0")
        return errors

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None) -> ProvisionerSettings:
        """Read SOFTLAYER_*, NITRO_*, VPX_SETTLE_SECONDS and ENVIRONMENT.

        Raises ValueError if a numeric variable does not parse.
        """
        if env is None:
            env = dict(os.environ)

        return cls(
            environment=env.get("ENVIRONMENT", "local"),
            softlayer_username=env.get("SOFTLAYER_USERNAME", ""),
            softlayer_api_key=env.get("SOFTLAYER_API_KEY", ""),
            softlayer_endpoint_url=env.get(
                "SOFTLAYER_ENDPOINT_URL", DEFAULT_SOFTLAYER_ENDPOINT
            ),
            softlayer_timeout_seconds=float(env.get("SOFTLAYER_TIMEOUT", "60")),
            nitro_scheme=env.get("NITRO_SCHEME", "http"),
            nitro_timeout_seconds=float(env.get("NITRO_TIMEOUT", "30")),
            settle_seconds=float(env.get("VPX_SETTLE_SECONDS", "60")),
        )
