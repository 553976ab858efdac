from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import ClassVar


class FlyConfigError(ValueError):
    pass


@dataclass(frozen=True)
class FlyApiConfig:
    """Runtime configuration for Fly GraphQL and Machines API calls.

    `api_base_url` and `flaps_base_url` should include the scheme, e.g.
    "https://api.fly.io".
    """

    access_token: str = field(repr=False)
    _DEFAULT_API_BASE_URL: ClassVar[str] = "https://api.fly.io"
    _DEFAULT_FLAPS_BASE_URL: ClassVar[str] = "https://api.machines.dev"
    _DEFAULT_TIMEOUT_SECONDS: ClassVar[float] = 30.0
    api_base_url: str = _DEFAULT_API_BASE_URL
    flaps_base_url: str = _DEFAULT_FLAPS_BASE_URL
    timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS

    @property
    def graphql_url(self) -> str:
        return f"{self.api_base_url}/graphql"

    @staticmethod
    def from_env(
        *,
        token_env: str = "FLY_API_TOKEN",
        api_url_env: str = "FLY_API_BASE_URL",
        flaps_url_env: str = "FLY_FLAPS_BASE_URL",
        timeout_env: str = "FLY_API_TIMEOUT_SECONDS",
    ) -> "FlyApiConfig":
        access_token = os.getenv(token_env) or os.getenv("FLY_ACCESS_TOKEN")
        if not access_token:
            raise FlyConfigError(f"Missing required environment variable: {token_env} (or FLY_ACCESS_TOKEN)")

        timeout_raw = os.getenv(timeout_env)
        timeout_seconds = FlyApiConfig._DEFAULT_TIMEOUT_SECONDS
        if timeout_raw:
            try:
                timeout_seconds = float(timeout_raw)
            except ValueError as exc:
                raise FlyConfigError(f"Invalid {timeout_env}; must be a number") from exc

        api_base_url = (os.getenv(api_url_env) or FlyApiConfig._DEFAULT_API_BASE_URL).rstrip("/")
        flaps_base_url = (os.getenv(flaps_url_env) or FlyApiConfig._DEFAULT_FLAPS_BASE_URL).rstrip("/")

        return FlyApiConfig(
            access_token=access_token.strip(),
            api_base_url=api_base_url,
            flaps_base_url=flaps_base_url,
            timeout_seconds=timeout_seconds,
        )
