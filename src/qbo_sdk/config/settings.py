"""Configuration for the QBO client.

The client never reads module-level state: everything it needs (realm,
access token, environment, minor version) is carried by an explicit
`QBOConfig` passed to its constructor.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass

from dotenv import dotenv_values, load_dotenv

logger = logging.getLogger(__name__)

PRODUCTION_BASE_URL = "https://quickbooks.api.intuit.com"
SANDBOX_BASE_URL = "https://sandbox-quickbooks.api.intuit.com"

_TRUTHY = {"1", "true", "yes"}


def as_bool(value: object) -> bool:
    """Interpret flags like `QBO_DEBUG=True` or `{"fetchAll": "yes"}`."""
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return bool(value)


def _load_env() -> None:
    load_dotenv(override=False)

    # Convenience: allow local runs with only `.env.example` filled.
    # Blank placeholders in `.env.example` must not override real values.
    if os.environ.get("QBO_REALM_ID") or os.environ.get("QBO_TOKENS_PATH"):
        return
    example_path = os.path.abspath(".env.example")
    if not os.path.exists(example_path):
        return
    for k, v in (dotenv_values(example_path) or {}).items():
        if not k or not v:
            continue
        if not os.environ.get(k):
            os.environ[k] = v


@dataclass(slots=True)
class QBOAuthTokens:
    environment: str
    realm_id: str
    access_token: str
    refresh_token: str | None = None
    id_token: str | None = None
    saved_at_unix: int | None = None


def load_tokens(path: str, *, default_environment: str = "sandbox") -> QBOAuthTokens:
    """Read the JSON token file written by the local OAuth helper."""

    if not os.path.exists(path):
        raise FileNotFoundError(
            f"Token file not found: {path}. Run your OAuth flow first."
        )
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    return QBOAuthTokens(
        environment=raw.get("environment") or default_environment,
        realm_id=raw["realm_id"],
        access_token=raw["access_token"],
        refresh_token=raw.get("refresh_token"),
        id_token=raw.get("id_token"),
        saved_at_unix=raw.get("saved_at_unix"),
    )


@dataclass(frozen=True, slots=True)
class QBOConfig:
    realm_id: str
    access_token: str
    environment: str = "sandbox"
    minor_version: str | None = None
    timeout_seconds: int = 30
    debug: bool = False

    @property
    def base_url(self) -> str:
        return PRODUCTION_BASE_URL if self.environment == "production" else SANDBOX_BASE_URL

    @classmethod
    def from_tokens(cls, tokens: QBOAuthTokens, **kwargs) -> "QBOConfig":
        return cls(
            realm_id=tokens.realm_id,
            access_token=tokens.access_token,
            environment=tokens.environment,
            **kwargs,
        )

    @classmethod
    def from_env(cls) -> "QBOConfig":
        """Build a config from `QBO_*` environment variables.

        `QBO_REALM_ID` and `QBO_ACCESS_TOKEN` win over the token file at
        `QBO_TOKENS_PATH` (default `.env_qbo_tokens.json`).
        """

        _load_env()
        environment = os.environ.get("QBO_ENVIRONMENT", "sandbox")
        realm_id = os.environ.get("QBO_REALM_ID")
        access_token = os.environ.get("QBO_ACCESS_TOKEN")

        if not realm_id or not access_token:
            tokens_path = os.environ.get(
                "QBO_TOKENS_PATH", os.path.abspath(".env_qbo_tokens.json")
            )
            if os.path.exists(tokens_path):
                tokens = load_tokens(tokens_path, default_environment=environment)
                realm_id = realm_id or tokens.realm_id
                access_token = access_token or tokens.access_token
                environment = tokens.environment
                logger.debug(f"Loaded QBO tokens from {tokens_path}")

        if not realm_id or not access_token:
            raise ValueError(
                "Missing QBO_REALM_ID/QBO_ACCESS_TOKEN and no usable token file"
            )

        return cls(
            realm_id=realm_id,
            access_token=access_token,
            environment=environment,
            minor_version=os.environ.get("QBO_MINORVERSION") or None,
            timeout_seconds=int(os.environ.get("QBO_HTTP_TIMEOUT_SECONDS", "30")),
            debug=as_bool(os.environ.get("QBO_DEBUG")),
        )
