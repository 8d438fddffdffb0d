"""Configuration for the ledger service.

Values come from environment variables with sensible defaults:
- AQUA_HOST / AQUA_PORT / AQUA_DEBUG: API server binding and reload mode
- AQUA_LOG_LEVEL: structlog filtering level (default: INFO)
- AQUA_OWNER: owner of the trusted-delegate allow-list
- AQUA_TRUSTED_DELEGATES: comma-separated initial delegate addresses
- AQUA_APP_ADDRESS: app identity of the default StableSwap engine
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from aqua.models.types import normalize_address

_ZERO_ADDRESS = "0x" + "0" * 40
_DEFAULT_APP = "0x" + "0" * 39 + "1"


@dataclass(frozen=True)
class AquaConfig:
    """Process configuration.

    Attributes:
        host: API bind host
        port: API bind port
        debug: Enable uvicorn reload
        log_level: Minimum log level name (DEBUG, INFO, WARNING, ...)
        owner: Address allowed to administer trusted delegates
        trusted_delegates: Addresses allowed to act on behalf of providers
        app_address: Identity of the default StableSwap engine
    """

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"
    owner: str = _ZERO_ADDRESS
    trusted_delegates: tuple[str, ...] = ()
    app_address: str = _DEFAULT_APP


def _parse_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


def _parse_addresses(value: str) -> tuple[str, ...]:
    return tuple(
        normalize_address(part.strip(), validate=True) for part in value.split(",") if part.strip()
    )


def load_config(environ: Mapping[str, str] | None = None) -> AquaConfig:
    """Build configuration from environment variables.

    Raises:
        ValueError: If an address or the port is malformed
    """
    env = os.environ if environ is None else environ
    return AquaConfig(
        host=env.get("AQUA_HOST", "0.0.0.0"),
        port=int(env.get("AQUA_PORT", "8000")),
        debug=_parse_bool(env.get("AQUA_DEBUG", "false")),
        log_level=env.get("AQUA_LOG_LEVEL", "INFO").upper(),
        owner=normalize_address(env.get("AQUA_OWNER", _ZERO_ADDRESS), validate=True),
        trusted_delegates=_parse_addresses(env.get("AQUA_TRUSTED_DELEGATES", "")),
        app_address=normalize_address(env.get("AQUA_APP_ADDRESS", _DEFAULT_APP), validate=True),
    )


DEFAULT_CONFIG = load_config()
