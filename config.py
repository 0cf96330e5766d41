"""
Runtime configuration for the hybrid ramp routing service.

Values are read from the process environment (optionally seeded from a local
``.env`` file). Keep secrets such as the relayer API secret out of version
control.
"""

from __future__ import annotations

import logging
import math
import os
from typing import Any

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# Upper bound accepted for the institutional threshold from any source.
MAX_THRESHOLD_USD = 1_000_000_000.0


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def coerce_threshold_usd(raw: Any, default: float, *, source: str = "settings") -> float:
    """Return ``raw`` as a finite threshold in (0, MAX_THRESHOLD_USD], else ``default``."""
    if isinstance(raw, bool):
        value = math.nan
    else:
        try:
            value = float(raw)
        except (TypeError, ValueError):
            value = math.nan
    if not math.isfinite(value) or value <= 0 or value > MAX_THRESHOLD_USD:
        logger.warning("Ignoring invalid institutional threshold %r from %s; using %.2f", raw, source, default)
        return default
    return value


# USD cutoff between single instant settlement and multi-source smart routing.
DEFAULT_INSTITUTIONAL_THRESHOLD_USD = 5000.0
INSTITUTIONAL_THRESHOLD_USD = coerce_threshold_usd(
    os.environ.get("INSTITUTIONAL_THRESHOLD") or DEFAULT_INSTITUTIONAL_THRESHOLD_USD,
    DEFAULT_INSTITUTIONAL_THRESHOLD_USD,
    source="INSTITUTIONAL_THRESHOLD",
)

# Fund share convention: every FUND_SHARE_PRICE_USD invested mints one share.
FUND_SHARE_PRICE_USD = _env_float("FUND_SHARE_PRICE_USD", 100.0)

# Underlying token used for basket legs when no fund token is supplied.
DEFAULT_TOKEN_ADDRESS = os.environ.get("ERC20_ADDRESS", "")

# Settlement relayer (leave blank to run fully simulated).
RELAYER_URL = os.environ.get("RELAYER_URL", "")
RELAYER_API_KEY = os.environ.get("RELAYER_API_KEY", "")
RELAYER_API_SECRET = os.environ.get("RELAYER_API_SECRET", "")
RELAYER_ADDRESS = os.environ.get("RELAYER_ADDRESS", "")
RELAYER_TIMEOUT_SECONDS = _env_float("RELAYER_TIMEOUT_SECONDS", 10.0)

# Remote routing backend used by the client-side fallback executor.
BACKEND_URL = os.environ.get("BACKEND_URL", "")

SERVER_HOST = os.environ.get("HOST", "0.0.0.0")
SERVER_PORT = _env_int("PORT", 4000)

# JSON file holding runtime overrides edited through the web API.
SETTINGS_FILE = os.environ.get("SETTINGS_FILE", "data/settings_store.json")
