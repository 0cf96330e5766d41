"""
JSON file holding runtime routing overrides made through the web API.

The file is a single object keyed by section; only the ``routing`` section is
used today. Values read back are validated before they reach the router, so a
hand-edited file cannot break request handling.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from threading import Lock
from typing import Any, Dict

from config import SETTINGS_FILE as _SETTINGS_PATH
from config import coerce_threshold_usd

logger = logging.getLogger(__name__)

SETTINGS_FILE = Path(_SETTINGS_PATH)
ROUTING_SECTION = "routing"
THRESHOLD_KEY = "institutional_threshold_usd"
_FILE_LOCK = Lock()


def _load_sections() -> Dict[str, Any]:
    try:
        raw = SETTINGS_FILE.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as exc:
        logger.warning("Unable to read routing settings %s: %s", SETTINGS_FILE, exc)
        return {}
    if not raw.strip():
        return {}
    try:
        sections = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Routing settings %s are not valid JSON; using defaults.", SETTINGS_FILE)
        return {}
    return sections if isinstance(sections, dict) else {}


def _dump_sections(sections: Dict[str, Any]) -> None:
    SETTINGS_FILE.parent.mkdir(parents=True, exist_ok=True)
    staging = SETTINGS_FILE.with_suffix(".tmp")
    try:
        staging.write_text(json.dumps(sections, ensure_ascii=False, indent=2), encoding="utf-8")
        staging.replace(SETTINGS_FILE)
    except OSError as exc:
        logger.error("Failed to persist routing settings to %s: %s", SETTINGS_FILE, exc)


def load_routing_settings(defaults: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge persisted routing overrides over ``defaults``.

    An override threshold that is not a positive finite number within the
    accepted range is dropped with a warning and the default is kept.
    """
    with _FILE_LOCK:
        section = _load_sections().get(ROUTING_SECTION)
    merged = dict(defaults)
    if not isinstance(section, dict):
        return merged
    merged.update(section)
    if THRESHOLD_KEY in section:
        merged[THRESHOLD_KEY] = coerce_threshold_usd(
            section[THRESHOLD_KEY], defaults[THRESHOLD_KEY], source=str(SETTINGS_FILE)
        )
    return merged


def save_routing_settings(overrides: Dict[str, Any]) -> None:
    """Replace the routing section, leaving other sections untouched."""
    if not isinstance(overrides, dict):
        raise ValueError("routing overrides must be a dictionary.")
    with _FILE_LOCK:
        sections = _load_sections()
        sections[ROUTING_SECTION] = dict(overrides)
        _dump_sections(sections)
