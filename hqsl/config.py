"""Runtime configuration read from the environment."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

from hqsl.adapters.keyserver import DEFAULT_KEYSERVER, DEFAULT_TIMEOUT
from hqsl.middleware.logging import log_error, log_warning


def keyservers() -> List[str]:
    """Key server URLs from ``HQSL_KEYSERVERS`` (comma separated)."""
    raw = os.getenv("HQSL_KEYSERVERS", DEFAULT_KEYSERVER)
    servers = [s.strip() for s in raw.split(",") if s.strip()]
    return servers or [DEFAULT_KEYSERVER]


def keyserver_timeout() -> float:
    """Per-request key server timeout in seconds from ``HQSL_KEYSERVER_TIMEOUT``."""
    raw = os.getenv("HQSL_KEYSERVER_TIMEOUT")
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        log_warning("config_invalid", name="HQSL_KEYSERVER_TIMEOUT", value=raw)
        return DEFAULT_TIMEOUT
    return value if value > 0 else DEFAULT_TIMEOUT


def trusted_keys() -> List[str]:
    """Armored root keys from the file named by ``HQSL_TRUSTED_KEYS``, if any."""
    path = os.getenv("HQSL_TRUSTED_KEYS")
    if not path:
        return []
    try:
        return [Path(path).read_text()]
    except OSError as e:
        log_error("trusted_keys_load_error", path=path, error=str(e))
        return []


def api_key() -> Optional[str]:
    """Shared secret expected in the ``x-api-key`` header, if set."""
    return os.getenv("API_KEY") or None
