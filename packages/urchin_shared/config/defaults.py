"""Built-in default configuration values for Urchin tools.

These defaults are the final fallback in the configuration cascade:
CLI params > ENV vars > config file > built-in defaults.
"""

from __future__ import annotations

from typing import Any

DEFAULT_OBJECT_STORAGE_PORT = 65004
DEFAULT_OBJECT_MAX_REPLICAS = 3

BUILTIN_DEFAULTS: dict[str, Any] = {
    "logging": {
        "level": "WARNING",
        "json_output": False,
        "service": "urchin",
        "environment": "dev",
    },
    "client": {
        "endpoint": f"http://127.0.0.1:{DEFAULT_OBJECT_STORAGE_PORT}",
        "filter": "",
        "mode": 0,
        "max_replicas": DEFAULT_OBJECT_MAX_REPLICAS,
        "timeout_seconds": None,
        "peer_scheme": "http",
    },
}
