"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "balkanod",
    "environment": "dev",
    "http": {
        "timeout_seconds": 10.0,
        "follow_redirects": True,
        "user_agent": "BalkanOnDemand/0.1.0",
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "content": {
        "path": "./data/content.json",
    },
    "cache": {
        "backend": "memory",
        "dir": "./.cache/balkanod",
        "ttl_seconds": 3600,
        "max_entries": 2048,
    },
    "providers": {
        "per_call_timeout_seconds": 3.0,
        "provider_timeout_seconds": 30.0,
        "archive_enabled": True,
        "archive_search_enabled": True,
        "embedded_fallback_enabled": True,
    },
    "metadata": {
        "enabled": True,
        "cinemeta_url": "https://v3-cinemeta.strem.io",
    },
    "stremio": {
        "page_size": 100,
    },
}
