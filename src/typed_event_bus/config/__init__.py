"""Configuration sub-package.

Provides settings loading and typed configuration access.

Quick usage::

    from typed_event_bus.config import get_config

    cfg = get_config()
    print(cfg["bus"]["bucket_factory"])
"""

from __future__ import annotations

from typed_event_bus.config.settings import (
    DEFAULT_CONFIG_PATH,
    OVERLAY_ENV_VAR,
    get_config,
    get_typed_config,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "OVERLAY_ENV_VAR",
    "get_config",
    "get_typed_config",
]
