"""Settings module -- single entry point for application configuration.

:func:`get_config` returns the merged configuration dictionary.  It loads
``config/default.yaml``, overlays the file named by the ``TYPED_EVENT_BUS_CONFIG``
environment variable when set, and finally applies any ``TEB_`` prefixed
environment variable overrides.
"""

from __future__ import annotations

import functools
import os
from pathlib import Path
from typing import Any

from typed_event_bus.domain.models import AppConfig

# Project root is two levels up from ``src/typed_event_bus/config/``.
_PROJECT_ROOT = Path(__file__).resolve().parents[3]

DEFAULT_CONFIG_PATH = _PROJECT_ROOT / "config" / "default.yaml"

# Environment variable naming an overlay file.
OVERLAY_ENV_VAR = "TYPED_EVENT_BUS_CONFIG"


def _overlay_path() -> Path | None:
    value = os.environ.get(OVERLAY_ENV_VAR)
    return Path(value) if value else None


@functools.lru_cache(maxsize=1)
def get_config() -> dict[str, Any]:
    """Return the fully merged configuration dictionary.

    The result is cached so that repeated calls within the same process are
    essentially free.

    Resolution order:

    1. ``config/default.yaml``
    2. The file named by ``TYPED_EVENT_BUS_CONFIG``, if set and present
    3. Environment variables with ``TEB_`` prefix

    Returns
    -------
    dict[str, Any]
        The merged configuration tree.
    """
    return get_typed_config().data


def get_typed_config(overlay_path: str | Path | None = None) -> AppConfig:
    """Return the :class:`AppConfig` wrapper for typed access.

    Parameters
    ----------
    overlay_path:
        Overlay file to use instead of the one named by ``TYPED_EVENT_BUS_CONFIG``.

    Returns
    -------
    AppConfig
        Frozen configuration object.
    """
    return AppConfig.load(
        default_path=DEFAULT_CONFIG_PATH,
        overlay_path=overlay_path if overlay_path is not None else _overlay_path(),
        env_prefix="TEB_",
    )
