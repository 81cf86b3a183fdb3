"""Provider Registry — lazy discovery of agent CLI providers by config key.

Providers are registered as ``(module_path, class_name)`` pairs and imported
on demand, so a broken provider module never crashes startup.
"""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING

from linear_tui.agents.errors import InvalidProviderError

if TYPE_CHECKING:
    from linear_tui.agents.backend import LookPath, Provider

logger = logging.getLogger(__name__)

# config key -> (module path, class name); order is the display order
_PROVIDER_REGISTRY: dict[str, tuple[str, str]] = {
    "cursor": ("linear_tui.agents.cursor_cli", "CursorCLIProvider"),
    "claude": ("linear_tui.agents.claude_cli", "ClaudeCLIProvider"),
}


def list_providers() -> list[str]:
    """Return all registered provider keys (installed or not)."""
    return list(_PROVIDER_REGISTRY)


def get_provider_class(key: str) -> type[Provider] | None:
    """Lazily import a provider class by config key, or *None* if unavailable.

    Keys are matched trimmed and case-insensitively (``" Claude "``).
    """
    key = key.strip().lower()
    entry = _PROVIDER_REGISTRY.get(key)
    if entry is None:
        return None

    module_path, class_name = entry
    try:
        mod = importlib.import_module(module_path)
        return getattr(mod, class_name)
    except (ImportError, AttributeError) as exc:
        logger.debug("Cannot load provider '%s': %s", key, exc)
        return None


def register_provider(key: str, module: str, cls: str) -> None:
    """Register an external provider (plugin support)."""
    _PROVIDER_REGISTRY[key] = (module, cls)


def provider_for_key(key: str, look_path: LookPath | None = None) -> Provider:
    """Construct a fresh provider for a config key such as ``" Claude "``.

    Raises:
        InvalidProviderError: the key is not registered or cannot be loaded.
    """
    cls = get_provider_class(key)
    if cls is None:
        raise InvalidProviderError(key)
    return cls(look_path)


def available_provider_keys(look_path: LookPath | None = None) -> list[str]:
    """Return provider keys whose binaries resolve on the search path."""
    available = []
    for key in list_providers():
        cls = get_provider_class(key)
        if cls is None:
            continue
        _, ok = cls(look_path).resolve_binary()
        if ok:
            available.append(key)
    return available
