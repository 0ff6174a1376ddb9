"""Preference helpers backed by ``key = value`` config files."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from .config_manager import ConfigManager, get_config_manager


class ServicePreferences:
    """Lightweight cached view over a config file."""

    def __init__(
        self,
        config_path: Optional[Path] = None,
        *,
        config_manager: Optional[ConfigManager] = None,
        initial_data: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._config_path = Path(config_path) if config_path else None
        self._manager = config_manager or get_config_manager()
        self._cache: Dict[str, Any] = {}
        if initial_data:
            self._cache = dict(initial_data)
        else:
            self.reload()

    @property
    def config_path(self) -> Optional[Path]:
        return self._config_path

    # ------------------------------------------------------------------
    # Basic accessors

    def snapshot(self) -> Dict[str, Any]:
        return dict(self._cache)

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        return self._cache.get(key, default)

    def reload(self) -> Dict[str, Any]:
        if self._config_path is None:
            self._cache = {}
        else:
            self._cache = self._manager.read_config(self._config_path)
        return self.snapshot()

    async def reload_async(self) -> Dict[str, Any]:
        if self._config_path is None:
            self._cache = {}
        else:
            self._cache = await self._manager.read_config_async(self._config_path)
        return self.snapshot()

    # ------------------------------------------------------------------
    # Mutation helpers

    def write_sync(self, updates: Dict[str, Any]) -> bool:
        if not updates:
            return True
        success = True
        if self._config_path is not None:
            success = self._manager.write_config(self._config_path, updates)
        if success:
            self._apply_cache_updates(updates)
        return success

    async def write_async(self, updates: Dict[str, Any]) -> bool:
        if not updates:
            return True
        success = True
        if self._config_path is not None:
            success = await self._manager.write_config_async(self._config_path, updates)
        if success:
            self._apply_cache_updates(updates)
        return success

    def _apply_cache_updates(self, updates: Dict[str, Any]) -> None:
        for key, value in updates.items():
            self._cache[key] = ConfigManager._stringify_value(value)


__all__ = [
    "ServicePreferences",
]
