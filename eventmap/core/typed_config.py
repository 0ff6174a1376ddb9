"""Type coercion helpers for ``from_preferences()`` config builders."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Protocol


class PreferenceSource(Protocol):
    def get(self, key: str, default: Optional[Any] = None) -> Any:
        ...


def get_pref_str(prefs: PreferenceSource, key: str, default: str) -> str:
    val = prefs.get(key)
    return str(val) if val is not None else default


def get_pref_int(prefs: PreferenceSource, key: str, default: int) -> int:
    val = prefs.get(key)
    if val is None:
        return default
    try:
        return int(val)
    except (ValueError, TypeError):
        return default


def get_pref_float(prefs: PreferenceSource, key: str, default: float) -> float:
    val = prefs.get(key)
    if val is None:
        return default
    try:
        return float(val)
    except (ValueError, TypeError):
        return default


def get_pref_bool(prefs: PreferenceSource, key: str, default: bool) -> bool:
    val = prefs.get(key)
    if val is None:
        return default
    if isinstance(val, bool):
        return val
    return str(val).strip().lower() in {"true", "1", "yes", "on"}


def get_pref_path(prefs: PreferenceSource, key: str, default: Path) -> Path:
    val = prefs.get(key)
    if val is None:
        return default
    text = str(val).strip()
    return Path(text).expanduser() if text else default


__all__ = [
    "PreferenceSource",
    "get_pref_str",
    "get_pref_int",
    "get_pref_float",
    "get_pref_bool",
    "get_pref_path",
]
