"""EventConnect map service: geospatial engine for events, tribes and venues."""

from __future__ import annotations

import asyncio
from importlib import metadata
from typing import Optional, Sequence

try:
    __version__ = metadata.version("eventconnect-map")
except metadata.PackageNotFoundError:  # pragma: no cover - local dev
    __version__ = "0.0.0"


def run(argv: Optional[Sequence[str]] = None) -> None:
    """Convenience wrapper that runs the async service entry point."""
    from .cli import main

    asyncio.run(main(list(argv) if argv is not None else None))


__all__ = ["__version__", "run"]
