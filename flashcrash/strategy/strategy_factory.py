"""StrategyFactory to create strategy instances by name.

Nothing registers itself on import; the composition root calls
register() for each strategy it wants available.
"""

from __future__ import annotations

from typing import Any, Dict


class StrategyFactory:
    _registry: Dict[str, Any] = {}

    @classmethod
    def register(cls, name: str, ctor: Any) -> None:
        existing = cls._registry.get(name)
        if existing is not None and existing is not ctor:
            raise ValueError(f"strategy already registered: {name}")
        cls._registry[name] = ctor

    @classmethod
    def registered(cls) -> list[str]:
        return sorted(cls._registry)

    @classmethod
    def create(cls, name: str, *args, **kwargs):
        ctor = cls._registry.get(name)
        if ctor is None:
            raise ValueError(f"unknown strategy: {name}")
        return ctor(*args, **kwargs)

    @classmethod
    def clear(cls) -> None:
        """Drop every registration (for testing)."""
        cls._registry.clear()
