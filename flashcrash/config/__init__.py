"""
Configuration package.

Environment-driven settings for the flash-crash strategy.
"""

from flashcrash.config.config import Settings, env_bool

__all__ = [
    "Settings",
    "env_bool",
]
