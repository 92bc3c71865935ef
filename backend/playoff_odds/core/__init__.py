"""
Core configuration.
"""

from .config import EngineConfig

__all__ = [
    "EngineConfig",
]
