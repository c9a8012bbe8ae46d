"""Configuration models."""

from .memory_config import MemoryConfig
from .store_config import StoreConfig

__all__ = ["MemoryConfig", "StoreConfig"]
