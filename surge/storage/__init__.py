"""
Storage Layer.

This package handles all data persistence: the INI configuration file and the
API response cache.
"""

from .cache import CacheManager
from .config_manager import ConfigManager

__all__ = ["CacheManager", "ConfigManager"]
