"""
Data Models Layer.

This package contains Pydantic models that define the core data structures
used throughout the application: search results and configuration.
"""

from .config import SurgeConfig
from .track import SearchResult

__all__ = ["SearchResult", "SurgeConfig"]
