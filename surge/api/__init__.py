"""
Search/Metadata API Layer.

This package handles all communication with the YouTube Data API.
"""

from .client import YouTubeAPIClient

__all__ = ["YouTubeAPIClient"]
