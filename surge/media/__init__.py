"""
Media Layer.

This package materializes remote audio and thumbnails as local files and turns
thumbnails into terminal output. The VLC-backed player lives in
`surge.media.player` and is imported on demand, since loading it requires the
native libvlc library.
"""

from .downloader import Downloader
from .renderer import ThumbnailRenderer

__all__ = ["Downloader", "ThumbnailRenderer"]
