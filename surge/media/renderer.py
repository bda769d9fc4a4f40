"""
Renders thumbnails into the terminal as truecolor half-block characters.

Each character cell shows two vertically stacked pixels: the upper half block
takes the top pixel as its foreground and the bottom pixel as its background.
"""

import logging
from pathlib import Path

from PIL import Image, UnidentifiedImageError
from rich.color import Color
from rich.console import Console
from rich.style import Style
from rich.text import Text

from surge.exceptions import RenderError

log = logging.getLogger(__name__)

HALF_BLOCK = "\u2580"


def fit_size(
    image_size: tuple[int, int], bounds: tuple[int, int], scale: float = 1.0
) -> tuple[int, int]:
    """
    Fits an image into `bounds` (in pixels) keeping its aspect ratio, then scales.

    The result is never smaller than 1x2 and the height is rounded down to an
    even number so every character row has both halves.
    """
    width, height = image_size
    max_width, max_height = bounds
    if width <= 0 or height <= 0 or max_width <= 0 or max_height <= 0:
        return (1, 2)
    ratio = min(max_width / width, max_height / height)
    new_width = max(1, int(width * ratio * scale))
    new_height = max(2, int(height * ratio * scale))
    return (new_width, new_height - new_height % 2)


class ThumbnailRenderer:
    """Draws images on a rich console."""

    def __init__(self, console: Console, scale: float = 0.5):
        self.console = console
        self.scale = scale

    def to_text(self, path: Path) -> Text:
        """
        Converts an image file into a renderable block of colored cells.

        Raises:
            RenderError: If the file cannot be opened or decoded as an image.
        """
        width, height = self.console.size
        try:
            with Image.open(path) as img:
                rgb = img.convert("RGB")
                size = fit_size(rgb.size, (width, height * 2), self.scale)
                resized = rgb.resize(size)
        except (UnidentifiedImageError, OSError) as e:
            raise RenderError(f"Could not decode thumbnail '{path}': {e}") from e

        pixels = resized.load()
        cols, rows = resized.size
        text = Text(no_wrap=True, overflow="crop")
        for y in range(0, rows, 2):
            for x in range(cols):
                top = pixels[x, y]
                bottom = pixels[x, y + 1]
                text.append(
                    HALF_BLOCK,
                    Style(color=Color.from_rgb(*top), bgcolor=Color.from_rgb(*bottom)),
                )
            if y + 2 < rows:
                text.append("\n")
        return text

    def render(self, path: Path | None) -> None:
        """Prints the image at `path`. Does nothing when there is no path."""
        if path is None:
            return
        log.debug(f"Rendering thumbnail {path}")
        self.console.print(self.to_text(path))
