"""
surge: an interactive command-line music player.

Search a remote catalogue, browse the results with thumbnail previews
rendered straight into the terminal, and play or queue the audio.
"""

__version__ = "0.3.0"
