"""
Core session engine.

`Session` owns the browsable result set and the current selection.
`CommandCenter` is the interpreter on top of it: it parses command lines,
drives the session, and sequences backend, downloader and player calls.
"""

from .command_center import CommandCenter
from .session import ResultSet, Session

__all__ = ["CommandCenter", "ResultSet", "Session"]
