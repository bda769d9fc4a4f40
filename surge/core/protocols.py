"""
Interfaces the session engine consumes from its collaborators.
"""

from pathlib import Path
from typing import Protocol

from surge.models.track import SearchResult


class Backend(Protocol):
    async def search(self, query: str) -> list[SearchResult]: ...

    async def find_related(self, video_id: str) -> list[SearchResult]: ...

    def gen_download_url(self, video_id: str) -> str: ...


class MediaDownloader(Protocol):
    async def fetch_audio(self, url: str) -> Path: ...

    async def fetch_thumbnail(self, ref: str | None, video_id: str) -> Path | None: ...


class Player(Protocol):
    def play_now(self, path: Path) -> None: ...

    def enqueue(self, path: Path) -> None: ...

    async def enqueue_and_wait_for_advance(self, path: Path) -> None: ...

    def pause(self) -> bool: ...

    def resume(self) -> bool: ...

    def stop(self) -> None: ...

    def toggle_loop(self) -> bool: ...


class Renderer(Protocol):
    def render(self, path: Path | None) -> None: ...
