"""
Fetches audio streams and thumbnails to local storage.

Audio goes through yt-dlp (run in a worker thread, it is blocking); thumbnails
are small and fetched directly over HTTP with retry logic.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import aiofiles
import aiohttp
import yt_dlp
from yt_dlp.utils import YoutubeDLError

from surge.exceptions import DownloadError
from surge.models.config import SurgeConfig

log = logging.getLogger(__name__)

FALLBACK_THUMBNAIL_URL = "https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"


class Downloader:
    """Downloads audio and thumbnails into the configured download directory."""

    def __init__(
        self, config: SurgeConfig, max_attempts: int = 3, base_delay: float = 1.0
    ):
        self.audio_dir: Path = config.download_dir / "audio"
        self.thumbnail_dir: Path = config.download_dir / "thumbnails"
        self.audio_format = config.audio_format
        self.retries = config.download_retries
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._session: Optional[aiohttp.ClientSession] = None

    async def _initialize_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=30, sock_connect=10)
            )
        return self._session

    async def close(self) -> None:
        """Closes the thumbnail HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    def _ydl_options(self) -> Dict[str, Any]:
        return {
            "format": self.audio_format,
            "outtmpl": str(self.audio_dir / "%(id)s.%(ext)s"),
            "noplaylist": True,
            "quiet": True,
            "no_warnings": True,
            "noprogress": True,
            "retries": self.retries,
            "overwrites": False,
        }

    def _download_audio_blocking(self, url: str) -> Path:
        try:
            self.audio_dir.mkdir(parents=True, exist_ok=True)
            with yt_dlp.YoutubeDL(self._ydl_options()) as ydl:
                info = ydl.extract_info(url, download=True)
                if info is None:
                    raise DownloadError(f"Nothing could be downloaded from {url}.")
                path = Path(ydl.prepare_filename(info))
        except (YoutubeDLError, OSError) as e:
            raise DownloadError(f"Download failed for {url}: {e}") from e
        if not path.is_file():
            raise DownloadError(f"Download of {url} did not produce a file.")
        return path

    async def fetch_audio(self, url: str) -> Path:
        """
        Downloads the audio stream behind `url` and returns the local file path.

        A file that is already present is reused by yt-dlp instead of being
        fetched again.

        Raises:
            DownloadError: If the stream could not be retrieved.
        """
        log.info(f"Downloading audio from {url}")
        path = await asyncio.to_thread(self._download_audio_blocking, url)
        log.debug(f"Audio ready at {path}")
        return path

    async def _download_file(self, url: str, destination_path: Path) -> None:
        """Downloads a small file with retries and exponential backoff."""
        last_exception: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                session = await self._initialize_session()
                async with session.get(url, allow_redirects=True) as response:
                    response.raise_for_status()
                    async with aiofiles.open(destination_path, "wb") as f:
                        async for chunk in response.content.iter_chunked(65536):
                            await f.write(chunk)
                return
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                if isinstance(e, aiohttp.ClientResponseError) and 400 <= e.status < 500:
                    raise
                last_exception = e
                log.debug(
                    f"Download attempt {attempt}/{self.max_attempts} for "
                    f"'{os.path.basename(destination_path)}' failed: {e}. Retrying..."
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.base_delay * (2 ** (attempt - 1)))

        if last_exception:
            raise last_exception

    async def fetch_thumbnail(self, ref: str | None, video_id: str) -> Path | None:
        """
        Makes the thumbnail for a track available locally.

        Uses the thumbnail URL from the search result when there is one, otherwise
        the conventional id-based location. Returns None when no image could be
        obtained; a missing thumbnail is never an error.
        """
        destination = self.thumbnail_dir / f"{video_id}.jpg"
        path_exists = await asyncio.to_thread(destination.is_file)
        if path_exists:
            return destination

        url = ref or FALLBACK_THUMBNAIL_URL.format(video_id=video_id)
        partial = destination.with_name(f"{destination.name}.part")
        try:
            await asyncio.to_thread(self.thumbnail_dir.mkdir, parents=True, exist_ok=True)
            await self._download_file(url, partial)
            await asyncio.to_thread(partial.replace, destination)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            log.debug(f"No thumbnail for '{video_id}': {e}")
            return None
        finally:
            # Only complete transfers may appear under the final name.
            partial.unlink(missing_ok=True)
        return destination
