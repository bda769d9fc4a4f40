import asyncio
from pathlib import Path

import aiohttp
import pytest
from multidict import CIMultiDict, CIMultiDictProxy
from yarl import URL
from yt_dlp.utils import DownloadError as YtDlpDownloadError

from surge.exceptions import DownloadError
from surge.media.downloader import FALLBACK_THUMBNAIL_URL, Downloader
from surge.models.config import SurgeConfig


@pytest.fixture
def downloader(tmp_path):
    config = SurgeConfig(
        api_key="KEY",
        download_path=str(tmp_path),
        download_retries=2,
        config_path="/cfg",
    )
    return Downloader(config, max_attempts=2, base_delay=0)


class FakeYoutubeDL:
    """Stands in for yt_dlp.YoutubeDL; writes the file yt-dlp would have."""

    error = None

    def __init__(self, options):
        self.options = options

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def extract_info(self, url, download=True):
        if self.error:
            raise self.error
        info = {"id": url.rsplit("=", 1)[-1], "ext": "m4a"}
        Path(self.prepare_filename(info)).write_bytes(b"audio")
        return info

    def prepare_filename(self, info):
        return self.options["outtmpl"] % info


def test_ydl_options(downloader, tmp_path):
    options = downloader._ydl_options()

    assert options["format"] == "bestaudio/best"
    assert options["noplaylist"] is True
    assert options["retries"] == 2
    assert options["outtmpl"] == str(tmp_path / "audio" / "%(id)s.%(ext)s")


@pytest.mark.asyncio
class TestAudio:
    async def test_fetch_audio_returns_local_file(self, downloader, monkeypatch):
        monkeypatch.setattr("surge.media.downloader.yt_dlp.YoutubeDL", FakeYoutubeDL)

        path = await downloader.fetch_audio("https://www.youtube.com/watch?v=abc")

        assert path == downloader.audio_dir / "abc.m4a"
        assert path.read_bytes() == b"audio"

    async def test_yt_dlp_failure_is_mapped(self, downloader, monkeypatch):
        class Failing(FakeYoutubeDL):
            error = YtDlpDownloadError("Video unavailable")

        monkeypatch.setattr("surge.media.downloader.yt_dlp.YoutubeDL", Failing)

        with pytest.raises(DownloadError, match="Video unavailable"):
            await downloader.fetch_audio("https://www.youtube.com/watch?v=gone")

    async def test_unwritable_download_dir_is_mapped(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file", encoding="utf-8")
        config = SurgeConfig(api_key="KEY", download_path=str(blocker), config_path="/cfg")

        with pytest.raises(DownloadError, match="Download failed"):
            await Downloader(config).fetch_audio("https://www.youtube.com/watch?v=x")


@pytest.mark.asyncio
class TestThumbnails:
    async def test_existing_thumbnail_is_reused(self, downloader, monkeypatch):
        downloader.thumbnail_dir.mkdir(parents=True)
        existing = downloader.thumbnail_dir / "v1.jpg"
        existing.write_bytes(b"jpg")

        async def no_network(url, destination):
            raise AssertionError("should not download")

        monkeypatch.setattr(downloader, "_download_file", no_network)

        assert await downloader.fetch_thumbnail("http://img/v1", "v1") == existing

    async def test_falls_back_to_id_based_url(self, downloader, monkeypatch):
        requested = []

        async def fake_download(url, destination):
            requested.append(url)
            destination.write_bytes(b"jpg")

        monkeypatch.setattr(downloader, "_download_file", fake_download)

        path = await downloader.fetch_thumbnail(None, "v2")

        assert requested == [FALLBACK_THUMBNAIL_URL.format(video_id="v2")]
        assert path == downloader.thumbnail_dir / "v2.jpg"

    async def test_failure_yields_no_thumbnail(self, downloader, monkeypatch):
        async def failing(url, destination):
            destination.write_bytes(b"partial")
            raise aiohttp.ClientError("404")

        monkeypatch.setattr(downloader, "_download_file", failing)

        assert await downloader.fetch_thumbnail("http://img/v3", "v3") is None
        assert not (downloader.thumbnail_dir / "v3.jpg").exists()


@pytest.mark.asyncio
class TestInterruptedThumbnail:
    async def test_cancelled_transfer_leaves_nothing_behind(self, downloader, monkeypatch):
        calls = []

        async def interrupted(url, destination):
            calls.append(url)
            destination.write_bytes(b"\xff\xd8\xff")
            raise asyncio.CancelledError

        monkeypatch.setattr(downloader, "_download_file", interrupted)
        with pytest.raises(asyncio.CancelledError):
            await downloader.fetch_thumbnail("http://img/vid", "vid")

        assert list(downloader.thumbnail_dir.iterdir()) == []

        async def complete(url, destination):
            calls.append(url)
            destination.write_bytes(b"\xff\xd8\xff\xe0full")

        monkeypatch.setattr(downloader, "_download_file", complete)
        path = await downloader.fetch_thumbnail("http://img/vid", "vid")

        assert len(calls) == 2
        assert path.read_bytes() == b"\xff\xd8\xff\xe0full"


class FakeResponse:
    def __init__(self, status):
        self.status = status

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def raise_for_status(self):
        if self.status >= 400:
            url = URL("http://img/thumb.jpg")
            info = aiohttp.RequestInfo(url, "GET", CIMultiDictProxy(CIMultiDict()), url)
            raise aiohttp.ClientResponseError(info, (), status=self.status)


class FakeSession:
    closed = False

    def __init__(self, status):
        self.status = status
        self.requests = 0

    def get(self, url, **kwargs):
        self.requests += 1
        return FakeResponse(self.status)


@pytest.mark.asyncio
class TestRetries:
    async def test_client_error_status_fails_fast(self, downloader, tmp_path):
        downloader._session = FakeSession(404)

        with pytest.raises(aiohttp.ClientResponseError):
            await downloader._download_file("http://img/missing", tmp_path / "t.jpg")

        assert downloader._session.requests == 1

    async def test_server_error_is_retried(self, downloader, tmp_path):
        downloader._session = FakeSession(503)

        with pytest.raises(aiohttp.ClientResponseError):
            await downloader._download_file("http://img/busy", tmp_path / "t.jpg")

        assert downloader._session.requests == downloader.max_attempts
