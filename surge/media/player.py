"""
Audio playback on top of libvlc's media list player.

VLC plays asynchronously on its own threads. End-of-track events arrive on a
VLC thread and are handed to the asyncio loop with `call_soon_threadsafe`;
libvlc must not be called back into from inside those event handlers.
"""

import asyncio
import logging
from pathlib import Path

import vlc

from surge.exceptions import PlaybackError

log = logging.getLogger(__name__)

IDLE_STATES = (
    vlc.State.NothingSpecial,
    vlc.State.Stopped,
    vlc.State.Ended,
    vlc.State.Error,
)


class VLCPlayer:
    """Queue-based audio player: play now, append, pause/resume, loop, stop."""

    def __init__(self):
        self.instance = vlc.Instance("--no-xlib", "--no-video", "--quiet")
        self.media_list = self.instance.media_list_new()
        self.list_player = self.instance.media_list_player_new()
        self.list_player.set_media_list(self.media_list)
        self._looping = False
        self._advance_waiters: list[tuple[asyncio.AbstractEventLoop, asyncio.Event]] = []

        em = self.list_player.get_media_player().event_manager()
        em.event_attach(vlc.EventType.MediaPlayerEndReached, self._on_end_reached)

    def _on_end_reached(self, event) -> None:
        for loop, advanced in list(self._advance_waiters):
            loop.call_soon_threadsafe(advanced.set)

    def _add(self, path: Path) -> int:
        idle = self.is_idle
        media = self.instance.media_new(str(path))
        self.media_list.lock()
        try:
            if idle:
                # Everything already in the list has been played or abandoned.
                while self.media_list.count():
                    self.media_list.remove_index(0)
            if self.media_list.add_media(media) != 0:
                raise PlaybackError(f"VLC could not queue '{path}'.")
            return self.media_list.count() - 1
        finally:
            self.media_list.unlock()

    def _play_index(self, index: int) -> None:
        if self.list_player.play_item_at_index(index) != 0:
            raise PlaybackError("VLC failed to start playback.")

    @property
    def is_idle(self) -> bool:
        return self.list_player.get_state() in IDLE_STATES

    def play_now(self, path: Path) -> None:
        """Queues `path` and jumps straight to it."""
        self._play_index(self._add(path))
        log.info(f"Playing {path}")

    def enqueue(self, path: Path) -> None:
        """Appends `path`; playback starts with it if nothing is playing."""
        index = self._add(path)
        if self.is_idle:
            self._play_index(index)
        log.info(f"Queued {path} at position {index}")

    async def enqueue_and_wait_for_advance(self, path: Path) -> None:
        """Queues `path` and returns once the player finishes its current track."""
        advanced = asyncio.Event()
        waiter = (asyncio.get_running_loop(), advanced)
        self._advance_waiters.append(waiter)
        try:
            self.enqueue(path)
            await advanced.wait()
        finally:
            self._advance_waiters.remove(waiter)

    def pause(self) -> bool:
        if self.list_player.get_state() != vlc.State.Playing:
            return False
        self.list_player.set_pause(1)
        return True

    def resume(self) -> bool:
        if self.list_player.get_state() != vlc.State.Paused:
            return False
        self.list_player.set_pause(0)
        return True

    def stop(self) -> None:
        self.list_player.stop()

    def toggle_loop(self) -> bool:
        """Repeats the current track until toggled off. Returns the new state."""
        self._looping = not self._looping
        mode = vlc.PlaybackMode.repeat if self._looping else vlc.PlaybackMode.default
        self.list_player.set_playback_mode(mode)
        return self._looping

    def release(self) -> None:
        self.list_player.stop()
        self.list_player.release()
        self.media_list.release()
        self.instance.release()
