"""
The command interpreter and playback orchestrator for an interactive session.

One command line is handled to completion before the next is read. The only
long-running activity is fluid mode, which runs as a background task so that
`stop` can end it from the prompt.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from contextlib import suppress
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from surge.cli.formatters import (
    format_error_with_suggestions,
    print_error,
    print_help,
)
from surge.exceptions import (
    CollaboratorError,
    EmptyResultSetError,
    MissingArgumentError,
    SurgeError,
    UnknownCommandError,
    UserInputError,
)
from surge.models.track import SearchResult

from .protocols import Backend, MediaDownloader, Player, Renderer
from .session import Session

log = logging.getLogger(__name__)

# Commands that leave the result set and selection alone, so they may run
# while fluid mode is driving the session.
FLUID_SAFE_COMMANDS = frozenset({"", "now", "stop", "pause", "loop", "help"})

Handler = Callable[[str | None], Awaitable[None]]


class CommandCenter:
    """Maps command lines onto session state changes and collaborator calls."""

    def __init__(
        self,
        backend: Backend,
        downloader: MediaDownloader,
        player: Player,
        renderer: Renderer,
        console: Console | None = None,
        show_thumbnails: bool = True,
    ):
        self.backend = backend
        self.downloader = downloader
        self.player = player
        self.renderer = renderer
        self.console = console or Console()
        self.show_thumbnails = show_thumbnails
        self.session = Session()
        self._fluid_task: asyncio.Task | None = None

        self._handlers: dict[str, Handler] = {
            "": self._cmd_noop,
            "play": self._cmd_play,
            "queue": self._cmd_queue,
            "loop": self._cmd_loop,
            "pause": self._cmd_pause,
            "fluid": self._cmd_fluid,
            "related": self._cmd_related,
            "cycle": self._cmd_cycle,
            "clear": self._cmd_clear,
            "now": self._cmd_now,
            "stop": self._cmd_stop,
            "search": self._cmd_search,
            "help": self._cmd_help,
        }

    @property
    def fluid_active(self) -> bool:
        return self._fluid_task is not None and not self._fluid_task.done()

    async def handle_command(self, line: str) -> None:
        """
        Runs one line of user input.

        The first space separates the command word from its argument; the rest
        of the line is passed through untouched. Every `SurgeError` is reported
        here and the session is left as it was before the command.
        """
        command, sep, rest = line.partition(" ")
        arg = rest if sep else None
        log.debug(f"Command {command!r} with argument {arg!r}")
        try:
            handler = self._handlers.get(command)
            if handler is None:
                raise UnknownCommandError("Unrecognized command! Try 'help'")
            if self.fluid_active and not self._allowed_during_fluid(command, arg):
                raise UserInputError("Fluid mode is active, use 'stop' to leave it.")
            await handler(arg)
        except SurgeError as e:
            print_error(self.console, e)

    @staticmethod
    def _allowed_during_fluid(command: str, arg: str | None) -> bool:
        return command in FLUID_SAFE_COMMANDS or (command == "play" and arg is None)

    # Display helpers
    async def _show_thumbnail(self, result: SearchResult) -> None:
        if not self.show_thumbnails:
            return
        try:
            path = await self.downloader.fetch_thumbnail(result.thumbnail, result.id)
            self.renderer.render(path)
        except CollaboratorError as e:
            log.warning(f"Skipping thumbnail for '{escape(result.title)}': {e}")

    async def _announce(self, label: str, result: SearchResult) -> None:
        self.console.print(f"[bold]{label}[/bold] {escape(result.title)}")
        await self._show_thumbnail(result)

    # Session operations
    async def _select(self, raw_index: str) -> SearchResult:
        result = self.session.select(raw_index)
        await self._announce("SELECTED:", result)
        return result

    async def _cycle(self) -> None:
        index, result = self.session.results.advance()
        self.console.print(f"[cyan]{index}:[/cyan] {escape(result.title)}")
        await self._show_thumbnail(result)

    async def _search(self, query: str) -> None:
        results = await self.backend.search(query)
        self.session.results.replace(results)

    async def _related(self) -> SearchResult:
        seed = self.session.require_selection()
        results = await self.backend.find_related(seed.id)
        self.session.results.replace(results)
        return seed

    # Playback orchestration
    async def _download_current(self) -> Path:
        current = self.session.require_selection()
        url = self.backend.gen_download_url(current.id)
        self.console.print(f"[dim]Downloading '{escape(current.title)}'...[/dim]")
        return await self.downloader.fetch_audio(url)

    async def _select_and_download(self, raw_index: str) -> Path:
        await self._select(raw_index)
        return await self._download_current()

    async def _fluid_loop(self) -> None:
        loc_cyc = 0
        try:
            while True:
                seed = await self._related()
                if not len(self.session.results):
                    raise EmptyResultSetError(
                        f"No related tracks found for '{seed.title}'."
                    )
                if loc_cyc >= len(self.session.results):
                    loc_cyc = 0
                with self.session.atomic():
                    await self._select(str(loc_cyc))
                    loc_cyc += 1
                    path = await self._download_current()
                await self.player.enqueue_and_wait_for_advance(path)
        except asyncio.CancelledError:
            log.debug("Fluid mode cancelled")
            raise
        except SurgeError as e:
            print_error(self.console, e)
        except Exception as e:
            self.console.print(format_error_with_suggestions(e, {"command": "fluid"}))
            log.debug("Full traceback:", exc_info=True)
        self.console.print("[yellow]Fluid mode stopped.[/yellow]")

    async def stop_fluid(self) -> bool:
        """Cancels fluid mode if it is running. Returns whether it was."""
        task, self._fluid_task = self._fluid_task, None
        if task is None or task.done():
            return False
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
        return True

    # Command handlers
    async def _cmd_noop(self, arg: str | None) -> None:
        pass

    async def _cmd_play(self, arg: str | None) -> None:
        if arg is None:
            if not self.player.resume():
                self.console.print("Nothing paused to resume.")
            return
        with self.session.atomic():
            path = await self._select_and_download(arg)
            self.player.play_now(path)

    async def _cmd_queue(self, arg: str | None) -> None:
        if arg is None:
            raise MissingArgumentError("Usage: queue <result index>")
        with self.session.atomic():
            path = await self._select_and_download(arg)
            self.player.enqueue(path)
        self.console.print(f"Queued: {escape(self.session.selection.title)}")

    async def _cmd_loop(self, arg: str | None) -> None:
        looping = self.player.toggle_loop()
        self.console.print(f"Loop {'on' if looping else 'off'}.")

    async def _cmd_pause(self, arg: str | None) -> None:
        if not self.player.pause():
            self.console.print("Nothing is playing.")

    async def _cmd_fluid(self, arg: str | None) -> None:
        self.session.require_selection()
        self.console.print(
            "[bold cyan]Continuous playback mode...[/bold cyan] "
            "'stop' or Ctrl-C to exit"
        )
        self._fluid_task = asyncio.create_task(self._fluid_loop(), name="surge-fluid")

    async def _cmd_related(self, arg: str | None) -> None:
        seed = await self._related()
        if not len(self.session.results):
            self.console.print(f"No related tracks found for '{escape(seed.title)}'.")
            return
        await self._cycle()

    async def _cmd_cycle(self, arg: str | None) -> None:
        await self._cycle()

    async def _cmd_clear(self, arg: str | None) -> None:
        self.session.results.clear()

    async def _cmd_now(self, arg: str | None) -> None:
        if self.session.selection is None:
            self.console.print("Nothing currently playing.")
            return
        await self._announce("NOW PLAYING:", self.session.selection)

    async def _cmd_stop(self, arg: str | None) -> None:
        if await self.stop_fluid():
            self.console.print("[yellow]Fluid mode stopped.[/yellow]")
        self.player.stop()

    async def _cmd_search(self, arg: str | None) -> None:
        if not arg:
            self.console.print("Please enter non-empty search terms")
            return
        await self._search(arg)
        if not len(self.session.results):
            self.console.print(f"No results found for '{escape(arg)}'.")
            return
        await self._cycle()

    async def _cmd_help(self, arg: str | None) -> None:
        print_help(self.console)
