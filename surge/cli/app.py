"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from surge import __version__
from surge.api.client import YouTubeAPIClient
from surge.core.command_center import CommandCenter
from surge.exceptions import PlaybackError, SurgeError
from surge.media import Downloader, ThumbnailRenderer
from surge.models.config import SurgeConfig
from surge.storage.cache import CacheManager
from surge.storage.config_manager import ConfigManager

from .formatters import format_error_with_suggestions, print_config
from .repl import run_repl

console = Console()

logging.basicConfig(
    level="WARNING",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("surge")

app = typer.Typer(
    name="surge",
    help=(
        "An interactive terminal music player. Run 'surge' to start the"
        " player, then type 'help' at the prompt."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def _xdg_dir(env_var: str, fallback: str) -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv(env_var, fallback))
    return base_dir.expanduser() / "surge"


CONFIG_DIR = _xdg_dir("XDG_CONFIG_HOME", "~/.config")
CONFIG_FILE = CONFIG_DIR / "config.ini"
CACHE_DIR = _xdg_dir("XDG_CACHE_HOME", "~/.cache")
HISTORY_FILE = CACHE_DIR / "history.txt"


async def _run_player(config: SurgeConfig) -> None:
    """Wires the collaborators together and runs the prompt until exit."""
    try:
        from surge.media.player import VLCPlayer

        player = VLCPlayer()
    except (ImportError, OSError, NotImplementedError) as e:
        raise PlaybackError(f"Could not initialise VLC: {e}") from e

    cache = None
    if config.cache_ttl_hours:
        cache = CacheManager(CACHE_DIR, max_age_hours=config.cache_ttl_hours)
        cache.prune()

    backend = YouTubeAPIClient(config, cache)
    downloader = Downloader(config, max_attempts=config.download_retries + 1)
    renderer = ThumbnailRenderer(console, scale=config.thumbnail_scale)
    center = CommandCenter(
        backend,
        downloader,
        player,
        renderer,
        console=console,
        show_thumbnails=config.show_thumbnails,
    )

    console.print(
        f"[bold]surge[/bold] [cyan]{__version__}[/cyan] "
        "[dim]type 'help' for commands, Ctrl-D to quit[/dim]"
    )
    try:
        await run_repl(center, HISTORY_FILE, console)
    finally:
        await center.stop_fluid()
        player.release()
        await downloader.close()
        await backend.close()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the current configuration."
    ),
    clear_cache: bool = typer.Option(
        False, "--clear-cache", help="Clear the API response cache and exit."
    ),
):
    """surge music player"""
    if version:
        console.print(f"[bold]surge[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "WARNING"
    if verbose == 1:
        log_level = "INFO"
    elif verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("surge").setLevel(log_level)

    if clear_cache:
        cache = CacheManager(CACHE_DIR)
        removed = cache.clear()
        console.print(
            f"[green]✓ Cache cleared successfully ({removed} entries removed).[/green]"
        )
        raise typer.Exit()

    if show_config:
        if not CONFIG_FILE.is_file():
            console.print(
                "[red]✗ Config file not found.[/] Run [cyan]surge init[/cyan] first."
            )
            raise typer.Exit(code=1)
        config_manager = ConfigManager(CONFIG_FILE)
        config_manager.load_config()
        print_config(console, CONFIG_FILE, config_manager.get_config_as_dict())
        raise typer.Exit()

    if ctx.invoked_subcommand is not None:
        return

    try:
        config = ConfigManager(CONFIG_FILE).load_config()
        asyncio.run(_run_player(config))
    except SurgeError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e


@app.command()
def init(
    api_key: str = typer.Argument(..., help="YouTube Data API v3 key."),
    download_path: str | None = typer.Option(
        None,
        "--download-path",
        "-d",
        help="Where downloaded audio and thumbnails are kept.",
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing configuration."
    ),
):
    """Create the configuration file."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    settings = {"api_key": api_key}
    if download_path:
        settings["download_path"] = download_path

    try:
        config_manager = ConfigManager(CONFIG_FILE)
        config_manager.save_new_config(settings)
        config_manager.load_config()
    except SurgeError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1) from e

    console.print(f"\n[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]")
    console.print("Ready to play! Start the player with: [cyan]surge[/cyan]")
