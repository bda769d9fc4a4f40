"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from surge.exceptions import UserInputError

COMMAND_HELP = [
    ("search <terms>", "Search for tracks and show the first result"),
    ("cycle", "Show the next result"),
    ("play <n>", "Select result n, download it and play it now"),
    ("play", "Resume paused playback"),
    ("queue <n>", "Select result n, download it and add it to the queue"),
    ("pause", "Pause playback"),
    ("loop", "Toggle repeating the current track"),
    ("stop", "Stop playback (and leave fluid mode)"),
    ("now", "Show the current selection"),
    ("related", "Replace the results with tracks related to the selection"),
    ("fluid", "Keep playing related tracks until 'stop' or Ctrl-C"),
    ("clear", "Forget the current results"),
    ("help", "Show this table"),
]


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "BackendError": [
            "• Check your internet connection.",
            "• Your API key may be invalid or out of quota for today.",
            "• Run `surge --show-config` to check which key is in use.",
        ],
        "DownloadError": [
            "• The track may be region-locked, private or removed.",
            "• Try another result, or update yt-dlp.",
        ],
        "PlaybackError": [
            "• Make sure VLC is installed and can play audio on this machine.",
        ],
        "RenderError": [
            "• Set `show_thumbnails = false` in the config to skip previews.",
        ],
        "ConfigurationError": [
            "• Run `surge init <API_KEY>` to create a fresh configuration.",
        ],
        "ClientResponseError": [
            "• A network connection issue occurred.",
            "• Please try again in a few minutes.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run surge with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(Text("\n".join(suggestions)))

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_error(console: Console, error: Exception) -> None:
    """Mistyped commands get a short line; collaborator failures get the full panel."""
    if isinstance(error, UserInputError):
        console.print(f"[yellow]{escape(str(error))}[/yellow]")
    else:
        console.print(format_error_with_suggestions(error))


def print_help(console: Console) -> None:
    table = Table(title="Commands", show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan", no_wrap=True)
    table.add_column()
    for usage, description in COMMAND_HELP:
        table.add_row(escape(usage), description)
    console.print(table)


def print_config(console: Console, config_path: Path, config_data: dict[str, Any]):
    """Displays the current configuration, hiding sensitive data."""
    content = ""
    for key, value in config_data.items():
        if key == "api_key":
            value = "[hidden]" if value else "(not set)"
        content += f"{key} = {value}\n"

    console.print(
        Panel(
            escape(content.strip()),
            title=f"Configuration ([dim]{escape(str(config_path))}[/dim])",
            border_style="cyan",
        )
    )
