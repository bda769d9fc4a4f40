"""
The interactive prompt loop.

Reads one line at a time with prompt_toolkit (history, line editing) and hands
it to the CommandCenter. Output printed while the prompt is showing, such as
fluid mode announcing the next track, is kept above the input line.
"""

import asyncio
import logging
import signal
from pathlib import Path

from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory
from prompt_toolkit.patch_stdout import patch_stdout
from rich.console import Console

from surge.core.command_center import CommandCenter

from .formatters import format_error_with_suggestions

log = logging.getLogger(__name__)

PROMPT = "surge ♫ "


async def run_command(center: CommandCenter, line: str, console: Console) -> None:
    """
    Runs one command so that Ctrl-C aborts it and returns to the prompt.

    Anything unexpected is reported rather than allowed to end the session.
    """
    loop = asyncio.get_running_loop()
    task = asyncio.create_task(center.handle_command(line))
    interrupt_installed = False
    try:
        loop.add_signal_handler(signal.SIGINT, task.cancel)
        interrupt_installed = True
    except (NotImplementedError, RuntimeError):
        # No loop signal handlers on this platform; Ctrl-C ends the process.
        pass

    try:
        await task
    except asyncio.CancelledError:
        if not task.cancelled():
            raise
        console.print("[yellow]Interrupted.[/yellow]")
    except Exception as e:
        console.print(format_error_with_suggestions(e, {"command": line}))
        log.debug("Full traceback:", exc_info=True)
    finally:
        if interrupt_installed:
            loop.remove_signal_handler(signal.SIGINT)


async def run_repl(center: CommandCenter, history_path: Path, console: Console) -> None:
    """Reads and runs commands until end of input (Ctrl-D)."""
    history_path.parent.mkdir(parents=True, exist_ok=True)
    prompt_session = PromptSession(PROMPT, history=FileHistory(str(history_path)))

    with patch_stdout(raw=True):
        while True:
            try:
                line = await prompt_session.prompt_async()
            except KeyboardInterrupt:
                if await center.stop_fluid():
                    console.print("[yellow]Fluid mode stopped.[/yellow]")
                continue
            except EOFError:
                break
            await run_command(center, line, console)
