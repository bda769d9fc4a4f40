"""
Entry point for the `surge` console script and `python -m surge`.

Errors that escape the typer app end up here and are shown as a panel rather
than a traceback.
"""

import asyncio
import logging
import sys

import typer
from rich.console import Console

from surge.cli.app import app
from surge.cli.formatters import format_error_with_suggestions
from surge.exceptions import SurgeError

log = logging.getLogger("surge")


def main() -> None:
    console = Console(stderr=True)
    try:
        app()
    except (typer.Exit, typer.Abort):
        pass
    except (KeyboardInterrupt, asyncio.CancelledError):
        console.print("\n[yellow]Bye.[/yellow]")
    except SurgeError as e:
        console.print(format_error_with_suggestions(e))
        sys.exit(1)
    except Exception as e:
        console.print(format_error_with_suggestions(e, {"type": "Unexpected"}))
        log.debug("Full traceback:", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
