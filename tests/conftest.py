import io

import pytest
from rich.console import Console

from surge.core.command_center import CommandCenter

from .fakes import FakeBackend, FakeDownloader, FakePlayer, FakeRenderer, make_result


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=200, force_terminal=False, color_system=None)


@pytest.fixture
def backend():
    return FakeBackend(
        search_results={
            "abc": [make_result("1", "A"), make_result("2", "B"), make_result("3", "C")],
        }
    )


@pytest.fixture
def downloader():
    return FakeDownloader()


@pytest.fixture
def player():
    return FakePlayer()


@pytest.fixture
def renderer():
    return FakeRenderer()


@pytest.fixture
def center(backend, downloader, player, renderer, console):
    return CommandCenter(backend, downloader, player, renderer, console=console)
