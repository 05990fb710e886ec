import asyncio
import functools
import logging
from unittest.mock import AsyncMock

import click.testing
import pytest

from reflector.cli import main


@pytest.fixture(autouse=True)
def _restore_root_logger():
    logger = logging.getLogger()
    handlers = logger.handlers[:]
    level = logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


@pytest.fixture()
def runner():
    runner = click.testing.CliRunner()
    return runner


@pytest.fixture()
def invoke(runner):
    return functools.partial(runner.invoke, main)


@pytest.fixture()
def real_run(mocker, store):
    """ Run the commands against the in-memory store instead of a cluster. """
    def run_in_memory(command, *, settings=None):
        return asyncio.run(command(store))
    return mocker.patch('reflector._core.reactor.running.run', side_effect=run_in_memory)


@pytest.fixture()
def patch_obj(mocker):
    return mocker.patch('reflector._cogs.clients.patching.patch_obj', new_callable=AsyncMock)
