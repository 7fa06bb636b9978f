# tests/conftest.py
import io

import pytest
from rich.console import Console

from ntool.config import ProbeConfig, set_config


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=200)


@pytest.fixture
def output(console):
    """Lines printed to the console fixture so far."""
    return lambda: console.file.getvalue().splitlines()


@pytest.fixture(autouse=True)
def probe_config():
    config = ProbeConfig(ping_interval=0.0, ping_timeout=0.5, trace_timeout=0.5)
    set_config(config)
    yield config
    set_config(None)
