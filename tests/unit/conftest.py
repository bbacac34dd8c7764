"""
Unit test configuration for typing-bird.

Provides an in-memory tmux and a default config so tests never touch a
real tmux server.
"""

import logging

import pytest

from typing_bird.cancellation import CancelToken
from typing_bird.config import BirdConfig
from typing_bird.mocks import MockTmux


@pytest.fixture
def mock_tmux():
    """A MockTmux with session 'foobar' and a single active pane %1."""
    tmux = MockTmux()
    tmux.add_pane("foobar", pane_id="%1", active=True, content=b"$ ")
    return tmux


@pytest.fixture
def cancel():
    return CancelToken()


@pytest.fixture
def config():
    return BirdConfig(session="foobar", messages=("m1", "m2"), timeout=0.0, delay=0.0)


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset typing_bird logging configuration after each test."""
    yield
    logger = logging.getLogger("typing_bird")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
