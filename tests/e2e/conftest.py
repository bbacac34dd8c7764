"""
E2E test fixtures for typing-bird.

Every test talks to a tmux server on an isolated socket so the user's own
sessions are never touched.
"""

import subprocess
import uuid

import libtmux
import pytest

# Test tmux socket (isolated from user's tmux)
TEST_TMUX_SOCKET = "typing-bird-test"


def kill_test_server() -> None:
    subprocess.run(
        ["tmux", "-L", TEST_TMUX_SOCKET, "kill-server"],
        capture_output=True,
        timeout=5,
    )


@pytest.fixture
def tmux_server(check_tmux_available, monkeypatch):
    """A libtmux Server on the test socket, killed afterwards."""
    monkeypatch.setenv("TYPING_BIRD_TMUX_SOCKET", TEST_TMUX_SOCKET)
    monkeypatch.delenv("TMUX_PANE", raising=False)
    monkeypatch.delenv("TMUX", raising=False)

    kill_test_server()
    yield libtmux.Server(socket_name=TEST_TMUX_SOCKET)
    kill_test_server()


@pytest.fixture
def bird_session(tmux_server):
    """A detached session whose only pane runs `cat`."""
    return tmux_server.new_session(
        session_name=f"bird-{uuid.uuid4().hex[:8]}",
        attach=False,
        window_command="cat",
    )
