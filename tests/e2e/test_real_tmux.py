"""
End-to-end tests against a real tmux server.

Skipped when tmux is not installed. All tests use the isolated
typing-bird-test socket.
"""

import shutil
import subprocess
import sys
import time

import pytest

from typing_bird.cancellation import CancelToken
from typing_bird.config import BirdConfig
from typing_bird.dispatch import Dispatcher
from typing_bird.idle import IdleDetector
from typing_bird.implementations import RealTmux
from typing_bird.injection import InjectionSupervisor
from typing_bird.shell import shell_command_for_exec
from typing_bird.targets import TargetResolver

pytestmark = [pytest.mark.e2e, pytest.mark.requires_tmux]


def wait_for(predicate, timeout=5.0, interval=0.1):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return False


class CancelAfterEnter(RealTmux):
    """RealTmux that cancels the run once `count` Enter presses went out."""

    def __init__(self, cancel, count, socket_name=None):
        super().__init__(socket_name)
        self.cancel = cancel
        self.remaining = count

    def send_key(self, target, key, delay=0.0):
        ok = super().send_key(target, key, delay)
        if key == "Enter":
            self.remaining -= 1
            if self.remaining <= 0:
                self.cancel.cancel()
        return ok


class TestRealTmux:
    def test_session_and_panes(self, bird_session):
        client = RealTmux()
        name = bird_session.name

        assert client.has_session(name)
        assert not client.has_session(name + "-missing")

        rows = client.list_panes(name, ("#{pane_id}", "#{pane_active}", "#{@typing_bird_injected}"))
        assert len(rows) == 1
        pane_id, active, injected = rows[0]
        assert pane_id.startswith("%")
        assert active == "1"
        assert injected == ""

    def test_tagging_and_split(self, bird_session):
        client = RealTmux()
        name = bird_session.name
        target = TargetResolver(client, name).preferred_send_pane()

        new_pane = client.split_pane(target, "cat")
        assert new_pane is not None
        assert client.set_pane_option(new_pane, "@typing_bird_injected", "1")
        assert client.display(new_pane, "#{@typing_bird_injected}") == "1"

        # The tagged pane is never chosen as a send target
        assert TargetResolver(client, name).preferred_send_pane() == target

        assert client.kill_pane(new_pane)
        assert not client.pane_exists(new_pane)

    def test_literal_text_reaches_pane(self, bird_session):
        client = RealTmux()
        target = TargetResolver(client, bird_session.name).preferred_send_pane()

        assert client.send_literal(target, "Enter C-c")
        assert wait_for(lambda: b"Enter C-c" in (client.capture_pane(target) or b""))


class TestDispatchAgainstTmux:
    def test_sends_messages_when_idle(self, bird_session):
        cancel = CancelToken()
        client = CancelAfterEnter(cancel, count=2)
        target = TargetResolver(client, bird_session.name).preferred_send_pane()
        config = BirdConfig(session=bird_session.name, messages=("first", "second"), timeout=0.2, delay=0.0)

        code = Dispatcher(client, config, target, cancel).run()

        assert code == 0
        content = client.capture_pane(target)
        assert b"first" in content
        assert b"second" in content

    def test_idle_detection_on_quiet_pane(self, bird_session):
        client = RealTmux()
        target = TargetResolver(client, bird_session.name).preferred_send_pane()
        detector = IdleDetector(client, CancelToken(), samples=3)

        assert detector.wait_for_idle(target, 0.2) is not None


class TestInjectCommand:
    def test_inject_creates_tagged_pane(self, bird_session):
        name = bird_session.name
        result = subprocess.run(
            [sys.executable, "-m", "typing_bird", "-i", "-t", "1h", name, "hello"],
            capture_output=True,
            text=True,
            timeout=30,
        )
        assert result.returncode == 0, result.stderr

        client = RealTmux()
        rows = client.list_panes(
            name, ("#{pane_id}", "#{@typing_bird_injected}", "#{@typing_bird_send_target}")
        )
        injected = [row for row in rows if row[1] == "1"]
        assert len(injected) == 1
        original = [row[0] for row in rows if row[1] != "1"]
        assert injected[0][2] == original[0]

    def test_reinject_replaces_previous_pane(self, bird_session):
        name = bird_session.name
        command = [sys.executable, "-m", "typing_bird", "-i", "-t", "1h", name]

        subprocess.run(command, capture_output=True, timeout=30, check=True)
        subprocess.run(command, capture_output=True, timeout=30, check=True)

        client = RealTmux()
        rows = client.list_panes(name, ("#{pane_id}", "#{@typing_bird_injected}"), all_windows=True)
        assert len([row for row in rows if row[1] == "1"]) == 1

    def test_restart_stops_untagged_instance(self, bird_session):
        name = bird_session.name
        client = RealTmux()
        target = TargetResolver(client, name).preferred_send_pane()
        command = shell_command_for_exec(sys.executable, ["-m", "typing_bird", "-t", "1h", name, "hi"])
        manual_pane = client.split_pane(target, command)
        assert manual_pane is not None
        assert wait_for(lambda: client.display(manual_pane, "#{pane_current_command}") not in (None, "", "sh"))

        config = BirdConfig.from_cli(name, ["hi"], "1h", "0", inject=True)
        supervisor = InjectionSupervisor(client, config, executable=[sys.executable, "-m", "typing_bird"])

        assert manual_pane in supervisor.find_existing_panes()
        supervisor.restart_existing_panes()
        assert not client.pane_exists(manual_pane)

    def test_restart_finds_console_script_instance(self, bird_session):
        script = shutil.which("typing-bird")
        if script is None:
            pytest.skip("typing-bird console script not on PATH")
        name = bird_session.name
        client = RealTmux()
        target = TargetResolver(client, name).preferred_send_pane()
        manual_pane = client.split_pane(target, shell_command_for_exec(script, ["-t", "1h", name, "hi"]))
        assert manual_pane is not None

        config = BirdConfig.from_cli(name, ["hi"], "1h", "0", inject=True)
        supervisor = InjectionSupervisor(client, config, executable=[script])

        assert manual_pane in supervisor.find_existing_panes()
