"""Tests for self-injection."""

import sys
from unittest.mock import patch

import pytest

from typing_bird.config import BirdConfig
from typing_bird.exceptions import InjectionError
from typing_bird.injection import InjectionSupervisor, resolve_executable
from typing_bird.mocks import MockTmux

INJECTED = {"@typing_bird_injected": "1", "@typing_bird_send_target": "%1"}
EXE = "/usr/local/bin/typing-bird"


@pytest.fixture
def tmux():
    tmux = MockTmux()
    tmux.add_pane("foobar", pane_id="%1", active=True)
    tmux.add_pane("foobar", pane_id="%5", options=INJECTED)
    tmux.add_pane("foobar", pane_id="%6", current_command="typing-bird", window=1)
    tmux.add_pane("foobar", pane_id="%8", current_command="vim")
    return tmux


@pytest.fixture
def inject_config():
    return BirdConfig.from_cli("foobar", ["m1", "m2"], "30s", "15ms", inject=True)


def make_supervisor(tmux, config, invoking_pane=None, sleeps=None):
    return InjectionSupervisor(
        tmux,
        config,
        executable=[EXE],
        invoking_pane=invoking_pane,
        sleep=(sleeps.append if sleeps is not None else (lambda s: None)),
    )


class TestResolveExecutable:
    """Tests for resolve_executable()."""

    def test_existing_script_path(self, tmp_path):
        script = tmp_path / "typing-bird"
        script.write_text("#!/bin/sh\n")
        assert resolve_executable(str(script)) == [str(script)]

    def test_name_found_on_path(self, tmp_path):
        script = tmp_path / "typing-bird"
        script.write_text("#!/bin/sh\n")
        with patch("typing_bird.injection.shutil.which", return_value=str(script)):
            assert resolve_executable("typing-bird") == [str(script)]

    def test_module_invocation_uses_interpreter(self):
        assert resolve_executable("/src/typing_bird/__main__.py") == [sys.executable, "-m", "typing_bird"]

    def test_unknown_name_uses_interpreter(self):
        with patch("typing_bird.injection.shutil.which", return_value=None):
            assert resolve_executable("typing-bird") == [sys.executable, "-m", "typing_bird"]


class TestFindExistingPanes:
    """Tests for the restart scan."""

    def test_finds_tagged_and_named_panes_in_all_windows(self, tmux, inject_config):
        supervisor = make_supervisor(tmux, inject_config)
        assert supervisor.find_existing_panes() == ["%5", "%6"]

    def test_finds_untagged_panes_by_start_command(self, tmux, inject_config):
        tmux.add_pane(
            "foobar", pane_id="%9", current_command="python3",
            start_command="/home/me/.venv/bin/typing-bird -t 1h foobar hi",
        )
        tmux.add_pane(
            "foobar", pane_id="%10", current_command="python3",
            start_command="/usr/bin/python3 -m typing_bird --target-pane %1 foobar",
        )
        tmux.add_pane("foobar", pane_id="%11", current_command="python3", start_command="python3 -m http.server")
        supervisor = make_supervisor(tmux, inject_config)

        assert supervisor.find_existing_panes() == ["%5", "%6", "%9", "%10"]

    def test_listing_failure(self, tmux, inject_config):
        tmux.failing.add("list_panes")
        supervisor = make_supervisor(tmux, inject_config)

        with pytest.raises(InjectionError, match="listing existing panes"):
            supervisor.find_existing_panes()

    def test_command_names_from_script(self, tmux, inject_config):
        supervisor = InjectionSupervisor(tmux, inject_config, executable=["/opt/bin/tb"])
        assert supervisor.command_names == ["typing-bird", "tb"]

    def test_command_names_skip_interpreter(self, tmux, inject_config):
        supervisor = InjectionSupervisor(tmux, inject_config, executable=["/usr/bin/python3", "-m", "typing_bird"])
        assert supervisor.command_names == ["typing-bird"]

    def test_rejects_empty_executable(self, tmux, inject_config):
        with pytest.raises(ValueError):
            InjectionSupervisor(tmux, inject_config, executable=[])


class TestRestartExistingPanes:
    """Tests for restart_existing_panes()."""

    def test_interrupts_then_kills_each_instance(self, tmux, inject_config):
        sleeps = []
        supervisor = make_supervisor(tmux, inject_config, sleeps=sleeps)

        skipped = supervisor.restart_existing_panes()

        assert skipped is False
        assert tmux.calls == [
            ("send_key", "%5", "C-c"),
            ("kill_pane", "%5", ""),
            ("send_key", "%6", "C-c"),
            ("kill_pane", "%6", ""),
        ]
        assert sleeps == [0.15, 0.15]
        assert set(tmux.panes) == {"%1", "%8"}

    def test_defers_invoking_pane(self, tmux, inject_config):
        supervisor = make_supervisor(tmux, inject_config, invoking_pane="%5")

        skipped = supervisor.restart_existing_panes()

        assert skipped is True
        assert "%5" in tmux.panes
        assert "%6" not in tmux.panes

    def test_pane_exiting_on_interrupt_is_fine(self, tmux, inject_config):
        """A pane that closes itself after Ctrl-C can't be killed, and needn't be."""
        def close_on_interrupt(target, value):
            if value == "C-c":
                tmux.remove_pane(target)

        tmux.send_hook = close_on_interrupt
        supervisor = make_supervisor(tmux, inject_config)

        assert supervisor.restart_existing_panes() is False
        assert set(tmux.panes) == {"%1", "%8"}

    def test_kill_failure_on_live_pane_is_fatal(self, tmux, inject_config):
        tmux.failing.add("kill_pane")
        supervisor = make_supervisor(tmux, inject_config)

        with pytest.raises(InjectionError, match="killing pane %5"):
            supervisor.restart_existing_panes()

    def test_interrupt_failure_still_kills(self, tmux, inject_config):
        tmux.failing.add("send_key")
        supervisor = make_supervisor(tmux, inject_config)

        supervisor.restart_existing_panes()

        assert set(tmux.panes) == {"%1", "%8"}


class TestInjectionRun:
    """Tests for InjectionSupervisor.run()."""

    def test_full_injection(self, tmux, inject_config):
        supervisor = make_supervisor(tmux, inject_config)

        result = supervisor.run()

        assert result.send_target == "%1"
        new_pane = tmux.panes[result.pane_id]
        assert new_pane.start_command == (
            f"'{EXE}' '-t' '30s' '-d' '15ms' '--target-pane' '%1' 'foobar' 'm1' 'm2'"
        )
        assert new_pane.options == {
            "@typing_bird_injected": "1",
            "@typing_bird_send_target": "%1",
        }
        assert ("split_pane", "%1", new_pane.start_command) in tmux.calls

    def test_split_happens_before_tagging(self, tmux, inject_config):
        result = make_supervisor(tmux, inject_config).run()

        ops = [(op, target) for op, target, _ in tmux.calls if op in ("split_pane", "set_pane_option")]
        assert ops == [
            ("split_pane", "%1"),
            ("set_pane_option", result.pane_id),
            ("set_pane_option", result.pane_id),
        ]

    def test_targets_ordinary_invoking_pane(self, tmux, inject_config):
        result = make_supervisor(tmux, inject_config, invoking_pane="%8").run()

        assert result.send_target == "%8"
        assert "'--target-pane' '%8'" in tmux.panes[result.pane_id].start_command

    def test_deferred_invoking_pane_killed_after_split(self, tmux, inject_config):
        result = make_supervisor(tmux, inject_config, invoking_pane="%5").run()

        assert result.send_target == "%1"
        ops = [(op, target) for op, target, _ in tmux.calls]
        assert ops.index(("kill_pane", "%5")) > ops.index(("split_pane", "%1"))
        assert ops[-1] == ("kill_pane", "%5")
        assert "%5" not in tmux.panes

    def test_messages_with_quotes_survive(self, tmux):
        config = BirdConfig.from_cli("foobar", ["it's done"], "1m", "0", inject=True, verbose=True)
        result = make_supervisor(tmux, config).run()

        command = tmux.panes[result.pane_id].start_command
        assert "'--verbose'" in command
        assert "'it'\\''s done'" in command

    def test_no_eligible_pane(self, inject_config):
        tmux = MockTmux()
        tmux.add_pane("foobar", pane_id="%5", options=INJECTED)

        with pytest.raises(InjectionError, match="resolving the send-target pane"):
            make_supervisor(tmux, inject_config).run()

    def test_split_failure(self, tmux, inject_config):
        tmux.failing.add("split_pane")

        with pytest.raises(InjectionError, match="splitting pane %1"):
            make_supervisor(tmux, inject_config).run()

        assert not any(op == "set_pane_option" for op, _, _ in tmux.calls)

    def test_tag_failure(self, tmux, inject_config):
        tmux.failing.add("set_pane_option")

        with pytest.raises(InjectionError, match="tagging pane"):
            make_supervisor(tmux, inject_config).run()

    def test_no_rollback_of_restarts_on_failure(self, tmux, inject_config):
        tmux.failing.add("split_pane")

        with pytest.raises(InjectionError):
            make_supervisor(tmux, inject_config).run()

        assert "%5" not in tmux.panes
        assert "%6" not in tmux.panes
