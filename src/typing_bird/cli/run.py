"""
The typing-bird command.

Exit codes: 0 clean shutdown, 1 operational failure, 2 usage error,
130 interrupt (second Ctrl-C, or Ctrl-C while injecting), 143 SIGTERM.
"""

import os
import sys
from pathlib import Path
from typing import Annotated, List, Optional

import typer

from ..cancellation import CancelToken, InterruptHandler
from ..config import BirdConfig
from ..constants import (
    DEFAULT_DELAY_TEXT,
    DEFAULT_TIMEOUT_TEXT,
    EXIT_FAILURE,
    EXIT_INTERRUPTED,
    EXIT_OK,
    EXIT_USAGE,
    TMUX_PANE_ENV,
)
from ..dependency_check import require_tmux
from ..dispatch import Dispatcher
from ..exceptions import ConfigurationError, SessionNotFoundError, TypingBirdError
from ..implementations import RealTmux
from ..injection import InjectionSupervisor, resolve_executable
from ..logging_config import setup_cli_logging
from ..shell import build_launch_command
from ..targets import TargetResolver
from ._shared import VersionOption, app, report_error

EPILOG = """\
Examples:

  typing-bird -t 30m foobar message1 message2 message3

  typing-bird --timeout 45s foobar

  typing-bird -t 1m -d 25ms foobar "line1\\nline2"

  typing-bird -i foobar message1 message2
"""


@app.command(
    epilog=EPILOG,
    context_settings={
        # Everything after the session is a message, even "-x"
        "allow_interspersed_args": False,
        "help_option_names": ["-h", "--help"],
    },
)
def run(
    session: Annotated[str, typer.Argument(help="tmux session name")],
    messages: Annotated[
        Optional[List[str]],
        typer.Argument(help="Messages to cycle through (none: send Enter only)"),
    ] = None,
    timeout: Annotated[
        str,
        typer.Option("--timeout", "-t", help="Terminal-idle timeout window before next send (e.g. 30s, 15m, 1h; a bare number is seconds)"),
    ] = DEFAULT_TIMEOUT_TEXT,
    delay: Annotated[
        str,
        typer.Option("--delay", "-d", help="Key input delay duration (e.g. 15ms; a bare number is seconds)"),
    ] = DEFAULT_DELAY_TEXT,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
    inject: Annotated[
        bool,
        typer.Option("--inject", "-i", help="Inject into target session as bottom 5-line pane"),
    ] = False,
    target_pane: Annotated[
        Optional[str],
        typer.Option("--target-pane", hidden=True, help="Internal pane target for send-keys"),
    ] = None,
    log_file: Annotated[
        Optional[Path],
        typer.Option("--log-file", help="Also append log output to this file"),
    ] = None,
    version: VersionOption = None,
):
    """Send the next message to a tmux session each time its pane goes idle."""
    try:
        config = BirdConfig.from_cli(
            session=session,
            messages=messages,
            timeout=timeout,
            delay=delay,
            verbose=verbose,
            inject=inject,
            target_pane=target_pane,
            log_file=log_file,
        )
    except ConfigurationError as e:
        report_error(str(e))
        raise typer.Exit(EXIT_USAGE)

    log = setup_cli_logging(verbose=config.verbose, log_file=config.log_file)

    try:
        tmux_path, tmux_version = require_tmux()
        log.debug(f"using {tmux_version or 'tmux'} at {tmux_path}")
        client = RealTmux()
        if not client.has_session(config.session):
            raise SessionNotFoundError(config.session, client.last_error)
    except TypingBirdError as e:
        log.error(str(e))
        raise typer.Exit(EXIT_FAILURE)

    invoking_pane = os.environ.get(TMUX_PANE_ENV, "").strip() or None

    if config.inject:
        supervisor = InjectionSupervisor(
            client,
            config,
            executable=resolve_executable(sys.argv[0]),
            invoking_pane=invoking_pane,
        )
        try:
            supervisor.run()
        except TypingBirdError as e:
            log.error(f"failed injecting into session {config.session!r}: {e}")
            raise typer.Exit(EXIT_FAILURE)
        except KeyboardInterrupt:
            log.info("Interrupted; exiting.")
            raise typer.Exit(EXIT_INTERRUPTED)
        raise typer.Exit(EXIT_OK)

    cancel = CancelToken()
    with InterruptHandler(cancel, build_launch_command(sys.argv)):
        send_target = config.target_pane
        if send_target is None:
            try:
                send_target = TargetResolver(client, config.session).preferred_send_pane()
            except TypingBirdError as e:
                log.error(f"failed resolving target pane for session {config.session!r}: {e}")
                raise typer.Exit(EXIT_FAILURE)

        code = Dispatcher(client, config, send_target, cancel).run()

    raise typer.Exit(code)
