"""
Shared constants for typing-bird.

Defaults, tmux option names used as pane provenance tags, key names and
process exit codes live here so the CLI, the injected child and the tests
agree on them.
"""

TOOL_NAME = "typing-bird"
MODULE_NAME = "typing_bird"

# Timing defaults (seconds)
DEFAULT_TIMEOUT = 30.0
DEFAULT_DELAY = 0.015
DEFAULT_TIMEOUT_TEXT = "30s"
DEFAULT_DELAY_TEXT = "15ms"
INTERRUPT_WINDOW = 5.0
RESTART_GRACE_DELAY = 0.15
CAPTURE_RETRY_BACKOFF = 0.2
CANCEL_POLL_INTERVAL = 0.05
CAPTURE_TIMEOUT = 10.0

# Idle detection
DEFAULT_IDLE_SAMPLES = 5

# Keys
ENTER_KEY = "Enter"
INTERRUPT_KEY = "C-c"

# Injection
INJECTED_PANE_HEIGHT = 5

# Pane-scoped tmux user options recording provenance of injected panes
TAG_INJECTED = "@typing_bird_injected"
TAG_SEND_TARGET = "@typing_bird_send_target"
TAG_TRUE = "1"

# Environment
TMUX_PANE_ENV = "TMUX_PANE"
TMUX_SOCKET_ENV = "TYPING_BIRD_TMUX_SOCKET"

# Exit codes
EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130
EXIT_DOUBLE_INTERRUPT = EXIT_INTERRUPTED
EXIT_TERMINATED = 143
