"""
Dependency checking utilities.

typing-bird needs the tmux binary on PATH; libtmux shells out to it for
every command.
"""

import shutil
import subprocess
from typing import Optional, Tuple

from .exceptions import TmuxNotFoundError


def find_executable(name: str) -> Optional[str]:
    """Find the path to an executable.

    Args:
        name: Name of the executable

    Returns:
        Full path to executable, or None if not found
    """
    return shutil.which(name)


def check_tmux() -> Tuple[bool, Optional[str], Optional[str]]:
    """Check if tmux is available and get its version.

    Returns:
        Tuple of (is_available, path, version)
    """
    path = find_executable("tmux")
    if not path:
        return False, None, None

    try:
        result = subprocess.run(
            ["tmux", "-V"],
            capture_output=True,
            text=True,
            timeout=5
        )
        version = result.stdout.strip() if result.returncode == 0 else None
        return True, path, version
    except (subprocess.SubprocessError, OSError):
        return True, path, None


def require_tmux() -> Tuple[str, Optional[str]]:
    """Ensure tmux is available, raise if not.

    Returns:
        Tuple of (path, version); version is None if `tmux -V` failed

    Raises:
        TmuxNotFoundError: If tmux is not found
    """
    available, path, version = check_tmux()
    if not available:
        raise TmuxNotFoundError(
            "tmux not found in PATH. "
            "Install it with: brew install tmux (macOS) or apt install tmux (Linux)"
        )
    return path, version
