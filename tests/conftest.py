"""
Pytest configuration for typing-bird tests.

This module provides shared fixtures and configuration for all tests.
"""

import subprocess

import pytest


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "e2e: mark test as end-to-end integration test (slow)"
    )
    config.addinivalue_line(
        "markers", "requires_tmux: mark test as requiring tmux"
    )


@pytest.fixture(scope="session")
def check_tmux_available():
    """Skip the test when tmux is not installed."""
    try:
        result = subprocess.run(
            ["tmux", "-V"],
            capture_output=True,
            text=True,
            timeout=5
        )
        if result.returncode != 0:
            pytest.skip("tmux not available")
    except (subprocess.TimeoutExpired, FileNotFoundError):
        pytest.skip("tmux not installed or not in PATH")
