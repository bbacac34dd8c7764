"""Allow running as ``python -m typing_bird``."""

from .cli import main

main()
