# cheatsync Output Module
# Rich console output and logging setup

from cheatsync.output.console import Console, create_console, setup_logging

__all__ = [
    "Console",
    "create_console",
    "setup_logging",
]
