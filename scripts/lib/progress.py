"""Progress narration on stderr."""

import sys


def log(scope: str, message: str) -> None:
    """Log a message with a scope prefix."""
    print(f"[{scope}] {message}", file=sys.stderr)
