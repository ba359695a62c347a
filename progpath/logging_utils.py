"""Logging utilities for progpath sessions.

Provides color-coded output to distinguish interpreter steps, outcomes and
ingestion events.
"""

import os
from enum import Enum


class Color(Enum):
    """Escape sequences used to tint session output."""

    # One color per kind of session event
    BLUE = "\033[94m"      # Interpreter steps (move, turn, hole check)
    MAGENTA = "\033[95m"   # Marker / button ingestion
    RED = "\033[91m"       # Failures
    GREEN = "\033[92m"     # Goal reached
    CYAN = "\033[96m"      # Load, start, pause, reset

    # Formatting
    BOLD = "\033[1m"
    RESET = "\033[0m"


def colored(text: str, color: Color, bold: bool = False) -> str:
    """Return ``text`` tinted with ``color`` unless PROGPATH_NO_COLOR is set.

    Args:
        text: Text to colorize
        color: Color to apply
        bold: Prefix the bold escape as well

    Returns:
        Colorized text if PROGPATH_NO_COLOR is not set, otherwise plain text
    """
    if os.getenv("PROGPATH_NO_COLOR"):
        return text

    codes = (Color.BOLD.value if bold else "") + color.value
    return f"{codes}{text}{Color.RESET.value}"


def log_deterministic(message: str) -> None:
    """Log an interpreter step (blue)."""
    print(colored(message, Color.BLUE))


def log_ingestion(message: str) -> None:
    """Log a command ingestion event (magenta)."""
    print(colored(message, Color.MAGENTA))


def log_error(message: str) -> None:
    """Log a failure (red)."""
    print(colored(message, Color.RED))


def log_success(message: str) -> None:
    """Print a goal-reached line in green."""
    print(colored(message, Color.GREEN))


def log_info(message: str) -> None:
    """Print a session lifecycle line in cyan."""
    print(colored(message, Color.CYAN))


# Text tags so every line stays readable without color
LOG_TAG_DETERMINISTIC = "[•]"  # Interpreter step
LOG_TAG_INGEST = "[+]"         # Command ingestion
LOG_TAG_ERROR = "[!]"          # Failure
LOG_TAG_SUCCESS = "[✓]"        # Success
LOG_TAG_INFO = "[i]"           # Information
