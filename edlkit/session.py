"""
Session persistence — saves and restores the register store so registers
written by one invocation (cuts, auto-salvaged text) are available to the
next one.
"""

import json
import logging
import os

from .editing.registers import RegisterStore

logger = logging.getLogger(__name__)

DEFAULT_SESSION_FILE = ".edlkit/session.json"


def save_session(filepath: str, registers: RegisterStore) -> None:
    """Persist *registers* to *filepath* as JSON."""
    directory = os.path.dirname(os.path.abspath(filepath))
    os.makedirs(directory, exist_ok=True)
    tmp = filepath + ".tmp"
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(registers.to_dict(), f, indent=2)
    # Atomic-ish rename (Windows: replaces if exists on Python 3.3+)
    os.replace(tmp, filepath)


def load_session(filepath: str) -> RegisterStore:
    """Load the register store from *filepath*.

    Returns an empty store if the file is missing or invalid.
    """
    if not os.path.isfile(filepath):
        return RegisterStore()
    try:
        with open(filepath, "r", encoding="utf-8") as f:
            state = json.load(f)
        if not isinstance(state, dict):
            raise ValueError("session file must contain an object")
        return RegisterStore.from_dict(state)
    except (json.JSONDecodeError, OSError, ValueError, TypeError) as exc:
        logger.warning("[EDL] Ignoring unreadable session file %s: %s", filepath, exc)
        return RegisterStore()


def clear_session(filepath: str) -> None:
    """Remove the session file, ending the session."""
    try:
        if os.path.isfile(filepath):
            os.remove(filepath)
    except OSError as exc:
        logger.warning("[EDL] Could not remove session file %s: %s", filepath, exc)
