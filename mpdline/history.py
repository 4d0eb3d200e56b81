"""History file management for the mpdline REPL.

Uses prompt_toolkit's FileHistory to persist command history to
~/.mpdline_history.
"""

import os

from prompt_toolkit.history import FileHistory

HISTORY_PATH = os.path.expanduser("~/.mpdline_history")


def get_history(path: str = HISTORY_PATH) -> FileHistory:
    """Return a FileHistory instance for the REPL.

    The file is created on first write.
    """
    return FileHistory(path)
