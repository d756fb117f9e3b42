"""String sanitizers for directory and script file names."""

import re

MAX_FILENAME_LENGTH = 50

_SCRIPT_NAME_PATTERN = re.compile(r"[^a-z0-9_-]")


def sanitize_for_filename(text: str) -> str:
    """Make a command line safe for use in a directory name.

    Keeps (unicode) alphanumerics, ``-``, ``_`` and ``.``; everything else
    becomes ``_``. The result is cut to 50 characters.
    """
    chars = [c if (c.isalnum() or c in "-_.") else "_" for c in text]
    return "".join(chars)[:MAX_FILENAME_LENGTH]


def sanitize_script_name(name: str) -> str:
    """Lower-case ASCII script name; anything outside ``[a-z0-9_-]`` becomes ``_``."""
    lowered = "".join(c.lower() if c.isascii() else c for c in name)
    return _SCRIPT_NAME_PATTERN.sub("_", lowered)
