# Logging module: unified console output for every command
#
# Main functions:
#   - log_info() / log_success() / log_warning() / log_error()
#   - repo_message(): prefix a message with the repository name
#
# Features:
#   - timestamped lines
#   - color output when the terminal supports it (colorama on Windows)

import sys
from datetime import datetime

try:
    import colorama
    colorama.init()
    USE_COLORAMA = True
except ImportError:
    USE_COLORAMA = False

# ANSI color codes
COLOR_RESET = '\033[0m'
COLOR_INFO = '\033[0;36m'      # cyan
COLOR_SUCCESS = '\033[0;32m'   # green
COLOR_ERROR = '\033[0;31m'     # red
COLOR_WARNING = '\033[0;33m'   # yellow
COLOR_REPO = '\033[1;36m'      # bold cyan


def _get_timestamp() -> str:
    return datetime.now().strftime('%Y-%m-%d %H:%M:%S')


def _use_color(stream) -> bool:
    return USE_COLORAMA or stream.isatty()


def _format_message(level: str, color: str, message: str, stream=None) -> str:
    """Format one log line."""
    stream = stream or sys.stdout
    timestamp = _get_timestamp()
    if _use_color(stream):
        return f"{color}[{level}]{COLOR_RESET} [{timestamp}] {message}"
    return f"[{level}] [{timestamp}] {message}"


def repo_message(repo_name: str, message: str) -> str:
    """Prefix a message with the repository name: ``name | message``."""
    if _use_color(sys.stdout):
        return f"{COLOR_REPO}{repo_name}{COLOR_RESET} | {message}"
    return f"{repo_name} | {message}"


def log_info(message: str) -> None:
    print(_format_message("INFO", COLOR_INFO, message))


def log_success(message: str) -> None:
    print(_format_message("SUCCESS", COLOR_SUCCESS, message))


def log_error(message: str) -> None:
    """Error lines go to stderr."""
    print(_format_message("ERROR", COLOR_ERROR, message, sys.stderr), file=sys.stderr)


def log_warning(message: str) -> None:
    print(_format_message("WARNING", COLOR_WARNING, message))
