"""Human-readable descriptions for shell exit codes."""

_NAMED_EXIT_CODES = {
    0: "success",
    1: "general error",
    2: "shell builtin misuse",
    126: "command invoked cannot execute",
    127: "command not found",
    128: "invalid argument to exit",
    130: "script terminated by Control-C",
}


def describe_exit_code(exit_code: int) -> str:
    """Classify an exit code; every integer maps to some description."""
    if exit_code in _NAMED_EXIT_CODES:
        return _NAMED_EXIT_CODES[exit_code]
    if 131 <= exit_code <= 255:
        return "terminated by signal"
    return "error"
