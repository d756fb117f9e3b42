"""Subprocess helpers shared by git primitives and the command runner.

Spawned processes always run to completion: there is no timeout and no
cancellation anywhere in this package.
"""

import platform
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

IS_WINDOWS = platform.system() == "Windows"

PathLike = Union[str, Path]


def background_subprocess_kwargs() -> Dict[str, Any]:
    """Return subprocess kwargs that hide console windows on Windows."""
    if not IS_WINDOWS:
        return {}

    startupinfo = subprocess.STARTUPINFO()
    startupinfo.dwFlags |= subprocess.STARTF_USESHOWWINDOW
    startupinfo.wShowWindow = subprocess.SW_HIDE
    return {
        "startupinfo": startupinfo,
        "creationflags": subprocess.CREATE_NO_WINDOW,
    }


def shell_command(command: str) -> List[str]:
    """Argument vector running ``command`` through the POSIX shell."""
    return ["sh", "-c", command]


def start_process(command: Sequence[str], **kwargs) -> subprocess.Popen:
    """Start a subprocess with the platform background defaults applied."""
    popen_kwargs = dict(kwargs)
    for key, value in background_subprocess_kwargs().items():
        popen_kwargs.setdefault(key, value)
    return subprocess.Popen(list(command), **popen_kwargs)


def run_captured(
    command: Sequence[str], cwd: Optional[PathLike] = None
) -> subprocess.CompletedProcess:
    """Run to completion and capture both streams as text."""
    return subprocess.run(
        list(command),
        cwd=str(cwd) if cwd is not None else None,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        encoding="utf-8",
        errors="replace",
        **background_subprocess_kwargs(),
    )
