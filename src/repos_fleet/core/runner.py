# Command runner: executes one shell command inside one repository checkout
#
# Main functions:
#   - CommandRunner.run_command_with_capture(): run, capture stdout/stderr,
#     optionally persist stdout.log / stderr.log / metadata.json
#   - CommandRunner.run_recipe_with_capture(): same, with recipe metadata
#   - CommandRunner.run_command(): run with inherited console, non-zero exit
#     raises CommandFailedError
#
# stdout and stderr are drained by two reader threads while the process runs;
# reading them one after the other can deadlock once a pipe buffer fills up.

import json
import subprocess
import threading
from datetime import datetime
from pathlib import Path
from typing import IO, Any, Dict, List, Optional

from ..constants import METADATA_FILE, NO_EXIT_CODE, STDERR_LOG, STDOUT_LOG
from ..domain.models import Recipe, RepositoryRecord, RunResult
from ..errors import CommandFailedError, FleetError, RepositoryNotFoundError
from ..infra.logger import log_info, repo_message
from .process_control import PathLike, shell_command, start_process


def _drain(stream: IO[str], sink: List[str]) -> None:
    for line in stream:
        sink.append(line if line.endswith("\n") else line + "\n")
    stream.close()


def _normalize_exit_code(returncode: Optional[int]) -> int:
    # negative return codes mean the process was killed by a signal
    if returncode is None or returncode < 0:
        return NO_EXIT_CODE
    return returncode


def write_run_logs(log_dir: PathLike, result: RunResult, metadata: Dict[str, Any]) -> Path:
    """Write the three run artifacts for one repository and return their directory.

    All three files are written even when output is empty, so a missing file
    means the command never ran for that repository.
    """
    repo_log_dir = Path(log_dir) / result.repository
    repo_log_dir.mkdir(parents=True, exist_ok=True)

    (repo_log_dir / STDOUT_LOG).write_text(result.stdout, encoding="utf-8")
    (repo_log_dir / STDERR_LOG).write_text(result.stderr, encoding="utf-8")

    record = dict(metadata)
    record.update(
        {
            "repository": result.repository,
            "timestamp": datetime.now().astimezone().isoformat(timespec="seconds"),
            "exit_code": result.exit_code,
            "exit_code_description": result.exit_code_description,
        }
    )
    (repo_log_dir / METADATA_FILE).write_text(
        json.dumps(record, ensure_ascii=False, indent=2), encoding="utf-8"
    )
    return repo_log_dir


class CommandRunner:
    """Runs shell commands in repository checkouts.

    Holds no state between calls; one instance may serve any number of
    repositories, sequentially or from several threads.
    """

    def _repo_dir(self, repo: RepositoryRecord) -> Path:
        repo_dir = repo.target_dir()
        if not repo_dir.exists():
            raise RepositoryNotFoundError(f"Repository directory does not exist: {repo_dir}")
        return repo_dir

    def _capture(self, repo: RepositoryRecord, command: str) -> RunResult:
        repo_dir = self._repo_dir(repo)
        log_info(repo_message(repo.name, f"Running '{command}'"))

        try:
            process = start_process(
                shell_command(command),
                cwd=str(repo_dir),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as exc:
            raise FleetError(f"Failed to start command '{command}': {exc}") from exc

        stdout_lines: List[str] = []
        stderr_lines: List[str] = []
        readers = [
            threading.Thread(target=_drain, args=(process.stdout, stdout_lines), daemon=True),
            threading.Thread(target=_drain, args=(process.stderr, stderr_lines), daemon=True),
        ]
        for reader in readers:
            reader.start()
        for reader in readers:
            reader.join()

        returncode = process.wait()
        return RunResult(
            repository=repo.name,
            stdout="".join(stdout_lines),
            stderr="".join(stderr_lines),
            exit_code=_normalize_exit_code(returncode),
        )

    def run_command_with_capture(
        self,
        repo: RepositoryRecord,
        command: str,
        log_dir: Optional[PathLike] = None,
    ) -> RunResult:
        """Run ``command`` and return its output whatever the exit code."""
        result = self._capture(repo, command)
        if log_dir is not None:
            write_run_logs(log_dir, result, {"command": command})
        return result

    def run_recipe_with_capture(
        self,
        repo: RepositoryRecord,
        script_command: str,
        recipe: Recipe,
        log_dir: Optional[PathLike] = None,
    ) -> RunResult:
        """Run a materialized recipe script; metadata names the recipe, not the script."""
        result = self._capture(repo, script_command)
        if log_dir is not None:
            write_run_logs(
                log_dir,
                result,
                {"recipe": recipe.name, "recipe_steps": list(recipe.steps)},
            )
        return result

    def run_command(self, repo: RepositoryRecord, command: str) -> None:
        """Run ``command`` attached to the current console."""
        repo_dir = self._repo_dir(repo)
        log_info(repo_message(repo.name, f"Running '{command}'"))

        try:
            process = start_process(shell_command(command), cwd=str(repo_dir))
        except OSError as exc:
            raise FleetError(f"Failed to start command '{command}': {exc}") from exc

        exit_code = _normalize_exit_code(process.wait())
        if exit_code != 0:
            raise CommandFailedError(exit_code)
