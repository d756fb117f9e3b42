# Git primitives: single-checkout operations built on the installed git binary
#
# Main functions:
#   - clone_repository() / remove_repository(): checkout lifecycle
#   - has_changes(): working tree dirty check (git status --porcelain)
#   - create_and_checkout_branch() / add_all_changes() / commit_changes() /
#     push_branch(): the steps of the pull request workflow
#   - get_default_branch(): origin HEAD -> current branch -> "main"
#   - get_remote_url(): origin URL for repository discovery
#
# All functions block until git exits. Failures raise GitCommandError with
# git's stderr appended to the message; nothing is retried.

import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

from ..constants import FALLBACK_BRANCH
from ..domain.models import RepositoryRecord
from ..errors import GitCommandError, RepositoryNotFoundError
from ..infra.logger import log_info, log_success, log_warning, repo_message
from .process_control import PathLike, run_captured

ORIGIN_HEAD_REF = "refs/remotes/origin/HEAD"
ORIGIN_PREFIX = "refs/remotes/origin/"


def _git(args: List[str], cwd: Optional[PathLike] = None) -> subprocess.CompletedProcess:
    command = ["git"] + args
    try:
        return run_captured(command, cwd=cwd)
    except OSError as exc:
        raise GitCommandError(f"Failed to execute git {args[0]} command", str(exc)) from exc


def _git_checked(args: List[str], cwd: PathLike, failure: str) -> str:
    result = _git(args, cwd=cwd)
    if result.returncode != 0:
        raise GitCommandError(failure, result.stderr)
    return result.stdout


def clone_repository(repo: RepositoryRecord) -> None:
    """Clone ``repo`` into its target directory.

    An existing target directory counts as already cloned; its content is
    not inspected.
    """
    target_dir = repo.target_dir()
    if target_dir.exists():
        log_warning(repo_message(repo.name, "Repository directory already exists, skipping"))
        return

    args = ["clone"]
    if repo.branch:
        args.extend(["-b", repo.branch])
        log_info(repo_message(repo.name, f"Cloning branch '{repo.branch}' from {repo.url}"))
    else:
        log_info(repo_message(repo.name, f"Cloning default branch from {repo.url}"))
    args.extend([repo.url, str(target_dir)])

    result = _git(args)
    if result.returncode != 0:
        raise GitCommandError("Failed to clone repository", result.stderr)

    log_success(repo_message(repo.name, "Successfully cloned"))


def remove_repository(repo: RepositoryRecord) -> None:
    """Delete the checkout; a missing directory is an error."""
    target_dir = repo.target_dir()
    if not target_dir.exists():
        raise RepositoryNotFoundError(f"Repository directory does not exist: {target_dir}")
    shutil.rmtree(target_dir)
    log_success(repo_message(repo.name, "Removed"))


def has_changes(repo_path: PathLike) -> bool:
    """True when ``git status --porcelain`` reports anything."""
    output = _git_checked(
        ["status", "--porcelain"], repo_path, "Failed to check repository status"
    )
    return bool(output.strip())


def create_and_checkout_branch(repo_path: PathLike, branch_name: str) -> None:
    _git_checked(
        ["checkout", "-b", branch_name],
        repo_path,
        f"Failed to create and checkout branch '{branch_name}'",
    )


def add_all_changes(repo_path: PathLike) -> None:
    _git_checked(["add", "."], repo_path, "Failed to add changes")


def commit_changes(repo_path: PathLike, message: str) -> None:
    _git_checked(["commit", "-m", message], repo_path, "Failed to commit changes")


def push_branch(repo_path: PathLike, branch_name: str) -> None:
    """Push to origin and set upstream tracking."""
    _git_checked(
        ["push", "--set-upstream", "origin", branch_name],
        repo_path,
        "Failed to push branch",
    )


def get_default_branch(repo_path: PathLike) -> str:
    """Resolve the default branch, falling back to ``main``."""
    try:
        result = _git(["symbolic-ref", ORIGIN_HEAD_REF], cwd=repo_path)
        if result.returncode == 0:
            ref = result.stdout.strip()
            if ref.startswith(ORIGIN_PREFIX):
                return ref[len(ORIGIN_PREFIX):]

        result = _git(["branch", "--show-current"], cwd=repo_path)
        if result.returncode == 0 and result.stdout.strip():
            return result.stdout.strip()
    except GitCommandError:
        pass

    return FALLBACK_BRANCH


def get_remote_url(repo_path: PathLike) -> Optional[str]:
    """Origin URL, or None when the repository has no origin remote."""
    try:
        result = _git(["remote", "get-url", "origin"], cwd=Path(repo_path))
    except GitCommandError:
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None
