"""Recipe materialization: turn a recipe's steps into an executable script.

Scripts are written into the checkout itself so relative paths in the steps
resolve the same way they would for someone running them by hand.
"""

import os
import stat
from pathlib import Path

from ..constants import SCRIPT_SHEBANG, SCRIPT_SUFFIX
from ..domain.models import Recipe, RepositoryRecord
from ..domain.sanitizers import sanitize_script_name
from ..errors import RepositoryNotFoundError
from ..infra.logger import log_warning, repo_message
from .process_control import IS_WINDOWS

SCRIPT_MODE = stat.S_IRWXU | stat.S_IRGRP | stat.S_IXGRP  # 0o750


def render_script(recipe: Recipe) -> str:
    """Join the steps; a leading ``#!`` step replaces the default shebang."""
    content = "\n".join(recipe.steps)
    if content.startswith("#!"):
        return content
    return f"{SCRIPT_SHEBANG}\n{content}"


def script_path_for(repo: RepositoryRecord, recipe: Recipe) -> Path:
    return repo.target_dir() / f"{sanitize_script_name(recipe.name)}{SCRIPT_SUFFIX}"


def materialize_script(repo: RepositoryRecord, recipe: Recipe) -> Path:
    """Write the recipe script into an existing checkout and return its path."""
    repo_dir = repo.target_dir()
    if not repo_dir.is_dir():
        raise RepositoryNotFoundError(f"Repository directory does not exist: {repo_dir}")
    script_path = script_path_for(repo, recipe)
    script_path.write_text(render_script(recipe), encoding="utf-8")
    if not IS_WINDOWS:
        os.chmod(script_path, SCRIPT_MODE)
    return script_path


def script_invocation(repo: RepositoryRecord, script_path: Path) -> str:
    """Command line that runs ``script_path`` from the checkout directory."""
    try:
        relative = script_path.relative_to(repo.target_dir()).as_posix()
    except ValueError:
        return str(script_path)
    if "/" in relative:
        return relative
    return f"./{relative}"


def cleanup_script(repo: RepositoryRecord, script_path: Path) -> None:
    """Remove a materialized script; failures only produce a warning."""
    try:
        script_path.unlink()
    except OSError as exc:
        log_warning(repo_message(repo.name, f"Could not remove recipe script {script_path}: {exc}"))
