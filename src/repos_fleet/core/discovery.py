"""Discover local git checkouts and turn them into repository records."""

import os
from pathlib import Path
from typing import List, Optional, Union

from ..domain.models import RepositoryRecord
from ..infra.logger import log_warning
from .git import get_remote_url

DEFAULT_MAX_DEPTH = 3

# marker file -> tag
LANGUAGE_MARKERS = {
    "Cargo.toml": "rust",
    "package.json": "javascript",
    "tsconfig.json": "typescript",
    "pyproject.toml": "python",
    "setup.py": "python",
    "requirements.txt": "python",
    "go.mod": "go",
    "pom.xml": "java",
    "build.gradle": "java",
    "Gemfile": "ruby",
}

NAME_HINTS = ("frontend", "backend", "api", "service", "lib")


def detect_tags_from_path(path: Path) -> List[str]:
    tags: List[str] = []
    for marker, tag in LANGUAGE_MARKERS.items():
        if (path / marker).exists() and tag not in tags:
            tags.append(tag)

    name = path.name.lower()
    for hint in NAME_HINTS:
        if hint in name and hint not in tags:
            tags.append(hint)
    return tags


def create_repository_from_path(path: Path) -> Optional[RepositoryRecord]:
    """Record for one checkout, or None if it has no origin remote."""
    url = get_remote_url(path)
    if not url:
        log_warning(f"Skipping {path}: no origin remote")
        return None
    return RepositoryRecord(
        name=path.name,
        url=url,
        tags=detect_tags_from_path(path),
        path=str(path),
    )


def find_git_repositories(
    root: Union[str, Path], max_depth: int = DEFAULT_MAX_DEPTH
) -> List[RepositoryRecord]:
    """Walk ``root`` (depth 1..max_depth) collecting directories holding ``.git``."""
    root = Path(root).resolve()
    repositories: List[RepositoryRecord] = []
    root_depth = len(root.parts)

    for current, dirnames, _ in os.walk(root):
        current_path = Path(current)
        depth = len(current_path.parts) - root_depth
        dirnames.sort()

        if depth >= 1 and (current_path / ".git").exists():
            repo = create_repository_from_path(current_path)
            if repo is not None:
                repositories.append(repo)
            # nested checkouts (submodules, vendored repos) are not separate fleet members
            dirnames[:] = []
            continue

        if depth >= max_depth:
            dirnames[:] = []
        else:
            dirnames[:] = [name for name in dirnames if not name.startswith(".")]

    return repositories
