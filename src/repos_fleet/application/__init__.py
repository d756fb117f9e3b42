"""Application services orchestrating domain and core capabilities."""

from .orchestration import (
    clone_repositories,
    create_pull_requests,
    init_config,
    list_repositories,
    remove_repositories,
    resolve_run_target,
    run_in_repositories,
)
from .pr_workflow import create_pr_from_workspace, generate_branch_name

__all__ = [
    "clone_repositories",
    "create_pr_from_workspace",
    "create_pull_requests",
    "generate_branch_name",
    "init_config",
    "list_repositories",
    "remove_repositories",
    "resolve_run_target",
    "run_in_repositories",
]
