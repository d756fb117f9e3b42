"""Turn uncommitted changes in one checkout into a pull request."""

import uuid
from typing import Callable, Optional

from ..constants import BRANCH_SUFFIX_LENGTH, DEFAULT_BRANCH_PREFIX, DEFAULT_COMMIT_MSG
from ..core import git
from ..domain.models import (
    PR_COMMITTED,
    PR_CREATED,
    PR_NO_CHANGES,
    PrResult,
    PrWorkflowOptions,
    RepositoryRecord,
)
from ..errors import FleetError
from ..infra.github_api import GitHubClient, parse_github_url
from ..infra.logger import log_info, log_success, repo_message

ClientFactory = Callable[[Optional[str]], GitHubClient]


def generate_branch_name() -> str:
    return f"{DEFAULT_BRANCH_PREFIX}-{uuid.uuid4().hex[:BRANCH_SUFFIX_LENGTH]}"


def create_pr_from_workspace(
    repo: RepositoryRecord,
    options: PrWorkflowOptions,
    client_factory: ClientFactory = GitHubClient,
) -> PrResult:
    """Commit, push and open a pull request for ``repo``'s working tree.

    Steps, each fatal on failure:
      1. nothing to commit -> ``no_changes``, repository untouched
      2. create and check out the branch (given or generated)
      3. stage everything and commit
      4. ``create_only`` stops here -> ``committed``
      5. push with upstream tracking
      6. open the pull request against the base (given, or the default
         branch as it was before the new branch was checked out)

    Generated branch names are not checked for collisions.
    """
    repo_path = repo.target_dir()

    if not git.has_changes(repo_path):
        log_info(repo_message(repo.name, "No changes detected"))
        return PrResult(repository=repo.name, status=PR_NO_CHANGES)

    # resolved before switching branches: the fallback reads the current branch
    base_branch = options.base_branch or git.get_default_branch(repo_path)
    branch_name = options.branch_name or generate_branch_name()
    git.create_and_checkout_branch(repo_path, branch_name)
    git.add_all_changes(repo_path)
    git.commit_changes(repo_path, options.commit_msg or options.title or DEFAULT_COMMIT_MSG)
    log_info(repo_message(repo.name, f"Committed changes on branch '{branch_name}'"))

    if options.create_only:
        return PrResult(repository=repo.name, status=PR_COMMITTED, branch=branch_name)

    git.push_branch(repo_path, branch_name)

    owner, repo_name = parse_github_url(repo.url)
    client = client_factory(options.token)
    response = client.create_pull_request(
        owner,
        repo_name,
        options.title,
        options.body,
        branch_name,
        base_branch,
        draft=options.draft,
    )

    pr_url = (response or {}).get("html_url")
    if not pr_url:
        raise FleetError("Pull request created but the response has no html_url")

    log_success(repo_message(repo.name, f"Pull request created: {pr_url}"))
    return PrResult(repository=repo.name, status=PR_CREATED, branch=branch_name, pr_url=pr_url)
