import re

import pytest

from conftest import git, requires_git
from repos_fleet.application import pr_workflow
from repos_fleet.application.pr_workflow import create_pr_from_workspace, generate_branch_name
from repos_fleet.domain.models import (
    PR_COMMITTED,
    PR_CREATED,
    PR_NO_CHANGES,
    PrWorkflowOptions,
    RepositoryRecord,
)
from repos_fleet.errors import FleetError


def _record(checkout):
    repo = RepositoryRecord(name="sample", url="git@github.com:acme/sample.git")
    repo.set_config_dir(checkout.parent)
    return repo


def _no_client(token):
    raise AssertionError("the GitHub client must not be created")


class RecordingClient:
    calls = []

    def __init__(self, token):
        self.token = token

    def create_pull_request(self, owner, repo, title, body, head, base, draft=False):
        RecordingClient.calls.append((self.token, owner, repo, title, body, head, base, draft))
        return {"html_url": f"https://github.com/{owner}/{repo}/pull/1"}


def test_generate_branch_name_format():
    assert re.fullmatch(r"automated-changes-[0-9a-f]{6}", generate_branch_name())


@requires_git
def test_no_changes_leaves_repository_untouched(git_checkout):
    head = git(git_checkout, "rev-parse", "HEAD")
    options = PrWorkflowOptions(title="t", body="b")

    result = create_pr_from_workspace(_record(git_checkout), options, client_factory=_no_client)

    assert result.status == PR_NO_CHANGES
    assert git(git_checkout, "rev-parse", "HEAD") == head
    assert git(git_checkout, "branch", "--show-current").strip() == "main"


@requires_git
def test_create_only_commits_on_generated_branch(git_checkout):
    (git_checkout / "change.txt").write_text("x\n", encoding="utf-8")
    before = int(git(git_checkout, "rev-list", "--count", "HEAD"))

    result = create_pr_from_workspace(
        _record(git_checkout),
        PrWorkflowOptions(title="Bump", body="b", create_only=True),
        client_factory=_no_client,
    )

    assert result.status == PR_COMMITTED
    assert re.fullmatch(r"automated-changes-[0-9a-f]{6}", result.branch)
    assert git(git_checkout, "branch", "--show-current").strip() == result.branch
    assert int(git(git_checkout, "rev-list", "--count", "HEAD")) == before + 1
    # commit message defaults to the title
    assert git(git_checkout, "log", "-1", "--format=%s").strip() == "Bump"
    # nothing was pushed
    assert git(git_checkout, "ls-remote", "--heads", "origin", result.branch).strip() == ""


@requires_git
def test_full_workflow_pushes_and_opens_pull_request(git_checkout):
    RecordingClient.calls = []
    (git_checkout / "change.txt").write_text("x\n", encoding="utf-8")
    options = PrWorkflowOptions(
        title="Bump",
        body="Automated",
        branch_name="bump-deps",
        commit_msg="chore: bump",
        draft=True,
        token="secret",
    )

    result = create_pr_from_workspace(_record(git_checkout), options, client_factory=RecordingClient)

    assert result.status == PR_CREATED
    assert result.pr_url == "https://github.com/acme/sample/pull/1"
    assert git(git_checkout, "ls-remote", "--heads", "origin", "bump-deps").strip() != ""
    assert git(git_checkout, "log", "-1", "--format=%s").strip() == "chore: bump"
    assert RecordingClient.calls == [
        ("secret", "acme", "sample", "Bump", "Automated", "bump-deps", "main", True)
    ]


@requires_git
def test_missing_html_url_is_an_error(git_checkout):
    class EmptyClient:
        def __init__(self, token):
            pass

        def create_pull_request(self, *args, **kwargs):
            return {}

    (git_checkout / "change.txt").write_text("x\n", encoding="utf-8")
    options = PrWorkflowOptions(title="t", body="b", base_branch="main", token="secret")

    with pytest.raises(FleetError, match="html_url"):
        create_pr_from_workspace(_record(git_checkout), options, client_factory=EmptyClient)


def test_push_failure_stops_before_api(monkeypatch, tmp_path):
    from repos_fleet.errors import GitCommandError

    monkeypatch.setattr(pr_workflow.git, "has_changes", lambda path: True)
    monkeypatch.setattr(pr_workflow.git, "create_and_checkout_branch", lambda path, name: None)
    monkeypatch.setattr(pr_workflow.git, "add_all_changes", lambda path: None)
    monkeypatch.setattr(pr_workflow.git, "commit_changes", lambda path, msg: None)

    def failing_push(path, branch):
        raise GitCommandError("Failed to push branch", "remote rejected")

    monkeypatch.setattr(pr_workflow.git, "push_branch", failing_push)

    repo = RepositoryRecord(name="sample", url="git@github.com:acme/sample.git")
    repo.set_config_dir(tmp_path)
    with pytest.raises(GitCommandError, match="remote rejected"):
        create_pr_from_workspace(repo, PrWorkflowOptions(title="t", body="b"), client_factory=_no_client)
