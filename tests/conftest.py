from pathlib import Path
import shutil
import subprocess
import sys

import pytest


ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


def git(cwd, *args):
    return subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        check=True,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
    ).stdout


@pytest.fixture
def git_checkout(tmp_path):
    """A checkout with one commit on ``main`` and an ``origin`` remote."""
    origin = tmp_path / "origin.git"
    git(tmp_path, "init", "--bare", "-b", "main", str(origin))

    checkout = tmp_path / "work" / "sample"
    checkout.mkdir(parents=True)
    git(checkout, "init", "-b", "main")
    git(checkout, "config", "user.name", "Fleet Tester")
    git(checkout, "config", "user.email", "tester@example.com")
    git(checkout, "config", "commit.gpgsign", "false")
    (checkout / "README.md").write_text("sample\n", encoding="utf-8")
    git(checkout, "add", ".")
    git(checkout, "commit", "-m", "initial")
    git(checkout, "remote", "add", "origin", str(origin))
    git(checkout, "push", "-u", "origin", "main")
    return checkout


@pytest.fixture(autouse=True)
def _no_stored_token(monkeypatch, tmp_path_factory):
    """Keep tests away from the real keyring and user config directory."""
    config_home = tmp_path_factory.mktemp("config-home")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    monkeypatch.setenv("APPDATA", str(config_home))
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.setattr("keyring.get_password", lambda service, account: None)
