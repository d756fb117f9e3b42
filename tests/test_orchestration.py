import json
import threading

import pytest

from repos_fleet.application import orchestration
from repos_fleet.application.orchestration import (
    clone_repositories,
    create_pull_requests,
    init_config,
    list_repositories,
    remove_repositories,
    resolve_run_target,
    run_in_repositories,
)
from repos_fleet.core.repo_config import FleetConfig, load_config
from repos_fleet.domain.models import (
    CommandRun,
    PrResult,
    PrWorkflowOptions,
    Recipe,
    RecipeRun,
    RepositoryRecord,
    SelectionCriteria,
)
from repos_fleet.errors import (
    AllRepositoriesFailedError,
    ConfigError,
    FleetError,
    RecipeNotFoundError,
    RepositoryNotFoundError,
)


def _config(tmp_path, names=("alpha", "beta", "gamma"), create_dirs=True):
    repositories = []
    for name in names:
        repo = RepositoryRecord(name=name, url=f"git@github.com:acme/{name}.git", tags=["svc"])
        repo.set_config_dir(tmp_path)
        if create_dirs:
            (tmp_path / name).mkdir(parents=True)
        repositories.append(repo)
    recipes = [Recipe(name="hello", steps=("echo hello from $(basename $(pwd))",))]
    return FleetConfig(repositories=repositories, recipes=recipes)


@pytest.mark.parametrize("parallel", [False, True])
def test_partial_failure_summary(monkeypatch, tmp_path, parallel):
    def fake_clone(repo):
        if repo.name == "beta":
            raise FleetError("Failed to clone repository: boom")

    monkeypatch.setattr("repos_fleet.core.git.clone_repository", fake_clone)

    summary = clone_repositories(_config(tmp_path), SelectionCriteria(), parallel=parallel)

    assert summary.message == "2 succeeded / 1 failed"
    assert [name for name, _ in summary.failures] == ["beta"]


@pytest.mark.parametrize("parallel", [False, True])
def test_all_failed_raises_with_first_error(monkeypatch, tmp_path, parallel):
    def fake_clone(repo):
        raise FleetError(f"cannot clone {repo.name}")

    monkeypatch.setattr("repos_fleet.core.git.clone_repository", fake_clone)

    with pytest.raises(AllRepositoriesFailedError) as excinfo:
        clone_repositories(_config(tmp_path, names=("solo",)), SelectionCriteria(), parallel=parallel)

    assert "cannot clone solo" in str(excinfo.value)
    assert len(excinfo.value.failures) == 1


def test_sequential_mode_preserves_order(monkeypatch, tmp_path):
    seen = []
    monkeypatch.setattr("repos_fleet.core.git.clone_repository", lambda repo: seen.append(repo.name))

    clone_repositories(_config(tmp_path), SelectionCriteria())

    assert seen == ["alpha", "beta", "gamma"]


def test_parallel_mode_uses_one_worker_per_repository(monkeypatch, tmp_path):
    names = tuple(f"repo{i}" for i in range(6))
    barrier = threading.Barrier(len(names), timeout=10)

    # every worker must be running at the same time for the barrier to open
    monkeypatch.setattr("repos_fleet.core.git.clone_repository", lambda repo: barrier.wait())

    summary = clone_repositories(_config(tmp_path, names=names), SelectionCriteria(), parallel=True)

    assert summary.succeeded == len(names)


def test_empty_selection_warns_and_succeeds(monkeypatch, tmp_path, capsys):
    monkeypatch.setattr(
        "repos_fleet.core.git.clone_repository",
        lambda repo: pytest.fail("nothing should be cloned"),
    )

    summary = clone_repositories(_config(tmp_path), SelectionCriteria(include_tags=("missing",)))

    assert summary.total == 0
    assert summary.failed == 0
    assert "No repositories matched tags 'missing'" in capsys.readouterr().out


def test_remove_only_selected(tmp_path):
    config = _config(tmp_path)
    summary = remove_repositories(config, SelectionCriteria(names=("beta",)))

    assert summary.succeeded == 1
    assert (tmp_path / "alpha").exists()
    assert not (tmp_path / "beta").exists()


def test_run_command_saves_logs_per_repository(tmp_path):
    config = _config(tmp_path / "fleet")
    output_dir = tmp_path / "output"

    summary = run_in_repositories(
        config,
        SelectionCriteria(names=("alpha", "gamma")),
        CommandRun("echo hi"),
        output_dir=output_dir,
    )

    assert summary.message == "2 succeeded / 0 failed"
    run_roots = list((output_dir / "runs").iterdir())
    assert len(run_roots) == 1
    assert run_roots[0].name.endswith("_echo_hi")
    assert sorted(p.name for p in run_roots[0].iterdir()) == ["alpha", "gamma"]
    assert (run_roots[0] / "alpha" / "stdout.log").read_text(encoding="utf-8") == "hi\n"


def test_run_non_zero_exit_counts_as_failure(tmp_path):
    config = _config(tmp_path / "fleet")
    command = 'test "$(basename "$(pwd)")" != beta'

    summary = run_in_repositories(
        config, SelectionCriteria(), CommandRun(command), parallel=True, output_dir=tmp_path / "out"
    )

    assert summary.message == "2 succeeded / 1 failed"
    assert summary.failures[0][0] == "beta"
    assert "exit code: 1" in str(summary.failures[0][1])


def test_run_all_failing_raises(tmp_path):
    with pytest.raises(AllRepositoriesFailedError, match="exit code: 3"):
        run_in_repositories(
            _config(tmp_path / "fleet"), SelectionCriteria(), CommandRun("exit 3"), no_save=True
        )


def test_run_recipe_cleans_up_scripts(tmp_path):
    fleet = tmp_path / "fleet"
    config = _config(fleet)
    target = resolve_run_target(config, recipe_name="hello")
    assert isinstance(target, RecipeRun)

    run_in_repositories(config, SelectionCriteria(), target, output_dir=tmp_path / "out")

    run_root = next((tmp_path / "out" / "runs").iterdir())
    assert (run_root / "beta" / "stdout.log").read_text(encoding="utf-8") == "hello from beta\n"
    metadata = json.loads((run_root / "beta" / "metadata.json").read_text(encoding="utf-8"))
    assert metadata["recipe"] == "hello"
    assert not list(fleet.glob("*/*.script"))


def test_run_without_save_in_parallel_echoes_output(tmp_path, capsys):
    summary = run_in_repositories(
        _config(tmp_path / "fleet"),
        SelectionCriteria(names=("alpha",)),
        CommandRun("echo streamed"),
        parallel=True,
        no_save=True,
        output_dir=tmp_path / "out",
    )

    assert summary.succeeded == 1
    assert "streamed" in capsys.readouterr().out
    assert not (tmp_path / "out").exists()


def test_unknown_recipe_is_rejected(tmp_path):
    with pytest.raises(RecipeNotFoundError, match="Recipe 'nope' not found"):
        resolve_run_target(_config(tmp_path), recipe_name="nope")


def test_create_pull_requests_collects_results(monkeypatch, tmp_path):
    options = PrWorkflowOptions(title="t", body="b", create_only=True)
    calls = []

    def fake_pr(repo, opts):
        calls.append((repo.name, opts))
        return PrResult(repository=repo.name, status="committed", branch="b")

    summary = create_pull_requests(
        _config(tmp_path), SelectionCriteria(names=("gamma",)), options, pr_function=fake_pr
    )

    assert calls == [("gamma", options)]
    assert summary.results["gamma"].status == "committed"


def test_list_repositories_json(tmp_path, capsys):
    list_repositories(_config(tmp_path), SelectionCriteria(names=("alpha",)), as_json=True)
    data = json.loads(capsys.readouterr().out)
    assert data == [{"name": "alpha", "url": "git@github.com:acme/alpha.git", "tags": ["svc"]}]


def test_init_config_writes_discovered_repositories(monkeypatch, tmp_path):
    discovered = [
        RepositoryRecord(name="api", url="git@github.com:acme/api.git", tags=["python"], path="/src/api"),
        RepositoryRecord(name="api", url="git@github.com:other/api.git", path="/other/api"),
    ]
    monkeypatch.setattr(orchestration, "find_git_repositories", lambda root: list(discovered))
    output = tmp_path / "repos.yaml"

    config = init_config(tmp_path, output)

    assert [repo.name for repo in config.repositories] == ["api"]
    loaded = load_config(output)
    assert loaded.repositories[0].url == "git@github.com:acme/api.git"

    with pytest.raises(FleetError, match="already exists"):
        init_config(tmp_path, output)


def test_recipe_on_missing_checkout_fails_and_leaves_no_directory(tmp_path):
    fleet = tmp_path / "fleet"
    config = _config(fleet, names=("present",))
    absent = RepositoryRecord(name="absent", url="git@github.com:acme/absent.git")
    absent.set_config_dir(fleet)
    config.repositories.append(absent)

    summary = run_in_repositories(
        config, SelectionCriteria(), RecipeRun(config.find_recipe("hello")), output_dir=tmp_path / "out"
    )

    assert summary.message == "1 succeeded / 1 failed"
    assert summary.failures[0][0] == "absent"
    assert isinstance(summary.failures[0][1], RepositoryNotFoundError)
    assert not (fleet / "absent").exists()


def test_all_failed_message_names_first_repository(monkeypatch, tmp_path):
    def fake_clone(repo):
        raise FleetError(f"cannot clone {repo.name}")

    monkeypatch.setattr("repos_fleet.core.git.clone_repository", fake_clone)

    with pytest.raises(AllRepositoriesFailedError) as excinfo:
        clone_repositories(_config(tmp_path), SelectionCriteria())

    assert "First error (alpha): cannot clone alpha" in str(excinfo.value)
    assert [name for name, _ in excinfo.value.failures] == ["alpha", "beta", "gamma"]


def test_unsupported_run_target_is_rejected(tmp_path):
    with pytest.raises(TypeError, match="Unsupported run target"):
        run_in_repositories(_config(tmp_path), SelectionCriteria(), "echo hi", no_save=True)


def test_init_config_write_failure_is_a_config_error(monkeypatch, tmp_path):
    monkeypatch.setattr(orchestration, "find_git_repositories", lambda root: [])
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")

    with pytest.raises(ConfigError, match="Failed to write config file"):
        init_config(tmp_path, blocker / "repos.yaml")
