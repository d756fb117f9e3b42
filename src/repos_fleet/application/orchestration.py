"""Fleet-level commands: select repositories, apply one operation to each.

Every command follows the same shape:
  - an empty selection logs a warning and returns an empty summary
  - sequential mode handles repositories in config order, one at a time
  - parallel mode gives each selected repository its own worker thread
  - per-repository errors are collected; only when nothing succeeded is
    AllRepositoriesFailedError raised
"""

import json
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from ..constants import DEFAULT_OUTPUT_DIR, RUNS_DIR_NAME
from ..core import git
from ..core.discovery import find_git_repositories
from ..core.recipes import cleanup_script, materialize_script, script_invocation
from ..core.repo_config import FleetConfig, save_config
from ..core.runner import CommandRunner
from ..domain.models import (
    CommandRun,
    OperationSummary,
    PrWorkflowOptions,
    RecipeRun,
    RepositoryRecord,
    RunResult,
    RunTarget,
    SelectionCriteria,
)
from ..domain.sanitizers import sanitize_for_filename
from ..errors import (
    AllRepositoriesFailedError,
    CommandFailedError,
    ConfigError,
    RecipeNotFoundError,
)
from ..infra.logger import log_error, log_info, log_success, log_warning, repo_message
from .pr_workflow import create_pr_from_workspace

RepoOperation = Callable[[RepositoryRecord], Any]


def _select_or_warn(config: FleetConfig, criteria: SelectionCriteria) -> List[RepositoryRecord]:
    repositories = config.filter_repositories(criteria)
    if not repositories:
        log_warning(f"No repositories matched {criteria.describe()}")
    return repositories


def _record_failure(summary: OperationSummary, repo: RepositoryRecord, exc: Exception) -> None:
    summary.failures.append((repo.name, exc))
    log_error(repo_message(repo.name, str(exc)))


def execute_for_each(
    operation_name: str,
    repositories: Sequence[RepositoryRecord],
    operation: RepoOperation,
    parallel: bool = False,
) -> OperationSummary:
    """Apply ``operation`` to every repository and aggregate the outcome."""
    summary = OperationSummary(operation=operation_name, total=len(repositories))
    if not repositories:
        return summary

    if parallel:
        with ThreadPoolExecutor(max_workers=len(repositories)) as executor:
            future_to_repo = {executor.submit(operation, repo): repo for repo in repositories}
            for future in as_completed(future_to_repo):
                repo = future_to_repo[future]
                try:
                    summary.results[repo.name] = future.result()
                    summary.succeeded += 1
                except Exception as exc:
                    _record_failure(summary, repo, exc)
    else:
        for repo in repositories:
            try:
                summary.results[repo.name] = operation(repo)
                summary.succeeded += 1
            except Exception as exc:
                _record_failure(summary, repo, exc)

    if summary.succeeded == 0:
        raise AllRepositoriesFailedError(operation_name, summary.failures)

    if summary.failures:
        log_warning(f"{operation_name} finished: {summary.message}")
    else:
        log_success(f"{operation_name} finished: {summary.message}")
    return summary


# ---- clone / remove ----


def clone_repositories(
    config: FleetConfig, criteria: SelectionCriteria, parallel: bool = False
) -> OperationSummary:
    repositories = _select_or_warn(config, criteria)
    return execute_for_each("clone", repositories, git.clone_repository, parallel)


def remove_repositories(
    config: FleetConfig, criteria: SelectionCriteria, parallel: bool = False
) -> OperationSummary:
    repositories = _select_or_warn(config, criteria)
    return execute_for_each("remove", repositories, git.remove_repository, parallel)


# ---- run ----


def resolve_run_target(
    config: FleetConfig,
    command: Optional[str] = None,
    recipe_name: Optional[str] = None,
) -> RunTarget:
    """Exactly one of ``command`` and ``recipe_name``; recipes must exist."""
    if recipe_name:
        if command:
            raise ConfigError("Specify either a command or a recipe, not both")
        recipe = config.find_recipe(recipe_name)
        if recipe is None:
            raise RecipeNotFoundError(f"Recipe '{recipe_name}' not found")
        return RecipeRun(recipe)
    if not command:
        raise ConfigError("Either a command or a recipe must be specified")
    return CommandRun(command)


def create_run_root(output_dir: Union[str, Path], label: str) -> Path:
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    run_root = Path(output_dir) / RUNS_DIR_NAME / f"{timestamp}_{sanitize_for_filename(label)}"
    run_root.mkdir(parents=True, exist_ok=True)
    return run_root


def _check_exit(result: RunResult) -> RunResult:
    if not result.succeeded:
        raise CommandFailedError(result.exit_code, result.exit_code_description)
    return result


def _echo_output(repo: RepositoryRecord, result: RunResult) -> None:
    for line in result.stdout.splitlines():
        print(repo_message(repo.name, line))
    for line in result.stderr.splitlines():
        log_warning(repo_message(repo.name, line))


def _make_run_operation(
    target: RunTarget,
    runner: CommandRunner,
    run_root: Optional[Path],
    stream: bool,
) -> RepoOperation:
    """Per-repository callable for one run.

    ``stream`` runs attached to the console (sequential ``no_save``);
    otherwise output is captured, and echoed when there is no run root.
    """

    def finish(repo: RepositoryRecord, result: RunResult) -> RunResult:
        if run_root is None:
            _echo_output(repo, result)
        return _check_exit(result)

    if isinstance(target, CommandRun):
        command = target.command

        def run_command(repo: RepositoryRecord) -> Optional[RunResult]:
            if stream:
                runner.run_command(repo, command)
                return None
            return finish(repo, runner.run_command_with_capture(repo, command, run_root))

        return run_command

    if isinstance(target, RecipeRun):
        recipe = target.recipe

        def run_recipe(repo: RepositoryRecord) -> Optional[RunResult]:
            script_path = materialize_script(repo, recipe)
            try:
                invocation = script_invocation(repo, script_path)
                if stream:
                    runner.run_command(repo, invocation)
                    return None
                return finish(
                    repo, runner.run_recipe_with_capture(repo, invocation, recipe, run_root)
                )
            finally:
                cleanup_script(repo, script_path)

        return run_recipe

    raise TypeError(f"Unsupported run target: {target!r}")


def run_in_repositories(
    config: FleetConfig,
    criteria: SelectionCriteria,
    target: RunTarget,
    parallel: bool = False,
    no_save: bool = False,
    output_dir: Union[str, Path] = DEFAULT_OUTPUT_DIR,
    runner: Optional[CommandRunner] = None,
) -> OperationSummary:
    """Run a command or recipe in every selected checkout.

    Unless ``no_save``, each repository's stdout, stderr and metadata land in
    ``<output_dir>/runs/<timestamp>_<label>/<repo>/``. A non-zero exit code
    counts as a failure for that repository.
    """
    repositories = _select_or_warn(config, criteria)
    if not repositories:
        return OperationSummary(operation="run")

    runner = runner or CommandRunner()
    run_root = None if no_save else create_run_root(output_dir, target.label)
    if run_root is not None:
        log_info(f"Saving output to {run_root}")

    operation = _make_run_operation(
        target, runner, run_root, stream=no_save and not parallel
    )
    return execute_for_each("run", repositories, operation, parallel)


# ---- pull requests ----


def create_pull_requests(
    config: FleetConfig,
    criteria: SelectionCriteria,
    options: PrWorkflowOptions,
    parallel: bool = False,
    pr_function: Callable[..., Any] = create_pr_from_workspace,
) -> OperationSummary:
    repositories = _select_or_warn(config, criteria)
    return execute_for_each(
        "pull request",
        repositories,
        lambda repo: pr_function(repo, options),
        parallel,
    )


# ---- ls / init ----


def list_repositories(
    config: FleetConfig, criteria: SelectionCriteria, as_json: bool = False
) -> List[RepositoryRecord]:
    repositories = _select_or_warn(config, criteria)
    if as_json:
        print(json.dumps([repo.to_dict() for repo in repositories], ensure_ascii=False, indent=2))
        return repositories

    for repo in repositories:
        details: Dict[str, Any] = {"url": repo.url}
        if repo.tags:
            details["tags"] = ", ".join(repo.tags)
        if repo.branch:
            details["branch"] = repo.branch
        details["path"] = str(repo.target_dir())
        print(repo.name)
        for key, value in details.items():
            print(f"  {key}: {value}")
    if repositories:
        log_info(f"{len(repositories)} repositories")
    return repositories


def init_config(
    root: Union[str, Path], output: Union[str, Path], overwrite: bool = False
) -> FleetConfig:
    """Discover checkouts under ``root`` and write them as a new config."""
    output_path = Path(output)
    if output_path.exists() and not overwrite:
        raise ConfigError(f"{output_path} already exists, use --overwrite to replace it")

    config = FleetConfig()
    for repo in find_git_repositories(root):
        if config.get_repository(repo.name) is not None:
            log_warning(f"Skipping {repo.path}: duplicate repository name '{repo.name}'")
            continue
        try:
            config.add_repository(repo)
        except ConfigError as exc:
            log_warning(f"Skipping {repo.path}: {exc}")

    if not config.repositories:
        log_warning(f"No git repositories found under {root}")
    save_config(config, output_path)
    log_success(f"Found {len(config.repositories)} repositories")
    return config
