"""Fleet config (repos.yaml) read/write.

The loaded ``FleetConfig`` is built once per invocation and passed to every
command; nothing here is cached at module level.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from ..domain.filters import select
from ..domain.models import Recipe, RepositoryRecord, SelectionCriteria
from ..domain.validators import (
    format_validation_errors,
    validate_recipes,
    validate_repositories,
    validate_repository,
)
from ..errors import ConfigError
from ..infra.logger import log_info


@dataclass
class FleetConfig:
    repositories: List[RepositoryRecord] = field(default_factory=list)
    recipes: List[Recipe] = field(default_factory=list)

    def get_repository(self, name: str) -> Optional[RepositoryRecord]:
        for repo in self.repositories:
            if repo.name == name:
                return repo
        return None

    def add_repository(self, repo: RepositoryRecord) -> None:
        if self.get_repository(repo.name) is not None:
            raise ConfigError(f"Repository '{repo.name}' already exists")
        errors = validate_repository(repo)
        if errors:
            raise ConfigError(format_validation_errors(errors), errors)
        self.repositories.append(repo)

    def remove_repository(self, name: str) -> bool:
        before = len(self.repositories)
        self.repositories = [repo for repo in self.repositories if repo.name != name]
        return len(self.repositories) != before

    def find_recipe(self, name: str) -> Optional[Recipe]:
        for recipe in self.recipes:
            if recipe.name == name:
                return recipe
        return None

    def all_tags(self) -> List[str]:
        return sorted({tag for repo in self.repositories for tag in repo.tags})

    def filter_repositories(self, criteria: SelectionCriteria) -> List[RepositoryRecord]:
        return select(self.repositories, criteria)

    def validate(self) -> None:
        errors = validate_repositories(self.repositories) + validate_recipes(self.recipes)
        if errors:
            raise ConfigError(format_validation_errors(errors), errors)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"repositories": [repo.to_dict() for repo in self.repositories]}
        if self.recipes:
            data["recipes"] = [recipe.to_dict() for recipe in self.recipes]
        return data


def _require_list(entry: Any, key: str, kind: str) -> None:
    # a scalar here would otherwise be split into characters
    if isinstance(entry, dict) and entry.get(key) is not None and not isinstance(entry[key], list):
        raise ConfigError(f"{kind} '{entry.get('name', '')}': '{key}' must be a list")


def parse_config(data: Any) -> FleetConfig:
    """Build a config from already-parsed YAML data."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("Config must be a mapping with a 'repositories' list")

    raw_repos = data.get("repositories") or []
    raw_recipes = data.get("recipes") or []
    if not isinstance(raw_repos, list) or not isinstance(raw_recipes, list):
        raise ConfigError("'repositories' and 'recipes' must be lists")

    for entry in raw_repos:
        _require_list(entry, "tags", "Repository")
    for entry in raw_recipes:
        _require_list(entry, "steps", "Recipe")

    try:
        repositories = [RepositoryRecord.from_dict(entry) for entry in raw_repos]
        recipes = [Recipe.from_dict(entry) for entry in raw_recipes]
    except AttributeError as exc:
        raise ConfigError(f"Malformed config entry: {exc}") from exc

    return FleetConfig(repositories=repositories, recipes=recipes)


def load_config(path: Union[str, Path]) -> FleetConfig:
    """Load, attach the config directory and validate."""
    config_path = Path(path)
    if not config_path.is_file():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to read config file {config_path}: {exc}") from exc

    config = parse_config(data)
    config_dir = config_path.resolve().parent
    for repo in config.repositories:
        repo.set_config_dir(config_dir)

    config.validate()
    return config


def save_config(config: FleetConfig, path: Union[str, Path]) -> None:
    config_path = Path(path)
    text = yaml.safe_dump(
        config.to_dict(),
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
        indent=2,
    )
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text("---\n" + text, encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to write config file {config_path}: {exc}") from exc
    log_info(f"Config written: {config_path}")
