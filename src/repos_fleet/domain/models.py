"""Domain data structures."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from ..constants import NO_EXIT_CODE
from .exit_codes import describe_exit_code


@dataclass
class RepositoryRecord:
    """One repository of the fleet as declared in the config file."""

    name: str
    url: str
    tags: List[str] = field(default_factory=list)
    path: Optional[str] = None
    branch: Optional[str] = None
    config_dir: Optional[Path] = None

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def has_any_tag(self, tags: Iterable[str]) -> bool:
        return any(self.has_tag(tag) for tag in tags)

    def has_all_tags(self, tags: Iterable[str]) -> bool:
        return all(self.has_tag(tag) for tag in tags)

    def set_config_dir(self, config_dir: Optional[Path]) -> None:
        """Attach the directory relative paths resolve against; allowed once."""
        if self.config_dir is not None:
            raise ValueError(f"config_dir already set for repository '{self.name}'")
        self.config_dir = Path(config_dir) if config_dir is not None else None

    def target_dir(self) -> Path:
        """Local checkout directory.

        An explicit ``path`` is the checkout itself (relative paths resolve
        against ``config_dir``); otherwise the checkout is ``<base>/<name>``.
        """
        base = self.config_dir if self.config_dir is not None else Path.cwd()
        if self.path:
            path = Path(self.path).expanduser()
            return path if path.is_absolute() else base / path
        return base / self.name

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "url": self.url}
        if self.tags:
            data["tags"] = list(self.tags)
        if self.path:
            data["path"] = self.path
        if self.branch:
            data["branch"] = self.branch
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RepositoryRecord":
        return cls(
            name=str(data.get("name") or ""),
            url=str(data.get("url") or ""),
            tags=[str(tag) for tag in (data.get("tags") or [])],
            path=str(data["path"]) if data.get("path") else None,
            branch=str(data["branch"]) if data.get("branch") else None,
        )


@dataclass(frozen=True)
class Recipe:
    """A named, ordered list of shell steps run as one script."""

    name: str
    steps: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "steps": list(self.steps)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Recipe":
        return cls(
            name=str(data.get("name") or ""),
            steps=tuple(str(step) for step in (data.get("steps") or [])),
        )


@dataclass(frozen=True)
class SelectionCriteria:
    include_tags: Tuple[str, ...] = ()
    exclude_tags: Tuple[str, ...] = ()
    names: Optional[Tuple[str, ...]] = None
    # OR semantics for include_tags instead of the default AND
    match_any: bool = False

    def describe(self) -> str:
        """Human-readable filter description for "no match" messages."""
        parts = []
        if self.include_tags:
            joiner = " or " if self.match_any else " and "
            parts.append("tags " + joiner.join(repr(tag) for tag in self.include_tags))
        if self.exclude_tags:
            parts.append("excluding tags " + ", ".join(repr(tag) for tag in self.exclude_tags))
        if self.names is not None:
            parts.append("repositories " + ", ".join(repr(name) for name in self.names))
        if not parts:
            return "no filters"
        return " and ".join(parts)


@dataclass(frozen=True)
class RunResult:
    repository: str
    stdout: str
    stderr: str
    exit_code: int = NO_EXIT_CODE

    @property
    def exit_code_description(self) -> str:
        return describe_exit_code(self.exit_code)

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


@dataclass(frozen=True)
class CommandRun:
    """Run mode: one shell command line."""

    command: str

    @property
    def label(self) -> str:
        return self.command


@dataclass(frozen=True)
class RecipeRun:
    """Run mode: a recipe materialized into a script."""

    recipe: Recipe

    @property
    def label(self) -> str:
        return self.recipe.name


RunTarget = Union[CommandRun, RecipeRun]


@dataclass
class PrWorkflowOptions:
    title: str
    body: str
    branch_name: Optional[str] = None
    base_branch: Optional[str] = None
    commit_msg: Optional[str] = None
    draft: bool = False
    create_only: bool = False
    token: Optional[str] = None


PR_NO_CHANGES = "no_changes"
PR_COMMITTED = "committed"
PR_CREATED = "created"


@dataclass(frozen=True)
class PrResult:
    repository: str
    status: str
    branch: Optional[str] = None
    pr_url: Optional[str] = None


@dataclass
class OperationSummary:
    """Outcome of one orchestration command over the selected repositories."""

    operation: str
    total: int = 0
    succeeded: int = 0
    failures: List[Tuple[str, BaseException]] = field(default_factory=list)
    results: Dict[str, Any] = field(default_factory=dict)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def message(self) -> str:
        return f"{self.succeeded} succeeded / {self.failed} failed"
