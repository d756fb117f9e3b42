"""Domain models, selection and validation logic."""

from .exit_codes import describe_exit_code
from .filters import (
    filter_by_all_tags,
    filter_by_any_tag,
    filter_by_names,
    filter_by_tag,
    select,
    select_all_tags,
    select_any_tags,
)
from .models import (
    CommandRun,
    OperationSummary,
    PrResult,
    PrWorkflowOptions,
    Recipe,
    RecipeRun,
    RepositoryRecord,
    RunResult,
    RunTarget,
    SelectionCriteria,
)

__all__ = [
    "CommandRun",
    "OperationSummary",
    "PrResult",
    "PrWorkflowOptions",
    "Recipe",
    "RecipeRun",
    "RepositoryRecord",
    "RunResult",
    "RunTarget",
    "SelectionCriteria",
    "describe_exit_code",
    "filter_by_all_tags",
    "filter_by_any_tag",
    "filter_by_names",
    "filter_by_tag",
    "select",
    "select_all_tags",
    "select_any_tags",
]
