"""Configuration validation rules.

Validators collect every problem instead of stopping at the first one so a
broken config file can be fixed in a single pass.
"""

from typing import List, Sequence

from .models import Recipe, RepositoryRecord

VALID_URL_PREFIXES = ("git@", "https://", "http://")


def is_valid_repository_url(url: str) -> bool:
    return url.startswith(VALID_URL_PREFIXES)


def validate_repository(repository: RepositoryRecord) -> List[str]:
    errors: List[str] = []
    if not repository.name:
        errors.append(f"Repository name cannot be empty: '{repository.name}'")
    if not repository.url:
        errors.append(f"Repository '{repository.name}' URL cannot be empty")
    elif not is_valid_repository_url(repository.url):
        errors.append(f"Repository '{repository.name}' has invalid URL: '{repository.url}'")
    return errors


def validate_repositories(repositories: Sequence[RepositoryRecord]) -> List[str]:
    errors: List[str] = []
    seen = set()
    for repo in repositories:
        if repo.name in seen:
            errors.append(f"Duplicate repository name: '{repo.name}'")
        seen.add(repo.name)
    for repo in repositories:
        errors.extend(validate_repository(repo))
    return errors


def validate_recipe(recipe: Recipe) -> List[str]:
    errors: List[str] = []
    if not recipe.name:
        errors.append("Recipe name cannot be empty")
    if not recipe.steps:
        errors.append(f"Recipe '{recipe.name}' must contain at least one step")
    return errors


def validate_recipes(recipes: Sequence[Recipe]) -> List[str]:
    errors: List[str] = []
    seen = set()
    for recipe in recipes:
        if recipe.name in seen:
            errors.append(f"Duplicate recipe name: '{recipe.name}'")
        seen.add(recipe.name)
    for recipe in recipes:
        errors.extend(validate_recipe(recipe))
    return errors


def validate_tag_filter(tag: str) -> List[str]:
    if not tag.strip():
        return [f"Tag filter cannot be empty: '{tag}'"]
    return []


def format_validation_errors(errors: Sequence[str]) -> str:
    return "Validation errors: " + "; ".join(errors)
