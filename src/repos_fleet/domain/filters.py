"""Repository selection by name and tag.

Every function here is total and order-preserving: survivors keep their
position from the input list and an empty result is a valid answer.
"""

from typing import Iterable, List, Optional, Sequence

from .models import RepositoryRecord, SelectionCriteria


def filter_by_names(
    repositories: Sequence[RepositoryRecord], names: Sequence[str]
) -> List[RepositoryRecord]:
    """Keep repositories whose name is listed; unknown names are ignored."""
    if not names:
        return list(repositories)
    wanted = set(names)
    return [repo for repo in repositories if repo.name in wanted]


def filter_by_tag(
    repositories: Sequence[RepositoryRecord], tag: Optional[str]
) -> List[RepositoryRecord]:
    if tag is None:
        return list(repositories)
    return [repo for repo in repositories if repo.has_tag(tag)]


def filter_by_any_tag(
    repositories: Sequence[RepositoryRecord], tags: Sequence[str]
) -> List[RepositoryRecord]:
    if not tags:
        return list(repositories)
    return [repo for repo in repositories if repo.has_any_tag(tags)]


def filter_by_all_tags(
    repositories: Sequence[RepositoryRecord], tags: Sequence[str]
) -> List[RepositoryRecord]:
    if not tags:
        return list(repositories)
    return [repo for repo in repositories if repo.has_all_tags(tags)]


def _select(
    repositories: Sequence[RepositoryRecord],
    include_tags: Sequence[str],
    exclude_tags: Sequence[str],
    names: Optional[Iterable[str]],
    match_any: bool,
) -> List[RepositoryRecord]:
    base = filter_by_names(repositories, list(names)) if names is not None else list(repositories)

    selected = []
    for repo in base:
        if not include_tags:
            included = True
        elif match_any:
            included = repo.has_any_tag(include_tags)
        else:
            included = repo.has_all_tags(include_tags)
        excluded = bool(exclude_tags) and repo.has_any_tag(exclude_tags)
        if included and not excluded:
            selected.append(repo)
    return selected


def select_all_tags(
    repositories: Sequence[RepositoryRecord],
    include_tags: Sequence[str] = (),
    exclude_tags: Sequence[str] = (),
    names: Optional[Iterable[str]] = None,
) -> List[RepositoryRecord]:
    """Select repositories carrying every tag in ``include_tags`` (AND)."""
    return _select(repositories, include_tags, exclude_tags, names, match_any=False)


def select_any_tags(
    repositories: Sequence[RepositoryRecord],
    include_tags: Sequence[str] = (),
    exclude_tags: Sequence[str] = (),
    names: Optional[Iterable[str]] = None,
) -> List[RepositoryRecord]:
    """Select repositories carrying at least one tag in ``include_tags`` (OR)."""
    return _select(repositories, include_tags, exclude_tags, names, match_any=True)


def select(
    repositories: Sequence[RepositoryRecord], criteria: SelectionCriteria
) -> List[RepositoryRecord]:
    operation = select_any_tags if criteria.match_any else select_all_tags
    return operation(
        repositories,
        criteria.include_tags,
        criteria.exclude_tags,
        criteria.names,
    )
