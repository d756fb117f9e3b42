"""Exception hierarchy.

Single-repository operations raise these; orchestration commands collect
them per repository and only raise when no repository succeeded.
"""

from typing import List, Optional, Sequence, Tuple


class FleetError(Exception):
    """Base class for every error raised by repos-fleet."""


class ConfigError(FleetError):
    """Configuration file missing, unreadable or invalid."""

    def __init__(self, message: str, errors: Optional[Sequence[str]] = None):
        self.errors: List[str] = list(errors or [])
        super().__init__(message)


class RepositoryNotFoundError(FleetError):
    """The local checkout of a repository does not exist."""


class InvalidRepositoryUrlError(FleetError):
    """A repository URL could not be parsed into owner/repo."""


class RecipeNotFoundError(FleetError):
    pass


class GitCommandError(FleetError):
    """A git subprocess exited non-zero (stderr is part of the message)."""

    def __init__(self, message: str, stderr: str = ""):
        self.stderr = stderr
        stderr = (stderr or "").strip()
        super().__init__(f"{message}: {stderr}" if stderr else message)


class CommandFailedError(FleetError):
    def __init__(self, exit_code: int, description: str = "", stderr: str = ""):
        self.exit_code = exit_code
        self.stderr = stderr
        message = f"Command failed with exit code: {exit_code}"
        if description:
            message += f" ({description})"
        stderr = (stderr or "").strip()
        if stderr:
            message += f": {stderr}"
        super().__init__(message)


class TokenRequiredError(FleetError):
    pass


class GitHubApiError(FleetError):
    """Non-2xx GitHub response, or a transport failure when ``status`` is None."""

    def __init__(self, action: str, status: Optional[int], body: str):
        self.action = action
        self.status = status
        self.body = body
        if status is None:
            super().__init__(f"{action} failed: {body}")
        else:
            super().__init__(f"{action} failed ({status}): {body}")


class AllRepositoriesFailedError(FleetError):
    """Every selected repository failed; carries all ``(name, error)`` pairs."""

    def __init__(self, operation: str, failures: Sequence[Tuple[str, BaseException]]):
        self.operation = operation
        self.failures: List[Tuple[str, BaseException]] = list(failures)
        first_name, first_error = self.failures[0]
        super().__init__(
            f"All {operation} operations failed. First error ({first_name}): {first_error}"
        )
