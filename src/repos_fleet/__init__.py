"""Run commands, recipes and pull requests across a fleet of git repositories."""

__version__ = "1.0.0"
