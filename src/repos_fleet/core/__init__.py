"""Subprocess, git, runner and config building blocks."""
