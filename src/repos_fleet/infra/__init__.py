"""Logging, GitHub API access and credential storage."""
