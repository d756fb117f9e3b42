"""Shared constants."""

from . import __version__

# git
FALLBACK_BRANCH = "main"
DEFAULT_COMMIT_MSG = "Automated changes"

# GitHub
DEFAULT_BRANCH_PREFIX = "automated-changes"
BRANCH_SUFFIX_LENGTH = 6
API_BASE = "https://api.github.com"
USER_AGENT = f"repos-fleet/{__version__}"
DEFAULT_PR_TITLE = "Automated changes"
DEFAULT_PR_BODY = "This PR was created automatically"

# config / output
DEFAULT_CONFIG_FILE = "repos.yaml"
DEFAULT_OUTPUT_DIR = "output"
RUNS_DIR_NAME = "runs"

# run logs
STDOUT_LOG = "stdout.log"
STDERR_LOG = "stderr.log"
METADATA_FILE = "metadata.json"
SCRIPT_SUFFIX = ".script"
SCRIPT_SHEBANG = "#!/bin/sh"

# Exit code reported when the process ended without one (killed by a signal).
NO_EXIT_CODE = -1
