#!/usr/bin/env python3
# repos-fleet launcher: run the CLI straight from a source checkout
#
#   python main.py clone -t backend
#   python main.py run "git status --short" -p

import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parent / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from repos_fleet.cli import main  # noqa: E402


if __name__ == '__main__':
    sys.exit(main())
