#!/usr/bin/env python3
"""Fetch the changes to review.

Thin entry point into the code_review package shipped next to this script,
so the skill can run it from its own directory on any platform:

    python scripts/fetch_diff.py fetch 123
    python scripts/fetch_diff.py fetch https://github.com/owner/repo/pull/123
    python scripts/fetch_diff.py fetch main...feature
    python scripts/fetch_diff.py files main --json
    python scripts/fetch_diff.py check

Exit code is that of the first git/gh command that failed.
"""
import sys
from pathlib import Path

# Handle both direct execution and import from elsewhere
_SCRIPT_DIR = Path(__file__).resolve().parent
if str(_SCRIPT_DIR) not in sys.path:
    sys.path.insert(0, str(_SCRIPT_DIR))

try:
    from code_review.cli import main
except ImportError as e:
    print(f"Missing requirements ({e.name}). Run: pip install typer rich pyyaml", file=sys.stderr)
    sys.exit(1)


if __name__ == "__main__":
    main()
