"""Diff parsing for the code-review skill.

Contains:
- Unified diff marker check
- Per-file split of `git diff` / `gh pr diff` output
- Changed-file summary used in the skill's overview phase
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

# Either side may be C-quoted by git (core.quotePath) when the path holds
# non-ASCII bytes, quotes, backslashes or control characters
_QUOTED = r'"(?:[^"\\]|\\.)*"'
DIFF_GIT_RE = re.compile(
    rf'^diff --git (?P<old>{_QUOTED}|a/.+?) (?P<new>{_QUOTED}|b/.+)$'
)
HUNK_RE = re.compile(r'^@@\s*-\d+(?:,\d+)?\s+\+\d+(?:,\d+)?\s*@@')
DIFF_GIT_MARKER_RE = re.compile(r"^diff --git ", re.MULTILINE)
FILE_HEADER_RE = re.compile(r"^(?:---|\+\+\+) \S", re.MULTILINE)
HUNK_MARKER_RE = re.compile(r'^@@ -\d+', re.MULTILINE)

_C_ESCAPES = {
    "a": 7, "b": 8, "t": 9, "n": 10, "v": 11, "f": 12, "r": 13,
    '"': 34, "\\": 92,
}


@dataclass
class FileDiff:
    """Changes to a single file within a diff."""
    path: str
    old_path: Optional[str] = None
    status: str = "modified"  # added, deleted, renamed, modified
    additions: int = 0
    deletions: int = 0
    hunks: int = 0
    binary: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "old_path": self.old_path,
            "status": self.status,
            "additions": self.additions,
            "deletions": self.deletions,
            "hunks": self.hunks,
            "binary": self.binary,
        }


def has_valid_diff_markers(text: str) -> bool:
    """Whether text looks like a unified diff.

    True when it has a `diff --git` header, a ---/+++ header pair, or an
    @@ hunk header.
    """
    if DIFF_GIT_MARKER_RE.search(text):
        return True
    headers = {m.group(0)[:3] for m in FILE_HEADER_RE.finditer(text)}
    return headers == {"---", "+++"} or HUNK_MARKER_RE.search(text) is not None


def _unquote(path: str) -> str:
    """Undo git's C-style path quoting: "caf\\303\\251.txt" -> café.txt."""
    if len(path) < 2 or not (path.startswith('"') and path.endswith('"')):
        return path
    inner = path[1:-1]
    out = bytearray()
    i = 0
    while i < len(inner):
        ch = inner[i]
        if ch != "\\" or i + 1 >= len(inner):
            out.extend(ch.encode("utf-8"))
            i += 1
            continue
        nxt = inner[i + 1]
        octal = inner[i + 1:i + 4]
        if len(octal) == 3 and all(c in "01234567" for c in octal):
            out.append(int(octal, 8) & 0xFF)
            i += 4
        elif nxt in _C_ESCAPES:
            out.append(_C_ESCAPES[nxt])
            i += 2
        else:
            out.extend(nxt.encode("utf-8"))
            i += 2
    return out.decode("utf-8", errors="replace")


def _strip_prefix(path: str, prefix: str) -> str:
    return path[len(prefix):] if path.startswith(prefix) else path


def split_file_diffs(diff_text: str) -> List[FileDiff]:
    """Split `git diff` output into per-file entries.

    Args:
        diff_text: Output of `git diff` or `gh pr diff`

    Returns:
        FileDiff per `diff --git` section, in diff order. A section whose
        header cannot be parsed is skipped, never merged into the previous
        file.
    """
    files: List[FileDiff] = []
    current: Optional[FileDiff] = None
    in_hunk = False

    for line in diff_text.splitlines():
        if line.startswith("diff --git "):
            in_hunk = False
            header = DIFF_GIT_RE.match(line)
            if header is None:
                current = None
                continue
            new = _strip_prefix(_unquote(header.group("new")), "b/")
            old = _strip_prefix(_unquote(header.group("old")), "a/")
            current = FileDiff(path=new, old_path=old if old != new else None)
            files.append(current)
            continue
        if current is None:
            continue

        if HUNK_RE.match(line):
            current.hunks += 1
            in_hunk = True
            continue

        if in_hunk:
            if line.startswith("+"):
                current.additions += 1
            elif line.startswith("-"):
                current.deletions += 1
            continue

        if line.startswith("new file mode"):
            current.status = "added"
        elif line.startswith("deleted file mode"):
            current.status = "deleted"
        elif line.startswith("rename from "):
            current.status = "renamed"
            current.old_path = _unquote(line[len("rename from "):])
        elif line.startswith("rename to "):
            current.status = "renamed"
            current.path = _unquote(line[len("rename to "):])
        elif line.startswith("Binary files ") or line.startswith("GIT binary patch"):
            current.binary = True

    return files


def summarize_diff(diff_text: str) -> Dict[str, Any]:
    """Summarize a diff for the overview phase.

    Returns:
        Dict with file count, addition/deletion totals and per-file rows
    """
    files = split_file_diffs(diff_text)
    return {
        "files_changed": len(files),
        "additions": sum(f.additions for f in files),
        "deletions": sum(f.deletions for f in files),
        "hunks": sum(f.hunks for f in files),
        "files": [f.to_dict() for f in files],
    }
