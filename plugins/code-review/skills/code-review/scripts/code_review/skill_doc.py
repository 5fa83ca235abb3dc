"""SKILL.md loading and frontmatter validation."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple

import yaml

from .config import SKILL_LINK_DIRS, SKILL_REQUIRED

FRONTMATTER_DELIM = "---"
NAME_RE = re.compile(r'^[a-z0-9]+(?:-[a-z0-9]+)*$')
VERSION_RE = re.compile(r'^\d+\.\d+\.\d+(?:[-+][0-9A-Za-z.-]+)?$')
LINK_RE = re.compile(r'\[[^\]]*\]\(([^)\s]+)\)')


class FrontmatterError(ValueError):
    """SKILL.md frontmatter is missing or malformed."""


@dataclass
class SkillDocument:
    """A parsed SKILL.md."""
    path: Path
    metadata: Dict[str, Any] = field(default_factory=dict)
    body: str = ""


def parse_frontmatter(text: str) -> Tuple[Dict[str, Any], str]:
    """Split a Markdown document into frontmatter metadata and body.

    Args:
        text: Document text starting with a `---` line

    Returns:
        Tuple of (metadata mapping, body text)

    Raises:
        FrontmatterError: If the frontmatter block is missing, unterminated,
            not valid YAML, or not a mapping
    """
    lines = text.lstrip("\ufeff").splitlines()
    if not lines or lines[0].strip() != FRONTMATTER_DELIM:
        raise FrontmatterError("Document does not start with a '---' frontmatter block")

    for idx in range(1, len(lines)):
        if lines[idx].strip() == FRONTMATTER_DELIM:
            break
    else:
        raise FrontmatterError("Frontmatter block is not closed with '---'")

    raw = "\n".join(lines[1:idx])
    try:
        metadata = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise FrontmatterError(f"Frontmatter is not valid YAML: {e}") from e

    if metadata is None:
        metadata = {}
    if not isinstance(metadata, dict):
        raise FrontmatterError("Frontmatter must be a mapping of keys to values")

    body = "\n".join(lines[idx + 1:]).lstrip("\n")
    return metadata, body


def load_skill(path: Path) -> SkillDocument:
    """Read and parse a SKILL.md file."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise FrontmatterError(f"{path.name} is not valid UTF-8: {e}") from e
    metadata, body = parse_frontmatter(text)
    return SkillDocument(path=path, metadata=metadata, body=body)


def _local_links(body: str) -> List[str]:
    links = []
    for target in LINK_RE.findall(body):
        target = target.split("#", 1)[0]
        if not target or "://" in target or target.startswith("mailto:"):
            continue
        if target.split("/", 1)[0] in SKILL_LINK_DIRS:
            links.append(target)
    return links


def validate_skill(doc: SkillDocument) -> List[str]:
    """Check a skill's frontmatter and local links.

    Returns:
        List of problems (empty when the skill is valid)
    """
    problems = []
    meta = doc.metadata

    for key in SKILL_REQUIRED:
        value = meta.get(key)
        if value is None or (isinstance(value, str) and not value.strip()):
            problems.append(f"missing required frontmatter key '{key}'")
        elif not isinstance(value, str):
            problems.append(f"frontmatter key '{key}' must be a string")

    name = meta.get("name")
    if isinstance(name, str) and name.strip():
        if not NAME_RE.match(name):
            problems.append(f"name '{name}' must be lowercase kebab-case")
        if doc.path.parent.name != name:
            problems.append(
                f"name '{name}' does not match skill directory '{doc.path.parent.name}'"
            )

    version = meta.get("version")
    if isinstance(version, str) and version.strip() and not VERSION_RE.match(version):
        problems.append(f"version '{version}' is not MAJOR.MINOR.PATCH")

    for link in _local_links(doc.body):
        if not (doc.path.parent / link).is_file():
            problems.append(f"broken link: {link}")

    return problems
