"""Marketplace and plugin manifest checks.

Contains:
- JSON manifest loading
- Marketplace / plugin key validation
- Whole-repository check (marketplace -> plugins -> skills)
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from .config import (
    MARKETPLACE_PLUGIN_REQUIRED,
    MARKETPLACE_RELPATH,
    MARKETPLACE_REQUIRED,
    PLUGIN_MANIFEST_RELPATH,
    PLUGIN_REQUIRED,
    SKILL_FILENAME,
)
from .skill_doc import FrontmatterError, load_skill, validate_skill

logger = logging.getLogger("code-review.manifests")

SEMVER_RE = re.compile(r'^\d+\.\d+\.\d+(?:[-+][0-9A-Za-z.-]+)?$')


class ManifestError(ValueError):
    """A manifest file is missing, not JSON, or not a JSON object."""


@dataclass
class ValidationIssue:
    path: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"path": self.path, "message": self.message}


@dataclass
class ValidationReport:
    """Result of checking the repository's manifests and skills."""
    checked: List[str] = field(default_factory=list)
    errors: List[ValidationIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add(self, path: Path, message: str) -> None:
        self.errors.append(ValidationIssue(path=str(path), message=message))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "checked": self.checked,
            "errors": [e.to_dict() for e in self.errors],
        }


def load_manifest(path: Path) -> Dict[str, Any]:
    """Load a JSON manifest.

    Raises:
        ManifestError: If the file is missing, invalid JSON, or not an object
    """
    path = Path(path)
    if not path.is_file():
        raise ManifestError(f"Manifest not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except UnicodeDecodeError as e:
        raise ManifestError(f"Manifest is not valid UTF-8: {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ManifestError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ManifestError(f"Manifest must be a JSON object: {path}")
    return data


def _missing(data: Dict[str, Any], keys) -> List[str]:
    problems = []
    for key in keys:
        value = data.get(key)
        if value is None or (isinstance(value, str) and not value.strip()):
            problems.append(f"missing required key '{key}'")
    return problems


def validate_marketplace(data: Dict[str, Any]) -> List[str]:
    """Check marketplace.json keys.

    Returns:
        List of problems (empty when valid)
    """
    problems = _missing(data, MARKETPLACE_REQUIRED)

    owner = data.get("owner")
    if owner is not None and not (isinstance(owner, dict) and owner.get("name")):
        problems.append("'owner' must be an object with a 'name'")

    plugins = data.get("plugins")
    if plugins is None:
        return problems
    if not isinstance(plugins, list) or not plugins:
        problems.append("'plugins' must be a non-empty list")
        return problems

    seen = set()
    for idx, plugin in enumerate(plugins):
        if not isinstance(plugin, dict):
            problems.append(f"plugins[{idx}] must be an object")
            continue
        for problem in _missing(plugin, MARKETPLACE_PLUGIN_REQUIRED):
            problems.append(f"plugins[{idx}]: {problem}")
        name = plugin.get("name")
        if name is not None and not isinstance(name, str):
            problems.append(f"plugins[{idx}]: 'name' must be a string")
        elif name:
            if name in seen:
                problems.append(f"plugins[{idx}]: duplicate plugin name '{name}'")
            seen.add(name)
    return problems


def validate_plugin(data: Dict[str, Any]) -> List[str]:
    """Check plugin.json keys.

    Returns:
        List of problems (empty when valid)
    """
    problems = _missing(data, PLUGIN_REQUIRED)
    version = data.get("version")
    if isinstance(version, str) and version.strip() and not SEMVER_RE.match(version):
        problems.append(f"version '{version}' is not MAJOR.MINOR.PATCH")
    return problems


def _check_skills(plugin_dir: Path, report: ValidationReport) -> None:
    skills_dir = plugin_dir / "skills"
    if not skills_dir.is_dir():
        return
    for skill_dir in sorted(p for p in skills_dir.iterdir() if p.is_dir()):
        skill_path = skill_dir / SKILL_FILENAME
        if not skill_path.is_file():
            report.add(skill_dir, f"missing {SKILL_FILENAME}")
            continue
        report.checked.append(str(skill_path))
        try:
            doc = load_skill(skill_path)
        except FrontmatterError as e:
            report.add(skill_path, str(e))
            continue
        for problem in validate_skill(doc):
            report.add(skill_path, problem)


def check_repository(root: Path) -> ValidationReport:
    """Validate the marketplace, every plugin it lists, and their skills.

    Args:
        root: Repository root containing .claude-plugin/marketplace.json

    Returns:
        ValidationReport listing every file checked and every problem found
    """
    root = Path(root)
    report = ValidationReport()
    marketplace_path = root / MARKETPLACE_RELPATH

    try:
        marketplace = load_manifest(marketplace_path)
    except ManifestError as e:
        report.add(marketplace_path, str(e))
        return report
    report.checked.append(str(marketplace_path))

    for problem in validate_marketplace(marketplace):
        report.add(marketplace_path, problem)

    plugins = marketplace.get("plugins")
    if not isinstance(plugins, list):
        return report

    for entry in plugins:
        if not isinstance(entry, dict) or not isinstance(entry.get("source"), str):
            continue
        plugin_dir = (root / entry["source"]).resolve()
        if not plugin_dir.is_dir():
            report.add(marketplace_path, f"plugin source not found: {entry['source']}")
            continue

        plugin_path = plugin_dir / PLUGIN_MANIFEST_RELPATH
        try:
            plugin = load_manifest(plugin_path)
        except ManifestError as e:
            report.add(plugin_path, str(e))
            continue
        report.checked.append(str(plugin_path))

        for problem in validate_plugin(plugin):
            report.add(plugin_path, problem)
        if entry.get("name") and plugin.get("name") and entry["name"] != plugin["name"]:
            report.add(
                plugin_path,
                f"plugin name '{plugin['name']}' does not match marketplace entry '{entry['name']}'",
            )

        _check_skills(plugin_dir, report)

    logger.info("Checked %d files, %d problems", len(report.checked), len(report.errors))
    return report
