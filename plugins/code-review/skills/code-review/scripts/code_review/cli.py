#!/usr/bin/env python3
"""Code-review helper CLI.

Fetches the diffs the code-review skill works from and checks the files
this repository ships.

Commands:
    fetch     - Fetch a PR or branch diff from a free-form target
    pr        - Fetch a pull request's metadata and diff
    branches  - Fetch the diff between two branches
    files     - Summarize the files changed in a diff
    check     - Verify git and gh are installed and gh is authenticated
    validate  - Check marketplace, plugin and SKILL.md files

Usage:
    code-review-helper fetch 123
    code-review-helper fetch https://github.com/owner/repo/pull/123
    code-review-helper fetch main...feature --json
    code-review-helper files main --json
    code-review-helper validate
"""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import EXIT_USAGE, HELP_TEXT, REPO_ROOT, get_log_level
from .diff_parser import has_valid_diff_markers, summarize_diff
from .fetch import FetchResult, fetch, format_text
from .manifests import check_repository
from .runner import check_tools
from .targets import ReviewTarget, TargetError, parse_target

# Status and errors go to stderr; stdout carries only tool output and tables
console = Console(stderr=True)
out = Console()

app = typer.Typer(
    add_completion=False,
    help=HELP_TEXT,
    rich_markup_mode="markdown",
)


def _emit(fetched: FetchResult, json_output: bool) -> None:
    """Print a FetchResult and exit with the propagated tool exit code."""
    if json_output:
        print(json.dumps(fetched.to_dict(), indent=2, ensure_ascii=False))
    else:
        text = format_text(fetched)
        if text:
            print(text)
        for err in fetched.errors:
            typer.echo(err, err=True)

    if not fetched.ok:
        raise typer.Exit(code=fetched.returncode)


def _parse_or_exit(args: List[str], repo: Optional[str]) -> ReviewTarget:
    try:
        return parse_target(args, repo=repo)
    except TargetError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=EXIT_USAGE)


@app.command("fetch")
def fetch_cmd(
    target: Optional[List[str]] = typer.Argument(None, help="PR number/URL, base...head, or branch names"),
    repo: Optional[str] = typer.Option(None, "--repo", "-r", help="Repository (owner/repo) for PR targets"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as one JSON object"),
) -> None:
    """Fetch a PR or branch diff from a free-form target.

    Examples:
        code-review-helper fetch 123
        code-review-helper fetch "#123" --repo owner/repo
        code-review-helper fetch main...feature
        code-review-helper fetch main
    """
    review_target = _parse_or_exit(target or [], repo)
    console.print(f"[dim]Fetching {escape(review_target.describe())}...[/dim]")
    _emit(fetch(review_target), json_output)


@app.command()
def pr(
    number: str = typer.Argument(..., help="PR number or URL"),
    repo: Optional[str] = typer.Option(None, "--repo", "-r", help="Repository (owner/repo)"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as one JSON object"),
) -> None:
    """Fetch a pull request's metadata (gh pr view) and diff (gh pr diff)."""
    review_target = _parse_or_exit([number], repo)
    if review_target.kind != "pr":
        console.print(f"[red]Error: Not a pull request: {number}[/red]")
        raise typer.Exit(code=EXIT_USAGE)
    _emit(fetch(review_target), json_output)


@app.command()
def branches(
    base: str = typer.Argument(..., help="Base branch"),
    head: Optional[str] = typer.Argument(None, help="Head branch (default: current branch)"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as one JSON object"),
) -> None:
    """Fetch the diff between two branches (git diff base...head)."""
    _emit(fetch(ReviewTarget.for_branches(base, head)), json_output)


@app.command()
def files(
    target: Optional[List[str]] = typer.Argument(None, help="PR number/URL, base...head, or branch names"),
    diff_file: Optional[Path] = typer.Option(None, "--diff-file", "-f", help="Read a diff from a file ('-' for stdin)"),
    repo: Optional[str] = typer.Option(None, "--repo", "-r", help="Repository (owner/repo) for PR targets"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Summarize the files changed in a diff.

    Lists each file with its status and line counts so the review can be
    planned before walking through the changes.

    Examples:
        code-review-helper files 123
        code-review-helper files --diff-file changes.diff --json
        git diff | code-review-helper files --diff-file -
    """
    if diff_file is not None:
        if str(diff_file) == "-":
            diff_text = sys.stdin.read()
        elif not diff_file.is_file():
            console.print(f"[red]Error: File not found: {diff_file}[/red]")
            raise typer.Exit(code=1)
        else:
            diff_text = diff_file.read_text(encoding="utf-8", errors="replace")
        if diff_text.strip() and not has_valid_diff_markers(diff_text):
            console.print("[yellow]Warning: input does not look like a unified diff[/yellow]")
    else:
        fetched = fetch(_parse_or_exit(target or [], repo))
        if not fetched.ok:
            for err in fetched.errors:
                typer.echo(err, err=True)
            raise typer.Exit(code=fetched.returncode)
        diff_text = fetched.diff

    summary = summarize_diff(diff_text)

    if json_output:
        print(json.dumps(summary, indent=2))
        return

    if not summary["files"]:
        console.print("[yellow]No changed files found[/yellow]")
        return

    table = Table(title=f"{summary['files_changed']} files changed")
    table.add_column("File", style="cyan")
    table.add_column("Status")
    table.add_column("+", justify="right", style="green")
    table.add_column("-", justify="right", style="red")
    table.add_column("Hunks", justify="right")
    for row in summary["files"]:
        name = row["path"]
        if row["old_path"]:
            name = f"{row['old_path']} -> {row['path']}"
        status = row["status"] + (" (binary)" if row["binary"] else "")
        table.add_row(escape(name), status, str(row["additions"]), str(row["deletions"]), str(row["hunks"]))
    out.print(table)
    out.print(f"Total: [green]+{summary['additions']}[/green] [red]-{summary['deletions']}[/red]")


@app.command()
def check() -> None:
    """Check that git and gh are installed and gh is authenticated.

    Examples:
        code-review-helper check
    """
    statuses = check_tools()
    errors = []
    for status in statuses:
        if not status.installed:
            errors.append(f"{status.name} not found on PATH")
        elif status.authenticated is False:
            errors.append(f"{status.name} is not authenticated. {status.detail}".strip())

    output = {
        "tools": {
            s.name: {
                "installed": s.installed,
                "version": s.version,
                "authenticated": s.authenticated,
            }
            for s in statuses
        },
        "errors": errors,
        "status": "error" if errors else "ok",
    }

    for status in statuses:
        if status.installed:
            console.print(f"[green]OK[/green] {status.name}: {status.version}")
    for err in errors:
        console.print(f"[red]FAIL[/red] {escape(err)}")
    print(json.dumps(output, indent=2))

    if errors:
        raise typer.Exit(code=1)


@app.command()
def validate(
    root: Path = typer.Argument(REPO_ROOT, help="Repository root containing .claude-plugin/"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Check the marketplace manifest, plugin manifests and SKILL.md files."""
    report = check_repository(root)

    if json_output:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        for path in report.checked:
            console.print(f"[dim]checked {path}[/dim]")
        for issue in report.errors:
            console.print(f"[red]{escape(issue.path)}[/red]: {escape(issue.message)}")
        if report.ok:
            console.print(f"[green]All {len(report.checked)} files valid[/green]")

    if not report.ok:
        raise typer.Exit(code=1)


def main():
    """Entry point for the CLI."""
    logging.basicConfig(
        level=get_log_level(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    app()


if __name__ == "__main__":
    main()
