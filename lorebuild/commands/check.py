"""Check command implementation - report problems without writing artifacts."""

import json
from collections.abc import Iterable
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..config import BuildConfig
from ..models import BuildIssue
from ..vault.loader import Vault, load_vault

LEVEL_ORDER = {"error": 0, "warning": 1, "info": 2}


def print_issues(console: Console, issues: Iterable[BuildIssue], include_info: bool = True) -> None:
    """Print issues, errors first."""
    for issue in sorted(issues, key=lambda i: (LEVEL_ORDER.get(i.level, 99), i.path or "")):
        if issue.level == "error":
            style = "bold red"
            prefix = "ERROR"
        elif issue.level == "warning":
            style = "yellow"
            prefix = "WARN"
        else:
            if not include_info:
                continue
            style = "dim"
            prefix = "INFO"

        location = f"{issue.path} - " if issue.path else ""
        console.print(f"{prefix}: [{issue.code}] {location}{issue.message}", style=style, markup=False)


def _issue_to_dict(issue: BuildIssue) -> dict:
    return {"code": issue.code, "path": issue.path, "message": issue.message}


def _output_json(vault: Vault) -> None:
    counts = {level: 0 for level in LEVEL_ORDER}
    for issue in vault.issues:
        counts[issue.level] = counts.get(issue.level, 0) + 1

    output = {
        "errors": [_issue_to_dict(i) for i in vault.issues if i.level == "error"],
        "warnings": [_issue_to_dict(i) for i in vault.issues if i.level == "warning"],
        "info": [_issue_to_dict(i) for i in vault.issues if i.level == "info"],
        "summary": {
            "files": vault.file_count,
            "documents": len(vault.documents),
            "excluded": len(vault.excluded),
            "registry_entries": len(vault.registry),
            "errors": counts["error"],
            "warnings": counts["warning"],
            "info": counts["info"],
        },
    }
    print(json.dumps(output, indent=2, default=str))


def _print_human_output(console: Console, vault: Vault) -> None:
    print_issues(console, vault.issues)
    console.print()

    table = Table(title="Vault Summary", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right")

    table.add_row("Markdown files", str(vault.file_count))
    for category, docs in sorted(vault.by_category.items()):
        table.add_row(f"  {category}", str(len(docs)))
    table.add_row("Published documents", str(len(vault.documents)))
    table.add_row("Excluded documents", str(len(vault.excluded)))
    table.add_row("Link registry entries", str(len(vault.registry)))

    console.print(table)


def run_check(config: BuildConfig, fail_on: str = "error", output_json: bool = False) -> int:
    """Compile the vault in memory and report issues.

    Args:
        config: Build configuration (vault_path is required)
        fail_on: Exit with error if this level or higher found ("error" or "warning")
        output_json: Output results as JSON instead of human-readable

    Returns:
        Exit code (0 = success, 1 = failures found)
    """
    console = Console(stderr=True)

    vault_path = Path(config.vault_path) if config.vault_path is not None else None
    if vault_path is None or not vault_path.is_dir():
        console.print(f"Vault not found at {vault_path}", style="bold red")
        return 1

    console.print(f"Loading vault from {vault_path}...", style="dim")
    vault = load_vault(vault_path, config)

    if output_json:
        _output_json(vault)
    else:
        _print_human_output(console, vault)

    errors = sum(1 for i in vault.issues if i.level == "error")
    warnings = sum(1 for i in vault.issues if i.level == "warning")

    if errors or (fail_on == "warning" and warnings):
        if not output_json:
            console.print(f"\n✗ {errors} errors, {warnings} warnings", style="bold red")
        return 1

    if not output_json:
        console.print("\n✓ Vault compiles cleanly", style="green")
    return 0
