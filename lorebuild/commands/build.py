"""Build command implementation - compile the vault into JSON artifacts."""

import json
import os
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..audit_log import ArtifactCounts, BuildRecord, append_build_record
from ..config import BuildConfig
from ..index.search import build_search_indices
from ..models import Manifest
from ..planning import BuildPlan, BuildResult
from ..vault.loader import load_vault
from .check import print_issues

PLAYER_INDEX_NAME = "search-player.json"
DM_INDEX_NAME = "search-dm.json"


class VaultNotFoundError(FileNotFoundError):
    """The vault is missing and no previous build exists to fall back on."""


def render_json(data, compact: bool = False) -> str:
    """Serialize an artifact. Output depends only on `data`."""
    if compact:
        return json.dumps(data, ensure_ascii=False, separators=(",", ":")) + "\n"
    return json.dumps(data, ensure_ascii=False, indent=2) + "\n"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# -----------------------------------------------------------------------------
# compute (no side effects) / execute (writes)
# -----------------------------------------------------------------------------


def compute_build_plan(config: BuildConfig, generated_at: str | None = None) -> BuildPlan:
    """
    Compile the vault and render every artifact without writing anything.

    A missing vault is not an error when a manifest from an earlier build
    exists: the plan is marked skipped and the previous output is reused.

    Raises:
        VaultNotFoundError: vault missing and no previous manifest
    """
    vault_path = Path(config.vault_path) if config.vault_path is not None else None

    if vault_path is None or not vault_path.is_dir():
        if config.manifest_path.exists():
            return BuildPlan(
                vault_path=vault_path,
                output_dir=config.output_dir,
                search_dir=config.search_dir,
                skipped=True,
                skip_reason=f"vault not found at {vault_path}, using pre-built content in {config.output_dir}",
            )
        raise VaultNotFoundError(
            f"Vault not found at {vault_path} and no pre-built manifest at {config.manifest_path}"
        )

    vault = load_vault(vault_path, config)
    player_index, dm_index = build_search_indices(
        vault.documents,
        player_chars=config.player_snippet_chars,
        dm_chars=config.dm_snippet_chars,
    )

    manifest = Manifest(
        categories=list(config.categories),
        documents=[doc.summary() for doc in vault.documents],
        link_registry=vault.registry.to_dict(),
        generated_at=generated_at or _utc_now(),
    )

    artifacts: dict[Path, str] = {}
    for doc in vault.documents:
        artifacts[config.documents_dir / doc.category / f"{doc.slug}.json"] = render_json(doc.to_dict())
    artifacts[config.manifest_path] = render_json(manifest.to_dict())
    artifacts[config.search_dir / PLAYER_INDEX_NAME] = render_json([e.to_dict() for e in player_index], compact=True)
    artifacts[config.search_dir / DM_INDEX_NAME] = render_json([e.to_dict() for e in dm_index], compact=True)
    if config.publishes_manifest_copy:
        artifacts[config.public_dir / "manifest.json"] = render_json(manifest.to_dict(), compact=True)

    return BuildPlan(
        vault_path=vault.path,
        output_dir=config.output_dir,
        search_dir=config.search_dir,
        manifest=manifest,
        player_index=player_index,
        dm_index=dm_index,
        artifacts=artifacts,
        issues=vault.issues,
        file_count=vault.file_count,
    )


def artifact_kind(path: Path, config: BuildConfig) -> str:
    """Classify a planned artifact path for the build log."""
    if path.is_relative_to(config.documents_dir):
        return "documents"
    if path.name in (PLAYER_INDEX_NAME, DM_INDEX_NAME):
        return "search_indices"
    return "manifests"


def _count_files(path: Path) -> int:
    if not path.is_dir():
        return 0
    return sum(1 for p in path.rglob("*") if p.is_file())


def _swap_in(staging: Path, target: Path) -> int:
    """Replace `target` with the fully written `staging` tree.

    Returns the number of files in the replaced tree.
    """
    replaced = _count_files(target)
    if not target.exists():
        os.replace(staging, target)
        return replaced

    retired = target.with_name(f"{staging.name}-old")
    target.rename(retired)
    try:
        os.replace(staging, target)
    except OSError:
        retired.rename(target)
        raise
    shutil.rmtree(retired)
    return replaced


def _write(path: Path, text: str) -> int:
    path.parent.mkdir(parents=True, exist_ok=True)
    data = text.encode("utf-8")
    path.write_bytes(data)
    return len(data)


def execute_build_plan(plan: BuildPlan, config: BuildConfig) -> BuildResult:
    """
    Write a computed plan to disk.

    Document files are written into a staging directory beside
    `documents/`, which replaces the old tree only once every document is
    written; a failure leaves the previous build in place. The manifest and
    search indices follow. The build is recorded in the build log when one
    is configured.
    """
    if plan.skipped:
        return BuildResult(skipped=True, output_dir=plan.output_dir)

    documents_dir = config.documents_dir
    written = ArtifactCounts()
    staging: Path | None = None

    try:
        documents_dir.parent.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=".documents-", dir=documents_dir.parent))
        staging.chmod(0o755)

        for path, text in plan.artifacts.items():
            if artifact_kind(path, config) == "documents":
                written.add("documents", _write(staging / path.relative_to(documents_dir), text))

        replaced = _swap_in(staging, documents_dir)
        staging = None

        for path, text in plan.artifacts.items():
            kind = artifact_kind(path, config)
            if kind != "documents":
                written.add(kind, _write(path, text))
    except OSError as e:
        return BuildResult(success=False, error=f"Failed to write artifacts: {e}", output_dir=plan.output_dir)
    finally:
        if staging is not None:
            shutil.rmtree(staging, ignore_errors=True)

    result = BuildResult(written=written, replaced_documents=replaced, output_dir=plan.output_dir)

    if config.audit_log_path is not None:
        append_build_record(
            config.audit_log_path,
            BuildRecord(
                vault_path=str(plan.vault_path),
                output_dir=str(plan.output_dir),
                written=written,
                replaced_documents=replaced,
                errors=plan.error_count,
                warnings=plan.warning_count,
            ),
        )

    return result


def run_build(config: BuildConfig, dry_run: bool = False, verbose: bool = False, console: Console | None = None) -> int:
    """Build content artifacts from the vault.

    Args:
        config: Build configuration
        dry_run: If True, show what would be done without writing
        verbose: Also print info-level issues
        console: Console for progress output (defaults to stderr)

    Returns:
        Exit code
    """
    console = console or Console(stderr=True)

    console.print(f"Building content from vault: {config.vault_path}", style="dim")

    # Phase 1: Compute (diagnostic) - pure, no side effects
    try:
        plan = compute_build_plan(config)
    except VaultNotFoundError as e:
        console.print(str(e), style="bold red")
        return 1

    if plan.skipped:
        console.print(f"Skipping build: {plan.skip_reason}", style="yellow")
        return 0

    print_issues(console, plan.issues, include_info=verbose)

    if dry_run:
        console.print("\n[bold]DRY RUN[/bold] - No changes will be made\n")
        console.print(plan.summary())
        return 0

    # Phase 2: Execute (action) - performs writes
    result = execute_build_plan(plan, config)
    if not result.success:
        console.print(str(result.error), style="red")
        return 1

    _print_build_summary(console, plan, result, config)
    return 0


def _print_build_summary(console: Console, plan: BuildPlan, result: BuildResult, config: BuildConfig) -> None:
    console.print()
    table = Table(title="Build complete", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right")

    table.add_row("Markdown files", str(plan.file_count))
    table.add_row("Documents", str(plan.document_count))
    table.add_row("Categories", str(len(plan.manifest.categories)))
    table.add_row("Link registry entries", str(len(plan.manifest.link_registry)))
    table.add_row("Player search entries", str(len(plan.player_index)))
    table.add_row("DM search entries", str(len(plan.dm_index)))
    table.add_row("Files written", str(result.files_written))
    if result.replaced_documents:
        table.add_row("Stale document files replaced", str(result.replaced_documents))

    console.print(table)
    console.print(f"Output written to {config.output_dir}", style="green")
    if config.search_dir != config.output_dir:
        console.print(f"Search indices written to {config.search_dir}", style="green")
