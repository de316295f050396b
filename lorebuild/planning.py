"""
Plan/result types that separate computing a build from writing it.

`compute_*` functions produce a plan with no side effects; `execute_*`
functions perform the writes and return a result. Dry runs stop after
the plan.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from .audit_log import ArtifactCounts
from .models import BuildIssue, Manifest, SearchIndexEntry


@dataclass
class BasePlan(ABC):
    """Base class for operation plans (diagnostic output)."""
    vault_path: Path | None

    @abstractmethod
    def summary(self) -> str:
        """Human-readable summary of what would be done."""
        ...


@dataclass
class BaseResult:
    """Base class for operation results (action output)."""
    success: bool = True
    error: str | None = None


@dataclass
class BuildPlan(BasePlan):
    """Plan for a content build: every artifact, rendered but unwritten."""
    output_dir: Path
    search_dir: Path
    skipped: bool = False
    skip_reason: str = ""
    manifest: Manifest | None = None
    player_index: list[SearchIndexEntry] = field(default_factory=list)
    dm_index: list[SearchIndexEntry] = field(default_factory=list)
    artifacts: dict[Path, str] = field(default_factory=dict)  # path -> file text
    issues: list[BuildIssue] = field(default_factory=list)
    file_count: int = 0

    @property
    def document_count(self) -> int:
        return len(self.manifest.documents) if self.manifest else 0

    @property
    def error_count(self) -> int:
        return sum(1 for i in self.issues if i.level == "error")

    @property
    def warning_count(self) -> int:
        return sum(1 for i in self.issues if i.level == "warning")

    def summary(self) -> str:
        if self.skipped:
            return f"Content Build Plan\n  Skipped: {self.skip_reason}"

        lines = [
            "Content Build Plan",
            f"  Vault: {self.vault_path}",
            f"  Markdown files: {self.file_count}",
            f"  Documents to publish: {self.document_count}",
            f"  Categories: {len(self.manifest.categories) if self.manifest else 0}",
            f"  Link registry entries: {len(self.manifest.link_registry) if self.manifest else 0}",
            f"  Player search entries: {len(self.player_index)}",
            f"  DM search entries: {len(self.dm_index)}",
            f"  Files to write: {len(self.artifacts)}",
            f"  [REBUILD] Existing documents under {self.output_dir / 'documents'} are replaced once all are written",
        ]
        if self.error_count or self.warning_count:
            lines.append(f"  Issues: {self.error_count} errors, {self.warning_count} warnings")
        return "\n".join(lines)


@dataclass
class BuildResult(BaseResult):
    """Result of build execution."""
    skipped: bool = False
    written: ArtifactCounts = field(default_factory=ArtifactCounts)
    replaced_documents: int = 0
    output_dir: Path | None = None

    @property
    def files_written(self) -> int:
        return self.written.files
