"""
Build log: one JSON-lines record per executed build.

A record says which vault was compiled into which output directory, how
many files of each artifact kind were written, how many stale document
files the new tree replaced, and how many problems the compile reported.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

ARTIFACT_KINDS = ("documents", "manifests", "search_indices")


@dataclass
class ArtifactCounts:
    """Files written by one build, per artifact kind."""
    documents: int = 0
    manifests: int = 0
    search_indices: int = 0
    bytes_written: int = 0

    @property
    def files(self) -> int:
        return self.documents + self.manifests + self.search_indices

    def add(self, kind: str, size: int) -> None:
        if kind not in ARTIFACT_KINDS:
            raise ValueError(f"unknown artifact kind: {kind}")
        setattr(self, kind, getattr(self, kind) + 1)
        self.bytes_written += size


@dataclass
class BuildRecord:
    """What a single build did to the output directories."""
    vault_path: str | None
    output_dir: str
    written: ArtifactCounts = field(default_factory=ArtifactCounts)
    replaced_documents: int = 0
    errors: int = 0
    warnings: int = 0
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "vaultPath": self.vault_path,
            "outputDir": self.output_dir,
            "written": {
                "documents": self.written.documents,
                "manifests": self.written.manifests,
                "searchIndices": self.written.search_indices,
                "bytes": self.written.bytes_written,
            },
            "replacedDocuments": self.replaced_documents,
            "issues": {"errors": self.errors, "warnings": self.warnings},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BuildRecord":
        """Inverse of to_dict. Raises KeyError/TypeError on foreign records."""
        written = data["written"]
        issues = data.get("issues", {})
        return cls(
            timestamp=data["timestamp"],
            vault_path=data.get("vaultPath"),
            output_dir=data["outputDir"],
            written=ArtifactCounts(
                documents=int(written.get("documents", 0)),
                manifests=int(written.get("manifests", 0)),
                search_indices=int(written.get("searchIndices", 0)),
                bytes_written=int(written.get("bytes", 0)),
            ),
            replaced_documents=int(data.get("replacedDocuments", 0)),
            errors=int(issues.get("errors", 0)),
            warnings=int(issues.get("warnings", 0)),
        )


def append_build_record(log_path: Path, record: BuildRecord) -> None:
    """Append one record, creating the log and its parent directories."""
    log_path.parent.mkdir(parents=True, exist_ok=True)
    with log_path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(record.to_dict()) + "\n")


def read_build_log(log_path: Path, last_n: int | None = None) -> list[BuildRecord]:
    """
    Read build records, oldest first.

    Lines that are not JSON, or not build records, are skipped.

    Args:
        log_path: JSON-lines build log
        last_n: If given, only the last N records
    """
    if not log_path.exists():
        return []

    records = []
    with log_path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                records.append(BuildRecord.from_dict(json.loads(line)))
            except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError):
                continue

    if last_n is not None:
        return records[-last_n:]
    return records


def format_build_record(record: BuildRecord) -> str:
    written = record.written
    lines = [
        f"[{record.timestamp}] {record.vault_path} -> {record.output_dir}",
        f"  Wrote: {written.documents} documents, {written.manifests} manifests, "
        f"{written.search_indices} search indices ({written.bytes_written} bytes)",
    ]
    if record.replaced_documents:
        lines.append(f"  Replaced: {record.replaced_documents} stale document files")
    if record.errors or record.warnings:
        lines.append(f"  Issues: {record.errors} errors, {record.warnings} warnings")
    return "\n".join(lines)
