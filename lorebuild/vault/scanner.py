"""Vault scanning: find the markdown files that make up the corpus."""

import re
from pathlib import Path

# Checked against every file and directory name on the way down
EXCLUDED_PATTERNS = (
    re.compile(r"^00-"),  # templates, dashboard
    re.compile(r"^99-"),  # templates
    re.compile(r"template", re.IGNORECASE),
    re.compile(r"^\.obsidian$", re.IGNORECASE),
    re.compile(r"^\."),  # other hidden files and folders
)


def is_excluded(name: str) -> bool:
    """True if a file or directory name matches an exclusion rule."""
    return any(pattern.search(name) for pattern in EXCLUDED_PATTERNS)


def find_markdown_files(root: Path) -> list[Path]:
    """Recursively list every non-excluded .md file under `root`.

    Entries are visited in sorted order so the result, and everything
    built from it, is deterministic. A missing root yields an empty list.
    """
    if not root.is_dir():
        return []

    files: list[Path] = []
    for entry in sorted(root.iterdir(), key=lambda p: p.name):
        if is_excluded(entry.name):
            continue
        if entry.is_dir():
            files.extend(find_markdown_files(entry))
        elif entry.is_file() and entry.suffix.lower() == ".md":
            files.append(entry.absolute())
    return files
