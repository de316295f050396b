"""Inspect command implementation - show how a single file parses."""

import json
from pathlib import Path

from rich.console import Console

from ..config import BuildConfig
from ..vault.loader import read_source
from ..vault.naming import path_to_category, slugify
from ..vault.parser import parse_document


def run_inspect(path: Path, config: BuildConfig) -> int:
    """Parse one markdown file and print the result as JSON.

    References are left unresolved: resolution needs the whole vault.
    """
    console = Console(stderr=True)

    try:
        text = read_source(path)
    except (OSError, UnicodeDecodeError) as e:
        console.print(f"Cannot read {path}: {e}", style="bold red")
        return 1

    relative = path.name
    if config.vault_path is not None:
        try:
            relative = path.resolve().relative_to(Path(config.vault_path).resolve()).as_posix()
        except ValueError:
            pass

    parsed = parse_document(
        text,
        relative,
        tier_aliases=config.tier_aliases,
        structural_sections=config.structural_sections,
    )

    output = {
        "slug": slugify(parsed.title) or slugify(parsed.stem) or "untitled",
        "category": path_to_category(relative, config.categories),
        **parsed.to_dict(),
        "fallbackPartition": parsed.used_fallback,
    }
    if parsed.front_matter_error:
        console.print(f"Front matter ignored: {parsed.front_matter_error}", style="yellow")

    print(json.dumps(output, indent=2, ensure_ascii=False))
    return 0
