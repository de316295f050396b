"""Show command implementation - browse built content."""

import json

from rich.console import Console
from rich.table import Table

from ..config import BuildConfig
from ..content.reader import ContentReader, player_view


def run_show(config: BuildConfig, category: str, slug: str | None = None, tier: str = "dm") -> int:
    """List a category's documents, or print one document as JSON.

    The player tier hides secret knowledge and the raw body.
    """
    console = Console(stderr=True)
    reader = ContentReader(config.output_dir, config.search_dir)

    try:
        known = reader.get_category(category)
    except FileNotFoundError:
        console.print(f"No built content in {config.output_dir}; run 'lorebuild build' first", style="bold red")
        return 1

    if known is None:
        console.print(f"Unknown category: {category}", style="bold red")
        return 1

    if slug is None:
        table = Table(title=known["name"])
        table.add_column("Slug", style="cyan")
        table.add_column("Title")
        table.add_column("Tiers")
        for doc in reader.get_documents_by_category(category):
            tiers = [
                label
                for label, key in (("glance", "atAGlance"), ("common", "commonKnowledge"), ("secret", "secretKnowledge"))
                if doc.get(key) and (tier == "dm" or key != "secretKnowledge")
            ]
            table.add_row(doc["slug"], doc["title"], ", ".join(tiers))
        Console().print(table)
        return 0

    document = reader.get_document(category, slug)
    if document is None:
        console.print(f"Not found: /{category}/{slug}", style="bold red")
        return 1

    if tier == "player":
        document = player_view(document)
    print(json.dumps(document, indent=2, ensure_ascii=False))
    return 0
