"""Read-side access to built content artifacts."""

import json
from pathlib import Path
from typing import Any, Literal

# Fields that only the DM view may see
DM_ONLY_FIELDS = ("secretKnowledge", "rawBody")


def player_view(document: dict[str, Any]) -> dict[str, Any]:
    """Copy of a document JSON with DM-only fields removed."""
    return {key: value for key, value in document.items() if key not in DM_ONLY_FIELDS}


class ContentReader:
    """Loads documents, the manifest and search indices from a build's output."""

    def __init__(self, output_dir: Path, public_dir: Path | None = None):
        self.output_dir = Path(output_dir)
        self.public_dir = Path(public_dir) if public_dir is not None else self.output_dir

    def _read(self, path: Path) -> Any:
        return json.loads(path.read_text(encoding="utf-8"))

    def get_manifest(self) -> dict[str, Any]:
        """Load the manifest. Raises FileNotFoundError if no build exists."""
        return self._read(self.output_dir / "manifest.json")

    def get_category(self, slug: str) -> dict[str, Any] | None:
        for category in self.get_manifest()["categories"]:
            if category["slug"] == slug:
                return category
        return None

    def get_document(self, category: str, slug: str) -> dict[str, Any] | None:
        path = self.output_dir / "documents" / category / f"{slug}.json"
        if not path.is_file():
            return None
        return self._read(path)

    def get_documents_by_category(self, category: str) -> list[dict[str, Any]]:
        """All documents in a category, sorted by title."""
        category_dir = self.output_dir / "documents" / category
        if not category_dir.is_dir():
            return []
        documents = [self._read(p) for p in sorted(category_dir.glob("*.json"))]
        return sorted(documents, key=lambda d: d["title"].casefold())

    def get_all_document_paths(self) -> list[dict[str, str]]:
        """(category, slug) pairs for every published document."""
        return [{"category": d["category"], "slug": d["slug"]} for d in self.get_manifest()["documents"]]

    def get_search_index(self, tier: Literal["player", "dm"]) -> list[dict[str, Any]]:
        if tier not in ("player", "dm"):
            raise ValueError(f"unknown search tier: {tier}")
        path = self.public_dir / f"search-{tier}.json"
        if not path.is_file():
            return []
        return self._read(path)
