"""Data models for compiled vault documents."""

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Literal

IssueLevel = Literal["error", "warning", "info"]

# Tier labels carried by search index entries
SearchTier = Literal["common-knowledge", "secret-knowledge"]

UNTITLED = "Untitled"


@dataclass(frozen=True)
class Category:
    """A hand-authored content category."""

    slug: str
    name: str
    description: str
    path: str  # vault folder that maps to this category

    def to_dict(self) -> dict[str, str]:
        return {
            "slug": self.slug,
            "name": self.name,
            "description": self.description,
            "path": self.path,
        }


@dataclass(frozen=True)
class WikiLink:
    """A parsed [[target#anchor|display]] reference."""

    display: str
    target: str
    anchor: str | None = None


@dataclass(frozen=True, kw_only=True)
class ParsedDocument:
    """A single markdown file parsed into its structural parts."""

    title: str
    source_path: str  # vault-relative, forward slashes
    raw_body: str  # markdown after front matter removal
    metadata: dict[str, str] = field(default_factory=dict)
    epigraph: str | None = None
    at_a_glance: str = ""
    common_knowledge: str = ""
    secret_knowledge: str = ""
    connections_diagram: str | None = None
    outbound_references: list[str] = field(default_factory=list)
    see_also: list[str] = field(default_factory=list)

    # Parse diagnostics, not serialized
    used_fallback: bool = field(default=False, compare=False)
    front_matter_error: str | None = field(default=None, compare=False)

    @property
    def stem(self) -> str:
        """Source filename without extension."""
        return PurePosixPath(self.source_path).stem

    @property
    def is_player_visible(self) -> bool:
        return bool(self.at_a_glance or self.common_knowledge)

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "metadata": dict(self.metadata),
            "epigraph": self.epigraph,
            "atAGlance": self.at_a_glance,
            "commonKnowledge": self.common_knowledge,
            "secretKnowledge": self.secret_knowledge,
            "connectionsDiagram": self.connections_diagram,
            "outboundReferences": list(self.outbound_references),
            "seeAlso": list(self.see_also),
            "rawBody": self.raw_body,
            "sourcePath": self.source_path,
        }


@dataclass(frozen=True, kw_only=True)
class Document(ParsedDocument):
    """A parsed document placed in a category, with references resolved."""

    slug: str
    category: str

    @classmethod
    def from_parsed(cls, parsed: ParsedDocument, slug: str, category: str) -> "Document":
        values = {name: getattr(parsed, name) for name in parsed.__dataclass_fields__}
        return cls(slug=slug, category=category, **values)

    @property
    def url(self) -> str:
        return f"/{self.category}/{self.slug}"

    def summary(self) -> "DocumentSummary":
        return DocumentSummary(
            slug=self.slug,
            category=self.category,
            title=self.title,
            has_at_a_glance=bool(self.at_a_glance),
            has_common_knowledge=bool(self.common_knowledge),
            has_secret_knowledge=bool(self.secret_knowledge),
        )

    def to_dict(self) -> dict:
        return {"slug": self.slug, "category": self.category, **super().to_dict()}


@dataclass(frozen=True)
class DocumentSummary:
    """Manifest entry describing one published document."""

    slug: str
    category: str
    title: str
    has_at_a_glance: bool = False
    has_common_knowledge: bool = False
    has_secret_knowledge: bool = False

    def to_dict(self) -> dict:
        return {
            "slug": self.slug,
            "category": self.category,
            "title": self.title,
            "hasSections": {
                "atAGlance": self.has_at_a_glance,
                "commonKnowledge": self.has_common_knowledge,
                "secretKnowledge": self.has_secret_knowledge,
            },
        }


@dataclass(frozen=True)
class SearchIndexEntry:
    """One document's searchable text for a single access tier."""

    slug: str
    category: str
    title: str
    content: str
    tier: SearchTier

    def to_dict(self) -> dict[str, str]:
        return {
            "slug": self.slug,
            "category": self.category,
            "title": self.title,
            "content": self.content,
            "tier": self.tier,
        }


@dataclass(frozen=True)
class Manifest:
    """Cross-reference artifact consumed by the front end."""

    categories: list[Category]
    documents: list[DocumentSummary]
    link_registry: dict[str, str]
    generated_at: str

    def to_dict(self) -> dict:
        return {
            "categories": [c.to_dict() for c in self.categories],
            "documents": [d.to_dict() for d in self.documents],
            "linkRegistry": dict(self.link_registry),
            "generatedAt": self.generated_at,
        }


@dataclass(frozen=True)
class BuildIssue:
    """A single diagnostic raised while compiling the vault."""

    level: IssueLevel
    code: str
    message: str
    path: str | None = None

    def __str__(self) -> str:
        loc = f" {self.path} -" if self.path else ""
        return f"{self.level.upper()}: [{self.code}]{loc} {self.message}"
