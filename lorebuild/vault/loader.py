"""Vault loading: parse every file, build the link registry, resolve references."""

from dataclasses import dataclass, field
from pathlib import Path

from ..config import BuildConfig
from ..models import UNTITLED, BuildIssue, Document, ParsedDocument
from .links import LinkRegistry, build_link_registry, resolve_document, unresolved_references
from .naming import path_to_category, slugify
from .parser import parse_document
from .scanner import find_markdown_files


@dataclass
class Vault:
    """Container for a fully compiled vault."""

    path: Path
    documents: list[Document] = field(default_factory=list)  # published, resolved
    excluded: list[Document] = field(default_factory=list)  # excluded categories, unresolved
    registry: LinkRegistry = field(default_factory=LinkRegistry)
    issues: list[BuildIssue] = field(default_factory=list)
    file_count: int = 0

    def get(self, category: str, slug: str) -> Document | None:
        for doc in self.documents:
            if doc.category == category and doc.slug == slug:
                return doc
        return None

    @property
    def by_category(self) -> dict[str, list[Document]]:
        grouped: dict[str, list[Document]] = {}
        for doc in self.documents:
            grouped.setdefault(doc.category, []).append(doc)
        return grouped


def read_source(path: Path) -> str:
    """Read one vault file as UTF-8. Raises OSError / UnicodeDecodeError."""
    return path.read_text(encoding="utf-8")


def load_document(path: Path, vault_path: Path, config: BuildConfig) -> Document:
    """Read, parse and place a single file (no reference resolution)."""
    relative = path.relative_to(vault_path).as_posix()
    parsed = parse_document(
        read_source(path),
        relative,
        tier_aliases=config.tier_aliases,
        structural_sections=config.structural_sections,
    )
    slug = slugify(parsed.title) or slugify(parsed.stem) or "untitled"
    category = path_to_category(relative, config.categories)
    return Document.from_parsed(parsed, slug=slug, category=category)


def _parse_issues(doc: ParsedDocument) -> list[BuildIssue]:
    issues = []
    if doc.front_matter_error:
        issues.append(
            BuildIssue("warning", "malformed-front-matter", f"front matter ignored: {doc.front_matter_error}", doc.source_path)
        )
    if doc.title == UNTITLED:
        issues.append(BuildIssue("info", "missing-title", "no level-1 heading; titled 'Untitled'", doc.source_path))
    if doc.used_fallback:
        issues.append(
            BuildIssue("info", "fallback-partition", "no tier headings; sections partitioned free-form", doc.source_path)
        )
    return issues


def parse_vault(vault_path: Path, config: BuildConfig) -> tuple[list[Document], list[BuildIssue], int]:
    """First pass: read and parse every markdown file in the vault.

    Unreadable files are reported and skipped.

    Returns:
        (documents, issues, file_count)
    """
    documents: list[Document] = []
    issues: list[BuildIssue] = []

    files = find_markdown_files(vault_path)
    for md_file in files:
        try:
            doc = load_document(md_file, vault_path, config)
        except (OSError, UnicodeDecodeError) as e:
            rel = md_file.relative_to(vault_path).as_posix()
            issues.append(BuildIssue("error", "unreadable-file", f"skipped: {e}", rel))
            continue
        documents.append(doc)
        issues.extend(_parse_issues(doc))

    return documents, issues, len(files)


def dedupe_slugs(documents: list[Document]) -> tuple[list[Document], list[BuildIssue]]:
    """Keep the last document for each (category, slug); report the rest."""
    latest: dict[tuple[str, str], Document] = {}
    issues = []
    for doc in documents:
        key = (doc.category, doc.slug)
        previous = latest.get(key)
        if previous is not None:
            issues.append(
                BuildIssue(
                    "warning",
                    "slug-collision",
                    f"'{doc.url}' also produced by {previous.source_path}; this document wins",
                    doc.source_path,
                )
            )
        latest[key] = doc
    kept = set(id(d) for d in latest.values())
    return [d for d in documents if id(d) in kept], issues


def _reference_issues(documents: list[Document], registry: LinkRegistry, excluded: LinkRegistry) -> list[BuildIssue]:
    issues = []
    for doc in documents:
        for page in unresolved_references(doc.raw_body, registry):
            if excluded.resolve(page) is not None:
                issues.append(
                    BuildIssue("warning", "excluded-reference", f"[[{page}]] points at unpublished content", doc.source_path)
                )
            else:
                issues.append(BuildIssue("warning", "broken-reference", f"[[{page}]] not found", doc.source_path))
    return issues


def load_vault(vault_path: Path, config: BuildConfig | None = None) -> Vault:
    """Load and compile all markdown files from the vault.

    Phases run strictly in order: parse everything, build the registry from
    published documents, then resolve every document against it.

    Args:
        vault_path: Path to the vault root
        config: Build configuration (defaults to BuildConfig())

    Returns:
        Vault with resolved, published documents and collected issues
    """
    config = config or BuildConfig()
    vault_path = vault_path.absolute()

    parsed, issues, file_count = parse_vault(vault_path, config)
    parsed, slug_issues = dedupe_slugs(parsed)
    issues.extend(slug_issues)

    published = [d for d in parsed if d.category not in config.excluded_categories]
    excluded = [d for d in parsed if d.category in config.excluded_categories]

    registry = build_link_registry(published)
    for collision in registry.collisions:
        issues.append(
            BuildIssue(
                "warning",
                "title-collision",
                f"'{collision.key}' now resolves to {collision.url} (was {collision.previous_url})",
                collision.source_path,
            )
        )

    issues.extend(_reference_issues(published, registry, build_link_registry(excluded)))

    documents = [resolve_document(doc, registry) for doc in published]

    return Vault(
        path=vault_path,
        documents=documents,
        excluded=excluded,
        registry=registry,
        issues=issues,
        file_count=file_count,
    )
