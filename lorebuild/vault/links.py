"""Link registry construction and wiki-link resolution."""

import html
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import PurePosixPath
from types import MappingProxyType

from ..models import Document
from .parser import WIKILINK_PATTERN, split_target


@dataclass(frozen=True)
class RegistryCollision:
    """Two documents claimed the same registry key; the later one won."""

    key: str
    previous_url: str
    url: str
    source_path: str


@dataclass(frozen=True)
class LinkRegistry:
    """Immutable display-key -> URL map used to resolve wiki-links.

    Lookups try the exact key, then a case-insensitive match, then the last
    segment of a path-style target (``02-Geography/Veraheim``).
    """

    entries: Mapping[str, str] = field(default_factory=dict)
    collisions: tuple[RegistryCollision, ...] = ()
    _folded: Mapping[str, str] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        entries = dict(self.entries)
        folded = {key.casefold(): url for key, url in entries.items()}
        object.__setattr__(self, "entries", MappingProxyType(entries))
        object.__setattr__(self, "_folded", MappingProxyType(folded))

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.resolve(key) is not None

    def resolve(self, page: str) -> str | None:
        """Return the URL for a page name, or None if unknown."""
        page = page.strip()
        if not page:
            return None

        url = self.entries.get(page) or self._folded.get(page.casefold())
        if url is None and "/" in page:
            name = PurePosixPath(page).name
            if name.lower().endswith(".md"):
                name = name[:-3]
            return self.resolve(name) if name and name != page else None
        return url

    def to_dict(self) -> dict[str, str]:
        return dict(self.entries)


def build_link_registry(documents: Iterable[Document]) -> LinkRegistry:
    """Fold every document's title and filename stem into a registry.

    Must only be called once every document has been parsed and placed:
    any document may reference any other. On key collisions the later
    document wins and the collision is recorded.
    """
    entries: dict[str, str] = {}
    collisions: list[RegistryCollision] = []

    for doc in documents:
        url = doc.url
        keys = [doc.title]
        if doc.stem != doc.title:
            keys.append(doc.stem)

        for key in keys:
            previous = entries.get(key)
            if previous is not None and previous != url:
                collisions.append(RegistryCollision(key, previous, url, doc.source_path))
            entries[key] = url

    return LinkRegistry(entries, tuple(collisions))


def broken_reference(page: str, display: str) -> str:
    """Inline marker for a reference whose target is not in the registry."""
    target = html.escape(page, quote=True)
    return (
        f'<span class="broken-link" data-target="{target}" title="Page not found: {target}">'
        f"{html.escape(display, quote=False)}</span>"
    )


def resolve_references(content: str, registry: LinkRegistry) -> str:
    """Rewrite every [[Target#anchor|Display]] in content.

    Known targets become markdown links to their URL; unknown targets become
    a broken-link span carrying the target name. Never raises.
    """

    def _replace(match) -> str:
        page, anchor = split_target(match.group(1))
        display = (match.group(2) or "").strip() or page or (anchor or "")

        if not page:
            # [[#Section]] points into the current document
            return f"[{display}](#{anchor})" if anchor else match.group(0)

        url = registry.resolve(page)
        if url is None:
            return broken_reference(page, display)
        return f"[{display}]({url}#{anchor})" if anchor else f"[{display}]({url})"

    return WIKILINK_PATTERN.sub(_replace, content)


def unresolved_references(content: str, registry: LinkRegistry) -> list[str]:
    """Page names referenced in content that the registry cannot resolve."""
    missing: list[str] = []
    for match in WIKILINK_PATTERN.finditer(content):
        page, _ = split_target(match.group(1))
        if page and registry.resolve(page) is None and page not in missing:
            missing.append(page)
    return missing


def resolve_document(doc: Document, registry: LinkRegistry) -> Document:
    """Resolve references in the three tiers and the raw body with one registry."""
    return replace(
        doc,
        at_a_glance=resolve_references(doc.at_a_glance, registry),
        common_knowledge=resolve_references(doc.common_knowledge, registry),
        secret_knowledge=resolve_references(doc.secret_knowledge, registry),
        raw_body=resolve_references(doc.raw_body, registry),
    )
