"""Tiered search index construction."""

import re
from collections.abc import Iterable

from ..config import DM_SNIPPET_CHARS, PLAYER_SNIPPET_CHARS
from ..models import Document, SearchIndexEntry

HTML_TAG_PATTERN = re.compile(r"<[^>]+>")
MARKDOWN_LINK_PATTERN = re.compile(r"\[([^\]]*)\]\([^)]*\)")
MARKDOWN_NOISE_PATTERN = re.compile(r"[#*_\[\]]")
WHITESPACE_PATTERN = re.compile(r"\s+")


def sanitize(text: str, limit: int) -> str:
    """Strip markup from text and cap it at `limit` characters."""
    text = HTML_TAG_PATTERN.sub(" ", text)
    text = MARKDOWN_LINK_PATTERN.sub(r"\1", text)
    text = MARKDOWN_NOISE_PATTERN.sub(" ", text)
    return WHITESPACE_PATTERN.sub(" ", text).strip()[:limit].rstrip()


def player_entry(doc: Document, limit: int = PLAYER_SNIPPET_CHARS) -> SearchIndexEntry | None:
    """Entry built only from player-visible tiers; None if there are none."""
    # secret_knowledge must never be read here
    content = " ".join(part for part in (doc.at_a_glance, doc.common_knowledge) if part)
    if not content:
        return None
    return SearchIndexEntry(
        slug=doc.slug,
        category=doc.category,
        title=doc.title,
        content=sanitize(content, limit),
        tier="common-knowledge",
    )


def dm_entry(doc: Document, limit: int = DM_SNIPPET_CHARS) -> SearchIndexEntry | None:
    """Entry built from all three tiers; None if the document has no tier content."""
    content = " ".join(part for part in (doc.at_a_glance, doc.common_knowledge, doc.secret_knowledge) if part)
    if not content:
        return None
    return SearchIndexEntry(
        slug=doc.slug,
        category=doc.category,
        title=doc.title,
        content=sanitize(content, limit),
        tier="secret-knowledge",
    )


def build_search_indices(
    documents: Iterable[Document],
    player_chars: int = PLAYER_SNIPPET_CHARS,
    dm_chars: int = DM_SNIPPET_CHARS,
) -> tuple[list[SearchIndexEntry], list[SearchIndexEntry]]:
    """Build the (player, dm) search indices.

    Each document contributes at most one entry to each index, independently.
    """
    player_index: list[SearchIndexEntry] = []
    dm_index: list[SearchIndexEntry] = []

    for doc in documents:
        entry = player_entry(doc, player_chars)
        if entry is not None:
            player_index.append(entry)
        entry = dm_entry(doc, dm_chars)
        if entry is not None:
            dm_index.append(entry)

    return player_index, dm_index
