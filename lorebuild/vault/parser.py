"""Markdown parsing utilities for front matter, sections, tiers, and wiki-links."""

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date

import frontmatter
import yaml

from ..config import (
    AT_A_GLANCE,
    COMMON_KNOWLEDGE,
    DEFAULT_STRUCTURAL_SECTIONS,
    DEFAULT_TIER_ALIASES,
    SECRET_KNOWLEDGE,
)
from ..models import UNTITLED, ParsedDocument, WikiLink

# Match [[target]], [[target|display]], [[target#section]], [[target#section|display]]
# Embeds (![[...]]) are not references.
WIKILINK_PATTERN = re.compile(r"(?<!!)\[\[([^\]|]+)(?:\|([^\]]+))?\]\]")

H1_PATTERN = re.compile(r"^#[ \t]+(.+?)(?:[ \t]+#+)?[ \t]*$")
H2_PATTERN = re.compile(r"^##[ \t]+(.+?)(?:[ \t]+#+)?[ \t]*$")
FENCE_PATTERN = re.compile(r"^[ \t]*(`{3,}|~{3,})")

METADATA_TABLE_PATTERN = re.compile(
    r"^\|[ \t]*\|[ \t]*\|[ \t]*\n"
    r"\|[ \t]*:?-{3,}:?[ \t]*\|[ \t]*:?-{3,}:?[ \t]*\|[ \t]*\n"
    r"((?:\|[^|\n]+\|[^|\n]+\|[ \t]*(?:\n|$))+)",
    re.MULTILINE,
)
EPIGRAPH_PATTERN = re.compile(r"^>[ \t]*\*[\"“]([^\"”\n]+)[\"”]\*[ \t]*$", re.MULTILINE)
DESCRIPTION_LINE_PATTERN = re.compile(r"^>[ \t]*\*\*.+?\*\*[ \t]*(?:\n+|$)")
MERMAID_PATTERN = re.compile(r"```mermaid[ \t]*\n(.*?)```", re.DOTALL)
FRONT_MATTER_BLOCK = re.compile(r"\A---[ \t]*\r?\n.*?\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)

# Headings that mark DM-only material in free-form documents
SECRET_HEADING_PATTERN = re.compile(r"\bDM\b|^secret", re.IGNORECASE)


@dataclass(frozen=True)
class Section:
    """A level-2 section: its heading and the text up to the next one."""

    heading: str
    body: str


def normalize_heading(text: str) -> str:
    return " ".join(text.split()).casefold()


def split_target(raw: str) -> tuple[str, str | None]:
    """Split a wiki-link target into page name and optional anchor."""
    # Escaped pipes inside tables leave a trailing backslash on the target
    target = raw.strip().rstrip("\\").strip()
    page, _, anchor = target.partition("#")
    return page.strip(), (anchor.strip() or None)


def parse_wiki_links(content: str) -> list[WikiLink]:
    """Parse every wiki-link in content, in document order."""
    links = []
    for match in WIKILINK_PATTERN.finditer(content):
        page, anchor = split_target(match.group(1))
        display = (match.group(2) or "").strip() or page or (anchor or "")
        links.append(WikiLink(display=display, target=page, anchor=anchor))
    return links


def extract_links(content: str) -> list[str]:
    """Extract all wiki-link targets from content.

    Targets keep their anchor (``Page#Section``) and original casing;
    duplicates are dropped while preserving order.
    """
    seen = set()
    result = []
    for match in WIKILINK_PATTERN.finditer(content):
        target = match.group(1).strip().rstrip("\\").strip()
        if target and target not in seen:
            seen.add(target)
            result.append(target)
    return result


def _strip_description(body: str) -> str:
    """Drop a leading '> **What anyone knows...**' description line."""
    body = body.strip()
    return DESCRIPTION_LINE_PATTERN.sub("", body, count=1).strip()


def _lines_outside_fences(content: str) -> Iterable[tuple[str, bool]]:
    """Yield (line, is_code) pairs, tracking fenced code blocks."""
    fence = None
    for line in content.split("\n"):
        match = FENCE_PATTERN.match(line)
        if match:
            marker = match.group(1)
            if fence is None:
                fence = marker
            elif marker[0] == fence[0] and len(marker) >= len(fence):
                fence = None
            yield line, True
        else:
            yield line, fence is not None


def split_sections(content: str) -> list[Section]:
    """Split markdown into level-2 sections.

    Headings inside fenced code blocks are ignored. Text before the first
    level-2 heading belongs to no section.
    """
    sections: list[Section] = []
    heading: str | None = None
    buf: list[str] = []

    for line, is_code in _lines_outside_fences(content):
        if not is_code:
            match = H2_PATTERN.match(line)
            if match:
                if heading is not None:
                    sections.append(Section(heading, _strip_description("\n".join(buf))))
                heading = match.group(1).strip()
                buf = []
                continue
        if heading is not None:
            buf.append(line)

    if heading is not None:
        sections.append(Section(heading, _strip_description("\n".join(buf))))

    return sections


def find_section(sections: Iterable[Section], header: str) -> Section | None:
    wanted = normalize_heading(header)
    for section in sections:
        if normalize_heading(section.heading) == wanted:
            return section
    return None


def extract_section(content: str, header: str) -> str | None:
    """Extract content between ## header and next ## or EOF.

    Args:
        content: Markdown content
        header: Section header text (without ##), matched case-insensitively

    Returns:
        Section content or None if not found
    """
    section = find_section(split_sections(content), header)
    return section.body if section else None


def extract_title(content: str) -> str:
    """Text of the first level-1 heading, or 'Untitled'."""
    for line, is_code in _lines_outside_fences(content):
        if is_code:
            continue
        match = H1_PATTERN.match(line)
        if match:
            return match.group(1).strip()
    return UNTITLED


def parse_metadata_table(content: str) -> dict[str, str]:
    """Parse the two-column '| | |' metadata table into key -> value."""
    metadata: dict[str, str] = {}
    match = METADATA_TABLE_PATTERN.search(content)
    if not match:
        return metadata

    for row in match.group(1).strip().split("\n"):
        cells = [cell.strip() for cell in row.strip().split("|")[1:-1]]
        if len(cells) < 2:
            continue
        key = cells[0].replace("**", "").strip()
        if key:
            metadata[key] = cells[1]
    return metadata


def extract_epigraph(content: str) -> str | None:
    match = EPIGRAPH_PATTERN.search(content)
    return match.group(1).strip() if match else None


def extract_connections(sections: Iterable[Section]) -> str | None:
    """Mermaid diagram from the Connections section, if any."""
    section = find_section(sections, "Connections")
    if not section:
        return None
    match = MERMAID_PATTERN.search(section.body)
    return match.group(1).strip() if match else None


def extract_see_also(sections: Iterable[Section]) -> list[str]:
    """Page names linked from the See Also section, anchors removed."""
    section = find_section(sections, "See Also")
    if not section:
        return []
    pages = []
    for link in parse_wiki_links(section.body):
        if link.target and link.target not in pages:
            pages.append(link.target)
    return pages


def _stringify(value) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple, set)):
        return ", ".join(_stringify(v) for v in value)
    if isinstance(value, dict):
        return ", ".join(f"{k}: {_stringify(v)}" for k, v in value.items())
    return str(value)


def split_front_matter(text: str) -> tuple[dict[str, str], str, str | None]:
    """Split YAML front matter from the body.

    Returns:
        (metadata, body, error) where error describes malformed front matter.
        Malformed front matter is discarded rather than raised.
    """
    try:
        post = frontmatter.loads(text)
    except (yaml.YAMLError, ValueError, TypeError) as e:
        match = FRONT_MATTER_BLOCK.match(text)
        body = text[match.end():] if match else text
        return {}, body, str(e).splitlines()[0] if str(e) else type(e).__name__

    metadata = {str(k): _stringify(v) for k, v in post.metadata.items()}
    return metadata, post.content, None


def match_tiers(
    sections: list[Section], tier_aliases: Mapping[str, Iterable[str]]
) -> dict[str, list[Section]]:
    """Find each tier's sections, in alias order.

    At-a-glance keeps only its first non-empty match. Common and secret
    knowledge collect every non-empty section whose heading is one of
    their aliases.
    """
    found: dict[str, list[Section]] = {}
    for tier in (AT_A_GLANCE, COMMON_KNOWLEDGE, SECRET_KNOWLEDGE):
        found[tier] = []
        for alias in tier_aliases.get(tier, ()):
            section = find_section(sections, alias)
            if section is None or not section.body or section in found[tier]:
                continue
            found[tier].append(section)
            if tier == AT_A_GLANCE:
                break
    return found


def _join_bodies(sections: Iterable[Section]) -> str:
    return "\n\n".join(section.body for section in sections)


def partition_free_form(
    sections: list[Section],
    structural_sections: Iterable[str],
    aliased_headings: Iterable[str] = (),
) -> tuple[str, str, str]:
    """Partition free-form sections into (at a glance, common, secret).

    Structural sections and sections named by a tier alias are ignored.
    The first remaining non-empty section is the at-a-glance text. Of the
    rest, DM sections (a 'DM' heading or one starting with 'Secret') are
    secret; the others are joined under ### headings as common knowledge.
    """
    skip = {normalize_heading(s) for s in structural_sections}
    skip.update(normalize_heading(h) for h in aliased_headings)

    content = [s for s in sections if s.body and normalize_heading(s.heading) not in skip]
    if not content:
        return "", "", ""

    common_parts: list[str] = []
    secret_parts: list[str] = []
    for section in content[1:]:
        if SECRET_HEADING_PATTERN.search(section.heading.strip()):
            secret_parts.append(section.body)
        else:
            common_parts.append(f"### {section.heading}\n\n{section.body}")

    return content[0].body, "\n\n".join(common_parts), "\n\n".join(secret_parts)


def parse_document(
    text: str,
    source_path: str,
    tier_aliases: Mapping[str, Iterable[str]] | None = None,
    structural_sections: Iterable[str] | None = None,
) -> ParsedDocument:
    """Parse one markdown file into a ParsedDocument.

    Never raises on malformed content: every missing part degrades to an
    empty or absent value.

    Args:
        text: Raw file contents
        source_path: Vault-relative path of the file
        tier_aliases: Tier -> ordered accepted headings (defaults to DEFAULT_TIER_ALIASES)
        structural_sections: Headings excluded from free-form partitioning

    Returns:
        ParsedDocument
    """
    tier_aliases = DEFAULT_TIER_ALIASES if tier_aliases is None else tier_aliases
    structural_sections = DEFAULT_STRUCTURAL_SECTIONS if structural_sections is None else structural_sections

    yaml_meta, body, fm_error = split_front_matter(text)

    # YAML keys override table keys on collision
    metadata = parse_metadata_table(body)
    metadata.update(yaml_meta)

    sections = split_sections(body)
    tiers = match_tiers(sections, tier_aliases)

    at_a_glance = _join_bodies(tiers[AT_A_GLANCE])
    common_knowledge = _join_bodies(tiers[COMMON_KNOWLEDGE])
    secret_knowledge = _join_bodies(tiers[SECRET_KNOWLEDGE])

    used_fallback = False
    if not at_a_glance and not common_knowledge and sections:
        used_fallback = True
        aliased = [alias for names in tier_aliases.values() for alias in names]
        at_a_glance, common_knowledge, extra_secret = partition_free_form(sections, structural_sections, aliased)
        secret_knowledge = "\n\n".join(part for part in (secret_knowledge, extra_secret) if part)

    return ParsedDocument(
        title=extract_title(body),
        source_path=source_path.replace("\\", "/"),
        raw_body=body,
        metadata=metadata,
        epigraph=extract_epigraph(body),
        at_a_glance=at_a_glance,
        common_knowledge=common_knowledge,
        secret_knowledge=secret_knowledge,
        connections_diagram=extract_connections(sections),
        outbound_references=extract_links(body),
        see_also=extract_see_also(sections),
        used_fallback=used_fallback,
        front_matter_error=fm_error,
    )
