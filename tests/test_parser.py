from pathlib import Path

from lorebuild.config import AT_A_GLANCE, COMMON_KNOWLEDGE, DEFAULT_TIER_ALIASES, SECRET_KNOWLEDGE
from lorebuild.models import UNTITLED
from lorebuild.vault.parser import (
    extract_links,
    extract_section,
    parse_document,
    parse_metadata_table,
    parse_wiki_links,
    split_sections,
)


def _doc(lines: list[str], path: str = "02-Geography/Test.md", **kwargs):
    return parse_document("\n".join(lines) + "\n", path, **kwargs)


def test_parse_fixture_veraheim(fixture_vault_path: Path) -> None:
    path = fixture_vault_path / "02-Geography" / "Veraheim" / "Veraheim.md"
    doc = parse_document(path.read_text(encoding="utf-8"), "02-Geography/Veraheim/Veraheim.md")

    assert doc.title == "Veraheim"
    assert doc.epigraph == "Every exile finds a door here."
    assert doc.at_a_glance == "A city of refuge on the edge of the Broken Isles. See [[Aelindor]]."
    assert doc.common_knowledge.startswith("The harbor is ringed by [[The Floating Docks]].")
    assert doc.secret_knowledge == "Secretly allied with the drow of the Underdeep."
    assert doc.connections_diagram == "graph TD\n  Veraheim --> Aelindor"
    assert doc.outbound_references == [
        "Vera Wyrdweaver",
        "Aelindor",
        "The Floating Docks",
        "Thaelen Ruincalen#History",
    ]
    assert doc.see_also == ["Aelindor", "Thaelen Ruincalen"]
    assert doc.used_fallback is False
    assert doc.stem == "Veraheim"
    assert not doc.raw_body.startswith("---")
    assert "# Veraheim" in doc.raw_body


def test_yaml_front_matter_wins_over_table(fixture_vault_path: Path) -> None:
    path = fixture_vault_path / "02-Geography" / "Veraheim" / "Veraheim.md"
    doc = parse_document(path.read_text(encoding="utf-8"), "02-Geography/Veraheim/Veraheim.md")

    assert doc.metadata["Population"] == "12,000"
    assert doc.metadata["Type"] == "City-state"
    assert doc.metadata["Ruler"] == "[[Vera Wyrdweaver]]"
    assert doc.metadata["type"] == "settlement"
    assert doc.metadata["tags"] == "city, sanctuary"
    assert list(doc.metadata)[:3] == ["Type", "Population", "Ruler"]


def test_missing_title_defaults_to_untitled() -> None:
    doc = _doc(["Just some text.", "", "## At a Glance", "", "Hello."])
    assert doc.title == UNTITLED
    assert doc.at_a_glance == "Hello."


def test_heading_inside_code_fence_is_not_a_title_or_section() -> None:
    doc = _doc(
        [
            "```bash",
            "# not a title",
            "## Not A Section",
            "```",
            "# Real Title",
            "",
            "## At a Glance",
            "",
            "```",
            "## still code",
            "```",
            "After the code.",
        ]
    )
    assert doc.title == "Real Title"
    assert "## still code" in doc.at_a_glance
    assert doc.at_a_glance.endswith("After the code.")


def test_alias_headings_are_used_in_order() -> None:
    doc = _doc(
        [
            "# Freehold Harbor",
            "## Summary",
            "Second choice.",
            "## Overview",
            "First alias wins over later aliases.",
            "## Key Facts",
            "Everyone knows this.",
            "## Secrets",
            "Smugglers run the harbor.",
        ]
    )
    assert doc.at_a_glance == "First alias wins over later aliases."
    assert doc.common_knowledge == "Everyone knows this."
    assert doc.secret_knowledge == "Smugglers run the harbor."
    assert doc.used_fallback is False


def test_primary_heading_beats_alias_and_matches_case_insensitively() -> None:
    doc = _doc(["# Mistwood", "## Overview", "Alias text.", "## at a glance", "Primary text."])
    assert doc.at_a_glance == "Primary text."


def test_custom_alias_table() -> None:
    aliases = dict(DEFAULT_TIER_ALIASES)
    aliases[AT_A_GLANCE] = ("In Brief",)
    doc = _doc(["# Ironhold", "## In Brief", "A mining town.", "## Overview", "Ignored."], tier_aliases=aliases)
    assert doc.at_a_glance == "A mining town."


def test_description_line_is_stripped_once() -> None:
    doc = _doc(
        [
            "# Saltmere",
            "## Common Knowledge",
            "> **What sailors say**",
            "",
            "> **Bold quote kept**",
            "Salt flats.",
        ]
    )
    assert doc.common_knowledge == "> **Bold quote kept**\nSalt flats."


def test_free_form_fallback_partitioning() -> None:
    doc = _doc(
        [
            "# Thaelen Ruincalen",
            "## Appearance",
            "Tall, ash-grey hair.",
            "## History",
            "Exiled a century ago.",
            "## DM Secrets",
            "Last heir of the line.",
            "## Secret Allies",
            "The drow.",
            "## Personality",
            "Careful.",
            "## See Also",
            "- [[Vera Wyrdweaver]]",
            "## Notes",
            "Voice: slow.",
        ]
    )
    assert doc.used_fallback is True
    assert doc.at_a_glance == "Tall, ash-grey hair."
    assert doc.common_knowledge == "### History\n\nExiled a century ago.\n\n### Personality\n\nCareful."
    assert doc.secret_knowledge == "Last heir of the line.\n\nThe drow."
    assert "Voice" not in doc.common_knowledge
    assert "Vera" not in doc.common_knowledge


def test_fallback_first_section_is_always_at_a_glance() -> None:
    doc = _doc(["# Ruins", "## Secret History", "Body text."])
    assert doc.used_fallback is True
    assert doc.at_a_glance == "Body text."
    assert doc.secret_knowledge == ""


def test_fallback_dm_sections_after_the_first_are_secret() -> None:
    doc = _doc(
        [
            "# Copperhill",
            "## Geography",
            "Hills of copper.",
            "## DM Notes on the Mine",
            "Cursed.",
            "## Trade",
            "Ore and wool.",
        ]
    )
    assert doc.at_a_glance == "Hills of copper."
    assert doc.common_knowledge == "### Trade\n\nOre and wool."
    assert doc.secret_knowledge == "Cursed."


def test_default_aliases_cover_npc_headings() -> None:
    doc = _doc(
        [
            "# Vera Wyrdweaver",
            "## Overview",
            "Ruler of Veraheim.",
            "## Personality & Approach",
            "Patient and exacting.",
            "## Secret (DM Only)",
            "She bargained with the drow.",
            "## Quick Reference",
            "AC 15",
        ]
    )
    assert doc.used_fallback is False
    assert doc.at_a_glance == "Ruler of Veraheim."
    assert doc.common_knowledge == "Patient and exacting."
    assert doc.secret_knowledge == "She bargained with the drow."


def test_common_and_secret_tiers_join_every_alias_match() -> None:
    doc = _doc(
        [
            "# Stormcrag",
            "## At a Glance",
            "A.",
            "## DM Notes",
            "S2.",
            "## Key Facts",
            "C2.",
            "## Secret Knowledge",
            "S1.",
            "## Common Knowledge",
            "C1.",
            "## Summary",
            "Ignored glance.",
        ]
    )
    assert doc.at_a_glance == "A."
    assert doc.common_knowledge == "C1.\n\nC2."
    assert doc.secret_knowledge == "S1.\n\nS2."
    assert doc.used_fallback is False


def test_fallback_skips_alias_and_structural_sections() -> None:
    doc = _doc(
        [
            "# Skarath",
            "## Combat Statistics",
            "HP 200",
            "## Secrets",
            "Hoards cursed gold.",
            "## Lair",
            "A volcanic caldera.",
            "## Connections Map",
            "- [[Stormcrag]]",
        ]
    )
    assert doc.used_fallback is True
    assert doc.at_a_glance == "A volcanic caldera."
    assert doc.common_knowledge == ""
    assert doc.secret_knowledge == "Hoards cursed gold."


def test_fallback_keeps_aliased_secret_section() -> None:
    doc = _doc(["# Stormcrag", "## Lay of the Land", "Cliffs.", "## Secret Knowledge", "A buried vault."])
    assert doc.used_fallback is True
    assert doc.at_a_glance == "Cliffs."
    assert doc.common_knowledge == ""
    assert doc.secret_knowledge == "A buried vault."


def test_fallback_with_any_section_yields_at_a_glance() -> None:
    for heading in ("Geography", "Culture and Customs", "The Founding (80 Years Ago)"):
        doc = _doc(["# Somewhere", f"## {heading}", "Body text."])
        assert doc.at_a_glance == "Body text."


def test_no_sections_means_no_tiers() -> None:
    doc = _doc(["# Calendar", "", "Twelve months."])
    assert (doc.at_a_glance, doc.common_knowledge, doc.secret_knowledge) == ("", "", "")
    assert doc.used_fallback is False


def test_connections_without_diagram() -> None:
    doc = _doc(["# Skarath", "## Connections", "- [[Stormcrag]]"])
    assert doc.connections_diagram is None


def test_malformed_front_matter_degrades() -> None:
    doc = _doc(["---", "title: [unclosed", "  - : :", "---", "# Broken Isles", "## At a Glance", "Islands."])
    assert doc.front_matter_error
    assert doc.title == "Broken Isles"
    assert doc.at_a_glance == "Islands."
    assert doc.metadata == {}
    assert "unclosed" not in doc.raw_body


def test_epigraph_absent() -> None:
    assert _doc(["# Plain", "> just a quote"]).epigraph is None


def test_parse_metadata_table_strips_bold_keys() -> None:
    content = "\n".join(
        [
            "| | |",
            "|---|---|",
            "| **Race** | Elf |",
            "| **Age** | 412 |",
            "",
            "Prose after the table.",
        ]
    )
    assert parse_metadata_table(content) == {"Race": "Elf", "Age": "412"}


def test_parse_metadata_table_ignores_wider_tables() -> None:
    content = "| Name | Role | Notes |\n|---|---|---|\n| A | B | C |\n"
    assert parse_metadata_table(content) == {}


def test_extract_links_keeps_anchor_and_dedupes() -> None:
    content = "[[Aelindor]] and [[Aelindor|the capital]], [[Veraheim#Docks]], ![[map.png]], [[Ironhold\\|Iron]]"
    assert extract_links(content) == ["Aelindor", "Veraheim#Docks", "Ironhold"]


def test_parse_wiki_links() -> None:
    links = parse_wiki_links("See [[Veraheim#History|the old city]] and [[Aelindor]].")
    assert [(l.target, l.anchor, l.display) for l in links] == [
        ("Veraheim", "History", "the old city"),
        ("Aelindor", None, "Aelindor"),
    ]


def test_extract_section_and_split_sections() -> None:
    content = "# T\nintro\n## One ##\nfirst\n### Sub\nnested\n## Two\nsecond"
    sections = split_sections(content)
    assert [s.heading for s in sections] == ["One", "Two"]
    assert extract_section(content, "one") == "first\n### Sub\nnested"
    assert extract_section(content, "Three") is None


def test_tier_keys_are_fixed() -> None:
    assert set(DEFAULT_TIER_ALIASES) == {AT_A_GLANCE, COMMON_KNOWLEDGE, SECRET_KNOWLEDGE}
