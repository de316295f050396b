import pytest

from lorebuild.config import MISC_CATEGORY
from lorebuild.models import Category
from lorebuild.vault.naming import path_to_category, slugify


@pytest.mark.parametrize(
    "title, expected",
    [
        ("Thaelen Ruincalen", "thaelen-ruincalen"),
        ("The Founding (80 Years Ago)", "the-founding-80-years-ago"),
        ("  Veraheim: City Layout & Structure  ", "veraheim-city-layout-structure"),
        ("Élan d'Aelindor", "elan-d-aelindor"),
        ("---", ""),
    ],
)
def test_slugify_examples(title: str, expected: str) -> None:
    assert slugify(title) == expected


@pytest.mark.parametrize(
    "title",
    ["Thaelen Ruincalen", "Emperor Valandor Aethril", "Drow -- Culture & Society!", "already-a-slug", "ÀÉÎ õü"],
)
def test_slugify_is_idempotent(title: str) -> None:
    once = slugify(title)
    assert slugify(once) == once


def test_slugify_is_url_safe() -> None:
    slug = slugify("Who's who? (Part 2/3) — Court of Aelindor")
    assert slug == "who-s-who-part-2-3-court-of-aelindor"
    assert all(c.isalnum() or c == "-" for c in slug)
    assert not slug.startswith("-") and not slug.endswith("-")


@pytest.mark.parametrize(
    "path, expected",
    [
        ("02-Geography/Veraheim.md", "geography"),
        ("02-Geography/Veraheim/Floating Docks.md", "geography"),
        ("Lore/06-NPCs/Veraheim/Vera Wyrdweaver.md", "npcs"),
        ("01-World\\Magic\\Items.md", "world"),
        ("Misc/README.md", MISC_CATEGORY),
        ("Veraheim.md", MISC_CATEGORY),
    ],
)
def test_path_to_category(path: str, expected: str) -> None:
    assert path_to_category(path) == expected


def test_path_to_category_outermost_segment_wins() -> None:
    assert path_to_category("04-Factions/02-Geography/Aloria.md") == "factions"


def test_path_to_category_custom_table() -> None:
    categories = [
        Category("gods", "Gods", "", "Pantheon"),
        Category("places", "Places", "", "Atlas"),
    ]
    assert path_to_category("Atlas/Pantheon/Shrine.md", categories) == "places"
    assert path_to_category("02-Geography/Veraheim.md", categories) == MISC_CATEGORY
