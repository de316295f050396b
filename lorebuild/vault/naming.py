"""Category mapping and slug generation."""

import re
import unicodedata
from collections.abc import Sequence
from pathlib import PurePosixPath

from ..config import DEFAULT_CATEGORIES, MISC_CATEGORY
from ..models import Category

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """Derive a URL-safe slug from a title.

    Accents are folded to ASCII, then every run of non-alphanumeric
    characters becomes a single hyphen:

        >>> slugify("Thaelen Ruincalen")
        'thaelen-ruincalen'
        >>> slugify("The Founding (80 Years Ago)")
        'the-founding-80-years-ago'
    """
    folded = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    return _NON_ALNUM.sub("-", folded.lower()).strip("-")


def path_parts(relative_path: str) -> tuple[str, ...]:
    """Split a vault-relative path on either separator."""
    return PurePosixPath(relative_path.replace("\\", "/")).parts


def path_to_category(relative_path: str, categories: Sequence[Category] = DEFAULT_CATEGORIES) -> str:
    """Map a vault-relative path to a category slug.

    Path segments are scanned outermost first; the first segment that names
    a category folder wins. Paths outside every category map to 'misc'.
    """
    folders = {c.path.casefold(): c.slug for c in reversed(categories)}
    for part in path_parts(relative_path):
        slug = folders.get(part.casefold())
        if slug is not None:
            return slug
    return MISC_CATEGORY
