"""Build configuration: categories, tier aliases and output locations."""

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from .models import Category

VAULT_ENV = "OBSIDIAN_VAULT_PATH"
OUTPUT_ENV = "LOREBUILD_OUTPUT_DIR"
PUBLIC_ENV = "LOREBUILD_PUBLIC_DIR"
CONFIG_ENV = "LOREBUILD_CONFIG"
AUDIT_LOG_ENV = "LOREBUILD_AUDIT_LOG"

MISC_CATEGORY = "misc"

DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category("world", "World", "World systems and mechanics", "01-World"),
    Category("geography", "Geography", "The lands, cities, and regions of Exilium", "02-Geography"),
    Category("history", "History", "The events that shaped the world", "03-History"),
    Category("factions", "Factions", "The major powers and organizations", "04-Factions"),
    Category("peoples", "Peoples", "Cultures, races, and societies", "05-Peoples"),
    Category("npcs", "NPCs", "Notable characters and their secrets", "06-NPCs"),
)

# Tier keys, in fixed visibility order
AT_A_GLANCE = "at_a_glance"
COMMON_KNOWLEDGE = "common_knowledge"
SECRET_KNOWLEDGE = "secret_knowledge"
TIERS = (AT_A_GLANCE, COMMON_KNOWLEDGE, SECRET_KNOWLEDGE)

# Tier -> accepted section headings, primary name first.
# At-a-glance takes the first match; the other tiers join every match.
DEFAULT_TIER_ALIASES: dict[str, tuple[str, ...]] = {
    AT_A_GLANCE: ("At a Glance", "Overview", "Summary"),
    COMMON_KNOWLEDGE: ("Common Knowledge", "Key Facts", "Personality & Approach"),
    SECRET_KNOWLEDGE: ("Secret Knowledge", "Secret (DM Only)", "DM Notes", "Secrets"),
}

# Sections never treated as tier content by free-form partitioning
DEFAULT_STRUCTURAL_SECTIONS: tuple[str, ...] = (
    "Connections",
    "Connections Map",
    "See Also",
    "Notes",
    "Quick Reference",
    "Combat Statistics",
)

PLAYER_SNIPPET_CHARS = 1000
DM_SNIPPET_CHARS = 2000


class ConfigError(ValueError):
    """Raised when a configuration file or value is invalid."""


@dataclass
class BuildConfig:
    """Everything a build needs to know besides the vault contents."""

    vault_path: Path | None = None
    output_dir: Path = Path("src/content")
    public_dir: Path | None = Path("public/content")
    categories: tuple[Category, ...] = DEFAULT_CATEGORIES
    tier_aliases: dict[str, tuple[str, ...]] = field(default_factory=lambda: dict(DEFAULT_TIER_ALIASES))
    structural_sections: tuple[str, ...] = DEFAULT_STRUCTURAL_SECTIONS
    excluded_categories: frozenset[str] = frozenset({MISC_CATEGORY})
    player_snippet_chars: int = PLAYER_SNIPPET_CHARS
    dm_snippet_chars: int = DM_SNIPPET_CHARS
    audit_log_path: Path | None = None

    @property
    def documents_dir(self) -> Path:
        return self.output_dir / "documents"

    @property
    def manifest_path(self) -> Path:
        return self.output_dir / "manifest.json"

    @property
    def search_dir(self) -> Path:
        """Directory receiving the search indices (public dir, else output dir)."""
        return self.public_dir if self.public_dir is not None else self.output_dir

    @property
    def publishes_manifest_copy(self) -> bool:
        return self.public_dir is not None and Path(self.public_dir).resolve() != Path(self.output_dir).resolve()


def _as_str_tuple(value: Any, key: str) -> tuple[str, ...]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        raise ConfigError(f"'{key}' must be a list of strings")
    items = tuple(str(v).strip() for v in value if str(v).strip())
    if not items:
        raise ConfigError(f"'{key}' must not be empty")
    return items


def _parse_categories(raw: Any) -> tuple[Category, ...]:
    if not isinstance(raw, list) or not raw:
        raise ConfigError("'categories' must be a non-empty list")

    categories = []
    seen = set()
    for entry in raw:
        if not isinstance(entry, dict):
            raise ConfigError("each category must be a mapping")
        slug = str(entry.get("slug") or "").strip()
        path = str(entry.get("path") or "").strip()
        if not slug or not path:
            raise ConfigError(f"category entries need 'slug' and 'path': {entry!r}")
        if slug in seen:
            raise ConfigError(f"duplicate category slug: {slug}")
        seen.add(slug)
        categories.append(
            Category(
                slug=slug,
                name=str(entry.get("name") or slug.title()),
                description=str(entry.get("description") or ""),
                path=path,
            )
        )
    return tuple(categories)


def _parse_positive_int(value: Any, key: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"'{key}' must be an integer") from None
    if number <= 0:
        raise ConfigError(f"'{key}' must be positive")
    return number


def config_from_mapping(data: dict[str, Any], base: BuildConfig | None = None) -> BuildConfig:
    """Apply the keys of a parsed config file on top of `base`."""
    config = base or BuildConfig()
    if not data:
        return config
    if not isinstance(data, dict):
        raise ConfigError("config file must contain a mapping")

    changes: dict[str, Any] = {}

    if "categories" in data:
        changes["categories"] = _parse_categories(data["categories"])

    if "tier_aliases" in data:
        raw = data["tier_aliases"]
        if not isinstance(raw, dict):
            raise ConfigError("'tier_aliases' must be a mapping")
        unknown = sorted(set(raw) - set(DEFAULT_TIER_ALIASES))
        if unknown:
            raise ConfigError(f"unknown tiers in 'tier_aliases': {', '.join(unknown)}")
        aliases = dict(config.tier_aliases)
        for tier, names in raw.items():
            aliases[tier] = _as_str_tuple(names, f"tier_aliases.{tier}")
        changes["tier_aliases"] = aliases

    if "structural_sections" in data:
        changes["structural_sections"] = _as_str_tuple(data["structural_sections"], "structural_sections")

    if "excluded_categories" in data:
        changes["excluded_categories"] = frozenset(_as_str_tuple(data["excluded_categories"], "excluded_categories"))

    if "player_snippet_chars" in data:
        changes["player_snippet_chars"] = _parse_positive_int(data["player_snippet_chars"], "player_snippet_chars")

    if "dm_snippet_chars" in data:
        changes["dm_snippet_chars"] = _parse_positive_int(data["dm_snippet_chars"], "dm_snippet_chars")

    return replace(config, **changes)


def load_config_file(path: Path) -> dict[str, Any]:
    """Read a YAML config file. A missing file is an error."""
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"failed to parse {path}: {e}") from e
    return data or {}


def load_config(
    vault_path: Path | None = None,
    output_dir: Path | None = None,
    public_dir: Path | None = None,
    config_path: Path | None = None,
    audit_log_path: Path | None = None,
) -> BuildConfig:
    """Build a config from an optional YAML file plus explicit locations.

    Args:
        vault_path: Vault root to scan
        output_dir: Internal content directory (documents + manifest)
        public_dir: Public directory for search indices and manifest copy
        config_path: Optional YAML file with categories/aliases overrides
        audit_log_path: Optional JSON-lines audit log for writes

    Returns:
        BuildConfig
    """
    config = BuildConfig()
    if config_path is not None:
        config = config_from_mapping(load_config_file(config_path), config)

    changes: dict[str, Any] = {"vault_path": vault_path, "audit_log_path": audit_log_path}
    if output_dir is not None:
        changes["output_dir"] = output_dir
    if public_dir is not None:
        changes["public_dir"] = public_dir
    return replace(config, **changes)
