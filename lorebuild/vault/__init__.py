"""Vault scanning, parsing, and link resolution."""

from .links import LinkRegistry, build_link_registry, resolve_references
from .loader import Vault, load_vault
from .naming import path_to_category, slugify
from .parser import extract_links, extract_section, parse_document
from .scanner import find_markdown_files

__all__ = [
    "load_vault",
    "Vault",
    "find_markdown_files",
    "parse_document",
    "extract_links",
    "extract_section",
    "path_to_category",
    "slugify",
    "LinkRegistry",
    "build_link_registry",
    "resolve_references",
]
