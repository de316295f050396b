"""lorebuild - compile an Obsidian lore vault into tiered JSON content."""

__version__ = "0.3.0"
