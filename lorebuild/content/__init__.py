"""Read access to built content."""

from .reader import ContentReader, player_view

__all__ = ["ContentReader", "player_view"]
