"""Search index builders."""

from .search import build_search_indices, dm_entry, player_entry

__all__ = ["build_search_indices", "player_entry", "dm_entry"]
