"""
Manga data models for AniForge.

This module contains the structure returned by manga provider searches.
"""
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class MangaSearchResult:
    """
    Result from search - minimal info for displaying search results.

    ``id`` is the provider's composite manga ID (for Comix
    ``"{hash_id}|{slug}"``) and is passed back unchanged to chapter listing.
    """
    provider_id: str      # e.g., "comix"
    id: str
    title: str
    image: str = ""
    synonyms: List[str] = field(default_factory=list)
    year: Optional[int] = None

    def __str__(self) -> str:
        """String representation for display purposes."""
        return f"[{self.provider_id}] {self.title}"

    @property
    def all_titles(self) -> List[str]:
        """Get all titles including synonyms."""
        return [self.title, *self.synonyms]
