"""
Chapter data models for AniForge.

This module contains data structures for representing manga chapters
and the image pages that make up a chapter.
"""
from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class MangaChapter:
    """
    Chapter information for a manga.

    ``index`` is assigned after the chapter list has been sorted, so it is
    always dense (0..N-1) regardless of the upstream order.
    """
    id: str               # "{hash_id}|{slug}|{chapter_id}|{number}"
    url: str
    title: str
    chapter: str          # Can be "1", "1.5", "Extra", etc.
    index: int = 0
    scanlator: Optional[str] = None
    language: Optional[str] = None

    def __str__(self) -> str:
        scanlator = f" [{self.scanlator}]" if self.scanlator else ""
        return f"{self.title}{scanlator}"

    @property
    def sort_key(self) -> float:
        """Get a numeric sort key; non-numeric chapters sort below every number."""
        try:
            return float(self.chapter)
        except ValueError:
            return float("-inf")


@dataclass
class MangaPage:
    """A single image page of a chapter."""
    url: str
    index: int
    headers: Dict[str, str] = field(default_factory=dict)
