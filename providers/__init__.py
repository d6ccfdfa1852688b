"""
Providers package for AniForge.

This package contains all anime and manga providers for the application.
Providers are automatically discovered and loaded by the ProviderManager.

AUTO-DISCOVERY:
- Drop any provider file in this directory
- ProviderManager will automatically find and load it
- No manual registration required
- Each provider must inherit from AnimeProvider or MangaProvider

providers/
  ├── __init__.py          # This file
  ├── hianime.py           # HiAnime (ajax HTML fragments)
  ├── anicrush.py          # AniCrush (JSON API)
  └── comix.py             # Comix manga (JSON API + reader page)
"""
# ProviderManager scans this directory for .py files and loads them

__all__ = []  # Providers register themselves automatically
