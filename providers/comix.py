"""
Comix.to provider for AniForge.

API-based provider using the comix.to v2 JSON API for search and
chapter listing. Chapter images are not exposed by the API; they are read
from the ``"images":[...]`` array embedded in the reader page.

Manga IDs are ``"{hash_id}|{slug}"``; chapter IDs are
``"{hash_id}|{slug}|{chapter_id}|{number}"``.
"""
import json
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Tuple

from core.base_provider import MangaProvider, ProviderError
from core.utils import format_chapter_title, format_number
from models import MangaSearchResult, MangaChapter, MangaPage

logger = logging.getLogger(__name__)

API_BASE = "https://comix.to/api/v2"
CHAPTERS_PER_PAGE = 100
MAX_PAGE_WORKERS = 8

# Matches "images":[...], \"images\":[...] and similar escaped forms
_IMAGES = re.compile(r'["\\]*images["\\]*\s*:\s*(\[[^\]]*\])')


def parse_reader_images(body: str) -> List[Dict[str, Any]]:
    """
    Extract the image list embedded in a reader page.

    Returns:
        Image objects (each with a ``url``); empty if none are found
    """
    match = _IMAGES.search(body)
    if not match:
        return []

    raw = match.group(1)
    try:
        images = json.loads(raw)
    except ValueError:
        try:
            images = json.loads(raw.replace('\\"', '"'))
        except ValueError:
            logger.warning("Comix reader images could not be decoded")
            return []

    return [img for img in images if isinstance(img, dict) and img.get("url")]


class ComixProvider(MangaProvider):
    """Provider for comix.to manga website."""

    provider_id = "comix"
    provider_name = "Comix"
    base_url = "https://comix.to"
    supports_multi_scanlator = True

    # ──────────────────────────────────────────────────────────────────
    #  Helpers
    # ──────────────────────────────────────────────────────────────────

    @staticmethod
    def _split_manga_id(manga_id: str) -> Tuple[str, str]:
        hash_id, _, slug = manga_id.partition("|")
        return hash_id, slug.split("|")[0]

    def _fetch_chapter_page(self, hash_id: str, page: int) -> Dict[str, Any]:
        """Fetch one page of chapters, newest first."""
        data = self._get_json(
            f"{API_BASE}/manga/{hash_id}/chapters",
            params={"order[number]": "desc", "limit": CHAPTERS_PER_PAGE, "page": page},
        )
        result = data.get("result") if isinstance(data, dict) else None
        if not isinstance(result, dict):
            raise ProviderError(f"Comix chapter page {page} has no result")
        return result

    def _to_chapter(self, hash_id: str, slug: str, item: Dict[str, Any]) -> MangaChapter:
        number = format_number(item.get("number", ""))
        chapter_id = str(item.get("chapter_id", ""))

        group = item.get("scanlation_group")
        group_name = group.get("name") if isinstance(group, dict) else None
        if item.get("is_official") == 1:
            scanlator = "Official"
        else:
            scanlator = str(group_name or "").strip() or None

        return MangaChapter(
            id=f"{hash_id}|{slug}|{chapter_id}|{number}",
            url=f"{self.base_url}/title/{hash_id}-{slug}/{chapter_id}-chapter-{number}",
            title=format_chapter_title(number, item.get("name")),
            chapter=number,
            scanlator=scanlator,
            language=item.get("language"),
        )

    # ──────────────────────────────────────────────────────────────────
    #  Search
    # ──────────────────────────────────────────────────────────────────

    def search(self, query: str) -> List[MangaSearchResult]:
        try:
            data = self._get_json(
                f"{API_BASE}/manga",
                params={"keyword": query, "order[relevance]": "desc"},
            )
        except ProviderError as e:
            logger.warning("Comix search failed for '%s': %s", query, e)
            return []

        result = data.get("result") if isinstance(data, dict) else None
        items = result.get("items") if isinstance(result, dict) else None

        results: List[MangaSearchResult] = []
        for item in items or []:
            poster = item.get("poster") or {}
            synonyms = item.get("alt_titles") or []
            if isinstance(synonyms, str):
                synonyms = [synonyms]

            results.append(
                MangaSearchResult(
                    provider_id=self.provider_id,
                    id=f"{item.get('hash_id')}|{item.get('slug')}",
                    title=item.get("title", "Unknown"),
                    image=poster.get("medium") or poster.get("large") or poster.get("small") or "",
                    synonyms=list(synonyms),
                )
            )

        logger.info("Comix search '%s' returned %d results", query, len(results))
        return results

    # ──────────────────────────────────────────────────────────────────
    #  Chapters (paginated API, with scanlation groups)
    # ──────────────────────────────────────────────────────────────────

    def find_chapters(self, manga_id: str) -> List[MangaChapter]:
        """Fetch every chapter page, then sort newest first.

        Page 1 tells us how many pages exist; the rest are fetched in
        parallel and concatenated in page order. The same chapter number
        can appear once per scanlation group.
        """
        hash_id, slug = self._split_manga_id(manga_id)
        if not hash_id or not slug:
            return []

        try:
            first = self._fetch_chapter_page(hash_id, 1)
            items: List[Dict[str, Any]] = list(first.get("items") or [])

            total_pages = int((first.get("pagination") or {}).get("last_page") or 1)
            remaining = list(range(2, total_pages + 1))
            if remaining:
                with ThreadPoolExecutor(max_workers=min(MAX_PAGE_WORKERS, len(remaining))) as pool:
                    for result in pool.map(lambda p: self._fetch_chapter_page(hash_id, p), remaining):
                        items.extend(result.get("items") or [])
        except (ProviderError, TypeError, ValueError) as e:
            logger.warning("Comix chapter listing failed for %s: %s", manga_id, e)
            return []

        chapters = [self._to_chapter(hash_id, slug, item) for item in items if isinstance(item, dict)]

        chapters.sort(key=lambda c: c.sort_key, reverse=True)
        for index, chapter in enumerate(chapters):
            chapter.index = index

        logger.info("Comix find_chapters returned %d chapters", len(chapters))
        return chapters

    # ──────────────────────────────────────────────────────────────────
    #  Chapter pages
    # ──────────────────────────────────────────────────────────────────

    def find_chapter_pages(self, chapter_id: str) -> List[MangaPage]:
        parts = chapter_id.split("|")
        if len(parts) < 4:
            return []

        hash_id, slug, specific_id, number = parts[:4]
        url = f"{self.base_url}/title/{hash_id}-{slug}/{specific_id}-chapter-{number}"

        try:
            body = self._get_text(url, headers={"Accept": "text/html,*/*;q=0.8"})
        except ProviderError as e:
            logger.warning("Comix reader page failed for %s: %s", chapter_id, e)
            return []

        pages = [
            MangaPage(url=img["url"], index=index, headers={"Referer": url})
            for index, img in enumerate(parse_reader_images(body))
        ]
        logger.info("Comix chapter %s has %d pages", specific_id, len(pages))
        return pages

    # ──────────────────────────────────────────────────────────────────
    #  Headers
    # ──────────────────────────────────────────────────────────────────

    def get_headers(self) -> dict:
        return {
            "User-Agent": self.config.get(
                "network.user_agent",
                "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
                "AppleWebKit/537.36 Chrome/124.0.0.0 Safari/537.36",
            ),
            "Accept": "application/json",
            "Referer": self.base_url,
        }
