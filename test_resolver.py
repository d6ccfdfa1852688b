#!/usr/bin/env python3
"""
Tests for the Resolver facade: sub/dub fan-out, aliases and deadlines.
"""
import logging
import sys
import time
from pathlib import Path

import httpx
import pytest

# Add the current directory to Python path for imports
sys.path.insert(0, str(Path(__file__).parent))

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

from core.base_provider import NoStreamFoundError, ProviderNotFoundError
from core.provider_manager import ProviderManager
from core.resolver import Resolver
from models import FuzzyDate, MediaTitles, SearchQuery
from test_providers import EPISODE_LIST_HTML, HIANIME, SUGGEST_HTML

AOT_START = FuzzyDate(year=2013, month=4)


@pytest.fixture
def resolver(client, config):
    with Resolver(ProviderManager(config=config, client=client)) as resolver:
        yield resolver


def slow(response: httpx.Response, delay: float = 0.5):
    def handler(request: httpx.Request) -> httpx.Response:
        time.sleep(delay)
        return response
    return handler


def test_fetch_episodes_resolves_sub_and_dub(resolver, upstream):
    upstream.add_json(HIANIME, "/ajax/search/suggest", {"status": True, "html": SUGGEST_HTML})
    upstream.add_json(HIANIME, "/ajax/v2/episode/list/112", {"status": True, "html": EPISODE_LIST_HTML})

    data = resolver.fetch_episodes("source1", "Attack on Titan", "Shingeki no Kyojin",
                                   "Attack on Titan", AOT_START, timeout=5)

    assert data.provider_id == "hianime"
    assert [e.id for e in data.sub] == ["7882/sub", "7883/sub"]
    assert [e.id for e in data.dub] == ["7882/dub", "7883/dub"]
    assert data.sub[1].title == "Episode 2"
    assert len(upstream.calls(HIANIME, "/ajax/search/suggest")) == 2
    logger.info(f"✓ Resolved {len(data.sub)} sub / {len(data.dub)} dub episodes")


def test_fetch_episodes_with_no_match_is_empty(resolver, upstream):
    upstream.add_json(HIANIME, "/ajax/search/suggest", {"status": True, "html": ""})

    data = resolver.fetch_episodes("hianime", "Unknown Show", start_date=AOT_START)

    assert data.sub == [] and data.dub == []


def test_search_title_returns_empty_list_after_deadline(resolver, upstream):
    upstream.add(HIANIME, "/ajax/search/suggest",
                 slow(httpx.Response(200, json={"status": True, "html": SUGGEST_HTML})))

    query = SearchQuery("Attack on Titan", False,
                        MediaTitles("Shingeki no Kyojin", "Attack on Titan", AOT_START))

    assert resolver.search_title("hianime", query, timeout=0.05) == []


def test_list_episodes_by_alias(resolver, upstream):
    upstream.add_json(HIANIME, "/ajax/v2/episode/list/112", {"status": True, "html": EPISODE_LIST_HTML})

    episodes = resolver.list_episodes("source1", "112/sub")

    assert [e.number for e in episodes] == [1, 2]


def test_resolve_source_requires_number_for_anime_level_ids(resolver):
    with pytest.raises(ValueError):
        resolver.resolve_episode_source("anicrush", "Xr1ZgB/sub")


def test_resolve_source_deadline_raises_no_stream(resolver, upstream):
    upstream.add("api.anicrush.to", "/shared/v2/episode/sources",
                 slow(httpx.Response(200, json={"status": True, "result": {}})))

    with pytest.raises(NoStreamFoundError):
        resolver.resolve_episode_source("source2", "Xr1ZgB/sub", episode_number=1, timeout=0.05)


def test_unknown_provider(resolver):
    with pytest.raises(ProviderNotFoundError):
        resolver.list_episodes("source9", "1/sub")
    with pytest.raises(ProviderNotFoundError):
        resolver.list_chapters("hianime", "abc12|the-summoner")


def test_manga_listing_through_resolver(resolver, upstream):
    upstream.add_json("comix.to", "/api/v2/manga/abc12/chapters", {
        "result": {"items": [{"chapter_id": 9, "number": 1}], "pagination": {"last_page": 1}},
    })

    chapters = resolver.list_chapters("comix", "abc12|the-summoner", timeout=5)

    assert [c.title for c in chapters] == ["Chapter 1"]


def test_timed_out_call_does_not_block_fan_out(client, config, upstream):
    upstream.add("api.anicrush.to", "/shared/v2/movie/list",
                 slow(httpx.Response(200, json={"status": True, "result": {"movies": []}}), delay=1.5))
    upstream.add_json(HIANIME, "/ajax/search/suggest", {"status": True, "html": SUGGEST_HTML})
    upstream.add_json(HIANIME, "/ajax/v2/episode/list/112", {"status": True, "html": EPISODE_LIST_HTML})

    query = SearchQuery("Frieren", False, MediaTitles("Sousou no Frieren"))
    with Resolver(ProviderManager(config=config, client=client), max_workers=1) as resolver:
        assert resolver.search_title("anicrush", query, timeout=0.05) == []

        data = resolver.fetch_episodes("hianime", "Attack on Titan", "Shingeki no Kyojin",
                                       "Attack on Titan", AOT_START, timeout=1.0)

    assert len(data.sub) == 2 and len(data.dub) == 2
