#!/usr/bin/env python3
"""
Tests for the AniForge CLI.

Commands run through typer's CliRunner against a Resolver whose providers
talk to canned upstream responses.
"""
import json
import logging
import sys
from pathlib import Path

import pytest
from typer.testing import CliRunner

# Add the current directory to Python path for imports
sys.path.insert(0, str(Path(__file__).parent))

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

from cli.app import app
from core.provider_manager import ProviderManager
from core.resolver import Resolver
from test_providers import (
    EPISODE_LIST_HTML, HIANIME, SERVERS_HTML, SUGGEST_HTML, serve_megacloud,
)

runner = CliRunner()


@pytest.fixture(autouse=True)
def fake_resolver(monkeypatch, client, config):
    """Route every command through providers backed by the fake upstream."""
    monkeypatch.setattr(
        "cli.app.create_resolver",
        lambda _config: Resolver(ProviderManager(config=config, client=client)),
    )


def test_cli_imports():
    """Test that the entry point and CLI components can be imported."""
    from main import main, check_dependencies
    from cli import aniforge_app, create_resolver
    from cli.tables import display_matches, display_episode_server

    assert aniforge_app is app
    assert callable(main) and callable(create_resolver)
    assert check_dependencies() is True
    logger.info("✓ CLI imports successful")


def test_providers_command():
    result = runner.invoke(app, ["providers"])

    assert result.exit_code == 0
    assert "comix" in result.output


def test_search_json(upstream):
    upstream.add_json(HIANIME, "/ajax/search/suggest", {"status": True, "html": SUGGEST_HTML})

    result = runner.invoke(app, [
        "search", "Attack on Titan",
        "--romaji", "Shingeki no Kyojin", "--english", "Attack on Titan",
        "--year", "2013", "--month", "4", "--json",
    ])

    assert result.exit_code == 0
    matches = json.loads(result.stdout)
    assert [m["id"] for m in matches] == ["112/sub"]


def test_search_table_without_results(upstream):
    upstream.add_json(HIANIME, "/ajax/search/suggest", {"status": True, "html": ""})

    result = runner.invoke(app, ["search", "Nothing Here", "--year", "2013"])

    assert result.exit_code == 0
    assert "No results found" in result.output


def test_episodes_json(upstream):
    upstream.add_json(HIANIME, "/ajax/v2/episode/list/112", {"status": True, "html": EPISODE_LIST_HTML})

    result = runner.invoke(app, ["episodes", "112/sub", "--json"])

    assert result.exit_code == 0
    episodes = json.loads(result.stdout)
    assert [e["id"] for e in episodes] == ["7882/sub", "7883/sub"]


def test_lookup_json(upstream):
    upstream.add_json(HIANIME, "/ajax/search/suggest", {"status": True, "html": SUGGEST_HTML})
    upstream.add_json(HIANIME, "/ajax/v2/episode/list/112", {"status": True, "html": EPISODE_LIST_HTML})

    result = runner.invoke(app, [
        "lookup", "Attack on Titan", "--romaji", "Shingeki no Kyojin",
        "--year", "2013", "--month", "4", "--json",
    ])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert len(data["sub"]) == 2 and len(data["dub"]) == 2


def test_source_json(upstream):
    upstream.add_json(HIANIME, "/ajax/v2/episode/servers", {"status": True, "html": SERVERS_HTML})
    upstream.add_json(HIANIME, "/ajax/v2/episode/sources",
                      {"type": "iframe", "link": "https://megacloud.blog/embed-2/v3/e-1/AbC123xyz?k=1"})
    serve_megacloud(upstream)

    result = runner.invoke(app, ["source", "7882/sub", "--server", "HD-2", "--json"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["sources"] == [{"url": "https://cdn.example.org/master.m3u8", "quality": "auto"}]
    assert payload["subtitles"] == [{"url": "https://cdn.example.org/en.vtt", "lang": "English"}]
    assert payload["headers"]["Referer"] == "https://megacloud.club/"
    assert payload["intro"] == {"start": 10.0, "end": 95.0}


def test_source_without_stream_exits_with_error(upstream):
    upstream.add_json(HIANIME, "/ajax/v2/episode/servers", {"status": True, "html": SERVERS_HTML})
    upstream.add_json(HIANIME, "/ajax/v2/episode/sources", {"type": "iframe", "link": ""})

    result = runner.invoke(app, ["source", "7882/sub"])

    assert result.exit_code == 1


def test_source_requires_number_for_anicrush():
    result = runner.invoke(app, ["source", "Xr1ZgB/sub", "--provider", "source2"])

    assert result.exit_code == 2


def test_unknown_provider_exits_with_usage_error():
    result = runner.invoke(app, ["episodes", "1/sub", "--provider", "nope"])

    assert result.exit_code == 2


def test_chapters_json(upstream):
    upstream.add_json("comix.to", "/api/v2/manga/abc12/chapters", {
        "result": {
            "items": [{"chapter_id": 9, "number": 1}, {"chapter_id": 10, "number": 2, "name": "Homecoming"}],
            "pagination": {"last_page": 1},
        },
    })

    result = runner.invoke(app, ["chapters", "abc12|the-summoner", "--json"])

    assert result.exit_code == 0
    chapters = json.loads(result.stdout)
    assert [c["title"] for c in chapters] == ["Chapter 2 — Homecoming", "Chapter 1"]
    assert [c["index"] for c in chapters] == [0, 1]


def test_chapters_with_site_url_as_provider(upstream):
    upstream.add_json("comix.to", "/api/v2/manga/abc12/chapters", {
        "result": {"items": [{"chapter_id": 9, "number": 1}], "pagination": {"last_page": 1}},
    })

    result = runner.invoke(app, [
        "chapters", "abc12|the-summoner", "--provider", "https://comix.to/title/abc12-the-summoner", "--json",
    ])

    assert result.exit_code == 0
    assert [c["chapter"] for c in json.loads(result.stdout)] == ["1"]


def test_config_command_saves_setting(tmp_path):
    settings = tmp_path / "settings.yaml"
    settings.write_text("{}\n", encoding="utf-8")

    result = runner.invoke(app, ["--config", str(settings), "config", "matching.similarity_threshold", "0.8"])
    assert result.exit_code == 0

    shown = runner.invoke(app, ["--config", str(settings), "config", "matching.similarity_threshold"])
    assert shown.exit_code == 0
    assert json.loads(shown.stdout) == 0.8

    from core.config import Config
    assert Config(str(settings)).similarity_threshold == 0.8
