"""Tests for the command-line interface."""

import asyncio
import json

import pytest

from shortlinks.cli import build_parser, main, run
from shortlinks.database import ClickMetadata


async def invoke(store, *argv):
    args = build_parser().parse_args(["--store-url", "memory://", *argv])
    return await run(args, store=store)


class TestCLI:
    """Test CLI commands against the in-memory store."""

    @pytest.mark.asyncio
    async def test_shorten(self, memory_store, capsys):
        code = await invoke(memory_store, "shorten", "https://example.com/cli", "--owner", "octocat")

        assert code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["success"] is True
        assert output["long_url"] == "https://example.com/cli"
        assert output["owner"] == "octocat"
        assert len(output["short_code"]) == 12

        assert (await memory_store.get(output["short_code"])).owner == "octocat"

    @pytest.mark.asyncio
    async def test_shorten_invalid_url(self, memory_store, capsys):
        code = await invoke(memory_store, "shorten", "nope", "--owner", "octocat")

        assert code == 1
        error = json.loads(capsys.readouterr().err)
        assert error["success"] is False
        assert "Invalid URL" in error["error"]

    @pytest.mark.asyncio
    async def test_get(self, memory_store, capsys):
        await memory_store.create("https://example.com", "cli-code", "octocat")

        assert await invoke(memory_store, "get", "cli-code") == 0
        output = json.loads(capsys.readouterr().out)
        assert output["short_code"] == "cli-code"
        assert output["click_count"] == 0

        assert await invoke(memory_store, "get", "missing") == 1
        assert "not found" in json.loads(capsys.readouterr().err)["error"]

    @pytest.mark.asyncio
    async def test_list(self, memory_store, capsys):
        await memory_store.create("https://a.example", "code-a", "octocat")
        await memory_store.create("https://b.example", "code-b", "octocat")
        await memory_store.create("https://c.example", "code-c", "someone-else")

        assert await invoke(memory_store, "list", "--owner", "octocat") == 0

        output = json.loads(capsys.readouterr().out)
        assert output["count"] == 2
        assert {link["short_code"] for link in output["links"]} == {"code-a", "code-b"}

    @pytest.mark.asyncio
    async def test_clicks(self, memory_store, capsys):
        await memory_store.create("https://example.com", "cli-code", "octocat")
        await memory_store.increment_click("cli-code", ClickMetadata("10.0.0.1", "curl", "IE"))

        assert await invoke(memory_store, "clicks", "cli-code", "1") == 0
        output = json.loads(capsys.readouterr().out)
        assert output["ordinal"] == 1
        assert output["ipAddress"] == "10.0.0.1"
        assert output["country"] == "IE"

        assert await invoke(memory_store, "clicks", "cli-code", "2") == 1

    @pytest.mark.asyncio
    async def test_watch_prints_events(self, memory_store, capsys):
        await memory_store.create("https://example.com", "cli-code", "octocat")

        watcher = asyncio.create_task(invoke(memory_store, "watch", "cli-code", "--limit", "2"))
        await asyncio.sleep(0.05)

        await memory_store.increment_click("cli-code", ClickMetadata())
        await asyncio.sleep(0.01)
        await memory_store.increment_click("cli-code", ClickMetadata())

        assert await asyncio.wait_for(watcher, timeout=5) == 0

        frames = [f for f in capsys.readouterr().out.split("\n\n") if f]
        counts = [json.loads(f[len("data: "):])["clickCount"] for f in frames]
        assert counts == [1, 2]
        assert "cli-code" not in memory_store._watchers

    @pytest.mark.asyncio
    async def test_watch_unknown(self, memory_store, capsys):
        assert await invoke(memory_store, "watch", "missing", "--limit", "1") == 1

    @pytest.mark.asyncio
    async def test_health(self, memory_store, capsys):
        assert await invoke(memory_store, "health") == 0

        output = json.loads(capsys.readouterr().out)
        assert output["health"] == {"store": True, "overall": True}


def test_main_without_command(capsys):
    assert main([]) == 1
    assert "shorten" in capsys.readouterr().out
