"""Tests for CLI argument parsing, command execution and output writers."""

from __future__ import annotations

import io
import json
import os
import shutil
import sys
import unittest
from contextlib import redirect_stdout
from dataclasses import replace
from pathlib import Path
from unittest.mock import patch

import click
import httpx
from click.testing import CliRunner

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from MarketSearch.cli.commands import parse_filter_args, parse_filter_value
from MarketSearch.cli.runner import CommandRunner
from MarketSearch.cli.ui import cli
from MarketSearch.config import load_config
from MarketSearch.core.query import SearchOptions
from MarketSearch.renderers import create_output_writer

DEFAULT_PATH = REPO_ROOT / "config" / "default.yml"


def _config():
    with patch.dict(os.environ, {"ALGOLIA_SEARCH_API_KEY": "k"}, clear=False):
        cfg = load_config(DEFAULT_PATH)
    return replace(cfg, algolia=replace(cfg.algolia, app_id="APP"))


def _handler(request: httpx.Request) -> httpx.Response:
    index = request.url.path.split("/")[3]
    if index == "products":
        return httpx.Response(503, text="down")
    hits = [{"objectID": f"{index}-1", "shopName": "Acme", "productName": "Lamp"}]
    return httpx.Response(200, json={"hits": hits, "nbHits": 1, "page": 0, "nbPages": 1})


class TestFilterArgs(unittest.TestCase):
    def test_value_conversion(self) -> None:
        self.assertEqual(parse_filter_value("minPrice", "10"), 10)
        self.assertEqual(parse_filter_value("maxPrice", "9.5"), 9.5)
        self.assertIs(parse_filter_value("verified", "TRUE"), True)
        self.assertEqual(parse_filter_value("status", "active,pending"), ["active", "pending"])
        self.assertEqual(parse_filter_value("category", "Books"), "Books")
        self.assertEqual(parse_filter_value("maximum", "5"), "5")

    def test_bad_bound(self) -> None:
        with self.assertRaisesRegex(ValueError, "minPrice"):
            parse_filter_value("minPrice", "cheap")

    def test_parse_args(self) -> None:
        self.assertEqual(
            parse_filter_args(["status=active", "minPrice=10"]),
            {"status": "active", "minPrice": 10},
        )
        with self.assertRaises(ValueError):
            parse_filter_args(["status"])
        with self.assertRaises(ValueError):
            parse_filter_args(["a=1", "a=2"])


class TestCommandRunner(unittest.TestCase):
    def _run(self, output_format: str, operation) -> tuple[bool, str]:
        runner = CommandRunner(_config(), transport=httpx.MockTransport(_handler))
        buffer = io.StringIO()
        with redirect_stdout(buffer):
            ok = runner.run("search", output_format, operation)
        return ok, buffer.getvalue()

    def test_search_json_output(self) -> None:
        ok, out = self._run("json", lambda commands: commands.search("shops", "acme", SearchOptions()))
        self.assertTrue(ok)
        payload = json.loads(out)
        self.assertEqual(payload["index"], "shops")
        self.assertFalse(payload["degraded"])
        self.assertEqual(payload["hits"][0]["kind"], "shop")
        self.assertEqual(payload["hits"][0]["shop_name"], "Acme")

    def test_search_all_reports_degraded_index(self) -> None:
        ok, out = self._run("json", lambda commands: commands.search_all("lamp"))
        self.assertFalse(ok)
        payload = json.loads(out)
        self.assertEqual(payload["failed"], ["products"])
        self.assertEqual(payload["results"]["products"]["error"]["kind"], "server")
        self.assertEqual(payload["results"]["shops"]["total_hits"], 1)

    def test_lookup_ignores_blank_ids(self) -> None:
        ok, out = self._run("json", lambda commands: commands.lookup("shops", ["shops-1", " ", "", "shops-1"]))
        self.assertTrue(ok)
        self.assertEqual([hit["object_id"] for hit in json.loads(out)["hits"]], ["shops-1"])

        ok, _ = self._run("json", lambda commands: commands.lookup("shops", ["shops-1", "shops-2"]))
        self.assertFalse(ok)

    def test_console_output_does_not_touch_stdout(self) -> None:
        ok, out = self._run("console", lambda commands: commands.counts())
        self.assertTrue(ok)
        self.assertEqual(out, "")

    def test_unexpected_failure_aborts(self) -> None:
        async def boom(commands) -> bool:
            raise RuntimeError("boom")

        with self.assertRaises(click.Abort):
            self._run("json", boom)

    def test_unknown_format_rejected(self) -> None:
        with self.assertRaises(ValueError):
            create_output_writer("xml")


class TestCliEntry(unittest.TestCase):
    def test_bad_filter_is_usage_error(self) -> None:
        runner = CliRunner()
        with runner.isolated_filesystem():
            os.makedirs("config")
            shutil.copy(DEFAULT_PATH, "config/default.yml")
            result = runner.invoke(cli, ["search", "shops", "--filter", "minPrice=cheap"])
        self.assertEqual(result.exit_code, 2)
        self.assertIn("minPrice", result.output)

    def test_invalid_config_reported(self) -> None:
        runner = CliRunner()
        with runner.isolated_filesystem():
            os.makedirs("config")
            Path("config/default.yml").write_text("log: {level: LOUD}\n", encoding="utf-8")
            result = runner.invoke(cli, ["counts"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Invalid config", result.output)


if __name__ == "__main__":
    unittest.main()
