"""
Tests for the crawl-config and archive-sync command-line entry points.
"""

import json
import sys
from pathlib import Path

# Ensure project root on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from archive_sync import cli as sync_cli
from crawlconf import cli as config_cli


class TestCrawlConfigCli:

    def test_prints_resolved_config(self, capsys, monkeypatch):
        monkeypatch.delenv("CRAWL_ARGS", raising=False)
        code = config_cli.main([
            "--seeds", "https://example.com/",
            "--collection", "my-crawl",
            "--workers", "2",
        ])
        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert data["collection"] == "my-crawl"
        assert data["concurrency"] == "shared-window"
        assert data["seeds"][0]["scopeType"] == "prefix"

    def test_invalid_option_exits_nonzero(self, capsys, monkeypatch):
        monkeypatch.delenv("CRAWL_ARGS", raising=False)
        code = config_cli.main(["--collection", "my coll"])
        assert code == 1
        assert "Error:" in capsys.readouterr().err


class TestArchiveSyncCli:

    def test_requires_store_endpoint(self, capsys, monkeypatch, tmp_path):
        monkeypatch.delenv("STORE_ENDPOINT_URL", raising=False)
        code = sync_cli.main(["upload", str(tmp_path / "crawl.wacz"), "crawl.wacz"])
        assert code == 1
        assert "STORE_ENDPOINT_URL" in capsys.readouterr().err

    def test_bad_webhook_exits_nonzero(self, capsys, monkeypatch, tmp_path):
        monkeypatch.setenv("STORE_ENDPOINT_URL", "https://s3.example.com/bucket/")
        monkeypatch.setenv("WEBHOOK_URL", "redis://h:6379/0")
        code = sync_cli.main(["upload", str(tmp_path / "crawl.wacz"), "crawl.wacz"])
        assert code == 1
        assert "redis webhook url" in capsys.readouterr().err
