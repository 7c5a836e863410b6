"""
Tests for crawlconf/interpolate.py - filename template tokens.
"""

import re
import sys
from datetime import datetime, timezone, timedelta
from pathlib import Path

# Ensure project root on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from crawlconf.interpolate import format_timestamp, interpolate_filename


NOW = datetime(2026, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)


class TestFormatTimestamp:

    def test_fixed_time(self):
        assert format_timestamp(NOW) == "20260102030405678"

    def test_converts_to_utc(self):
        local = NOW.astimezone(timezone(timedelta(hours=5)))
        assert format_timestamp(local) == "20260102030405678"

    def test_current_time_has_only_digits(self):
        stamp = format_timestamp()
        assert stamp.isdigit()
        assert len(stamp) == 17


class TestInterpolateFilename:

    def test_all_tokens(self):
        name = interpolate_filename(
            "@id_@hostname_@hostsuffix_@ts", "crawl7",
            hostname="worker-node-abcdefghijklmnop", now=NOW,
        )
        assert name == "crawl7_worker-node-abcdefghijklmnop_cdefghijklmnop_20260102030405678"

    def test_short_hostname_suffix(self):
        assert interpolate_filename("@hostsuffix", "x", hostname="box") == "box"

    def test_no_separator_characters_from_timestamp(self):
        name = interpolate_filename("c@ts", "x", hostname="h")
        assert not re.search(r"[:TZz.\-]", name[1:])

    def test_repeated_token(self):
        name = interpolate_filename("@id-@id", "abc", hostname="h")
        assert name == "abc-abc"

    def test_plain_name_unchanged(self):
        assert interpolate_filename("my-crawl", "x", hostname="h") == "my-crawl"
