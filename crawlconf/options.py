"""
Declarative option schema for crawl runs.

Each option is accepted as a command-line flag and as a YAML key of the same
name (or any alias). The schema drives both the argparse parser and the
coercion of YAML values, so the two sources agree on types and defaults.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from typing import Any, Literal

from .behaviors import DEFAULT_BEHAVIORS
from .errors import ConfigError
from .seeds import SCOPE_TYPES


OptionKind = Literal["str", "number", "bool", "list", "regex", "flag_or_str", "map", "any"]

WAIT_UNTIL_OPTS = ("load", "domcontentloaded", "networkidle0", "networkidle2")

LOGGING_CHANNELS = ("stats", "pywb", "behaviors", "behaviors-debug", "jserrors")

SCREENSHOT_TYPES = ("view", "thumbnail", "fullPage")

SAVE_STATE_CHOICES = ("never", "partial", "always")

# Config path that means "read the YAML config from standard input"
STDIN_CONFIG_PATH = "/crawls/stdin"


@dataclass(frozen=True)
class OptionSpec:
    """One run option: flag name, aliases, type and default."""
    name: str
    kind: OptionKind
    default: Any = None
    help: str = ""
    aliases: tuple[str, ...] = ()
    choices: tuple[str, ...] | None = None
    unsigned: bool = False

    @property
    def names(self) -> tuple[str, ...]:
        return (self.name,) + self.aliases


OPTIONS: tuple[OptionSpec, ...] = (
    OptionSpec("seeds", "list", default=[], aliases=("url",),
               help="URL(s) to start crawling from"),
    OptionSpec("seedFile", "str", aliases=("urlFile",),
               help="Read additional seed URLs, one per line, from this file"),
    OptionSpec("workers", "number", default=1, aliases=("w",), unsigned=True,
               help="Number of workers to run in parallel"),
    OptionSpec("crawlId", "str", aliases=("id",),
               help="Crawl id (default: CRAWL_ID env var or host name)"),
    OptionSpec("newContext", "str",
               help="Deprecated, any value passed is ignored"),
    OptionSpec("waitUntil", "any", default="load",
               help="Page load condition(s) to wait for, comma-separated: " + ",".join(WAIT_UNTIL_OPTS)),
    OptionSpec("depth", "number", default=-1,
               help="Crawl depth for all seeds (-1 = unlimited)"),
    OptionSpec("extraHops", "number", default=0, unsigned=True,
               help="Number of extra hops to follow beyond the current scope"),
    OptionSpec("limit", "number", default=0, unsigned=True,
               help="Limit crawl to this number of pages (0 = unlimited)"),
    OptionSpec("timeout", "number", default=90, unsigned=True,
               help="Page load timeout in seconds"),
    OptionSpec("scopeType", "str", choices=SCOPE_TYPES,
               help="Predefined crawl scope; use 'custom' with --include for regex scopes"),
    OptionSpec("include", "regex", aliases=("scopeIncludeRx",),
               help="Regex of page URLs to include in the crawl"),
    OptionSpec("exclude", "regex", aliases=("scopeExcludeRx",),
               help="Regex of page URLs to exclude from the crawl"),
    OptionSpec("allowHashUrls", "bool", default=False,
               help="Treat #fragment URLs as distinct pages"),
    OptionSpec("blockRules", "list", default=[],
               help="Additional URL block rules"),
    OptionSpec("blockMessage", "str",
               help="Record this message in place of a blocked URL"),
    OptionSpec("blockAds", "bool", default=False, aliases=("blockads",),
               help="Block advertisements from loading"),
    OptionSpec("adBlockMessage", "str",
               help="Record this message in place of a blocked ad"),
    OptionSpec("collection", "str", default="crawl-@ts", aliases=("c",),
               help="Collection name; supports @ts, @hostname, @hostsuffix, @id"),
    OptionSpec("headless", "bool", default=False,
               help="Run the browser headless instead of under xvfb"),
    OptionSpec("driver", "str", default="./defaultDriver.js",
               help="Page driver script for the crawler"),
    OptionSpec("generateCDX", "bool", default=False, aliases=("generatecdx", "generateCdx"),
               help="Generate a CDXJ index after the crawl"),
    OptionSpec("combineWARC", "bool", default=False, aliases=("combinewarc", "combineWarc"),
               help="Combine the WARCs after the crawl"),
    OptionSpec("rolloverSize", "number", default=1_000_000_000, unsigned=True,
               help="Rollover size for combined WARCs, in bytes"),
    OptionSpec("generateWACZ", "bool", default=False, aliases=("generatewacz", "generateWacz"),
               help="Package the crawl as a WACZ"),
    OptionSpec("logging", "any", default="stats",
               help="Logging channels, comma-separated: " + ",".join(LOGGING_CHANNELS)),
    OptionSpec("text", "bool", default=False,
               help="Extract page text to pages.jsonl"),
    OptionSpec("cwd", "str",
               help="Crawl working directory (default: current directory)"),
    OptionSpec("mobileDevice", "str",
               help="Emulate a mobile device by name"),
    OptionSpec("userAgent", "str",
               help="Override the browser user agent"),
    OptionSpec("userAgentSuffix", "str",
               help="Append a suffix to the browser user agent"),
    OptionSpec("sitemap", "flag_or_str", aliases=("useSitemap",),
               help="Check /sitemap.xml, or the given sitemap URL"),
    OptionSpec("statsFilename", "str",
               help="Write crawl stats as JSON to this file (relative to --cwd)"),
    OptionSpec("behaviors", "any", default=DEFAULT_BEHAVIORS,
               help="In-page behaviors to run, comma-separated"),
    OptionSpec("behaviorTimeout", "number", default=90, unsigned=True,
               help="Per-page behavior timeout in seconds (0 = run to completion)"),
    OptionSpec("profile", "str",
               help="Browser profile tarball to extract and use"),
    OptionSpec("screenshot", "any", default="",
               help="Screenshot kinds, comma-separated: " + ",".join(SCREENSHOT_TYPES)),
    OptionSpec("screencastPort", "number", default=0, unsigned=True,
               help="Serve a screencast over HTTP on this port"),
    OptionSpec("screencastRedis", "bool", default=False,
               help="Publish the screencast over the state store's redis pubsub"),
    OptionSpec("warcInfo", "map", aliases=("warcinfo",),
               help="Extra warcinfo fields (key=value)"),
    OptionSpec("redisStoreUrl", "str",
               help="Redis URL for crawl state (default: in-memory)"),
    OptionSpec("saveState", "str", default="partial", choices=SAVE_STATE_CHOICES,
               help="When to serialize crawl state"),
    OptionSpec("saveStateInterval", "number", default=300, unsigned=True,
               help="State save interval in seconds when saveState=always"),
    OptionSpec("saveStateHistory", "number", default=5, unsigned=True,
               help="Number of saved states to keep"),
    OptionSpec("sizeLimit", "number", default=0, unsigned=True,
               help="Save state and exit past this many bytes (0 = no limit)"),
    OptionSpec("timeLimit", "number", default=0, unsigned=True,
               help="Save state and exit after this many seconds (0 = no limit)"),
    OptionSpec("healthCheckPort", "number", default=0, unsigned=True,
               help="Port to serve health checks on"),
    OptionSpec("overwrite", "bool", default=False,
               help="Delete an existing collection directory before crawling"),
    OptionSpec("waitOnDone", "bool", default=False,
               help="Wait for an interrupt signal when finished instead of exiting"),
    OptionSpec("netIdleWait", "number", default=-1,
               help="Seconds to wait for network idle (-1 = pick from scope type)"),
    OptionSpec("lang", "str",
               help="Browser language, ISO 639 language[-country] code"),
)

OPTIONS_BY_NAME = {spec.name: spec for spec in OPTIONS}

# Every accepted key (name or alias) → canonical option name
OPTION_ALIASES = {alias: spec.name for spec in OPTIONS for alias in spec.names}


def defaults() -> dict:
    """Built-in defaults, fresh copies of mutable values."""
    return {
        spec.name: list(spec.default) if isinstance(spec.default, list) else spec.default
        for spec in OPTIONS
    }


def parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {value!r}")


def parse_number(value) -> int | float:
    if isinstance(value, bool):
        raise ValueError(f"not a number: {value!r}")
    if isinstance(value, (int, float)):
        return value
    number = float(str(value).strip())
    return int(number) if number.is_integer() else number


def parse_key_value(value: str) -> tuple[str, str]:
    key, sep, val = value.partition("=")
    if not sep or not key:
        raise ValueError(f"expected key=value, got {value!r}")
    return key, val


def _parse_flag_or_str(value):
    try:
        return parse_bool(value)
    except ValueError:
        return value


def coerce_value(spec: OptionSpec, value):
    """
    Coerce a raw value (from YAML or argparse) to the option's type.

    Raises:
        ConfigError: on a value of the wrong shape or an unknown choice
    """
    if value is None:
        return None
    try:
        if spec.kind == "number":
            value = parse_number(value)
            if spec.unsigned and value < 0:
                raise ValueError("must not be negative")
        elif spec.kind == "bool":
            value = parse_bool(value)
        elif spec.kind == "str":
            if isinstance(value, (dict, list)):
                raise ValueError("expected a string")
            value = str(value)
        elif spec.kind == "list":
            value = list(value) if isinstance(value, (list, tuple)) else [value]
        elif spec.kind == "regex":
            if not isinstance(value, (str, list, tuple)):
                value = str(value)
        elif spec.kind == "flag_or_str":
            value = _parse_flag_or_str(value)
        elif spec.kind == "map":
            if isinstance(value, (list, tuple)):
                value = dict(parse_key_value(str(v)) for v in value)
            elif not isinstance(value, dict):
                raise ValueError("expected a mapping")
    except ValueError as exc:
        raise ConfigError(f"Invalid value for {spec.name}: {value!r} ({exc})") from exc

    if spec.choices and value not in spec.choices:
        raise ConfigError(
            f"Invalid value for {spec.name}: {value!r}, must be one of: " + ", ".join(spec.choices)
        )
    return value


class OptionParser(argparse.ArgumentParser):
    """ArgumentParser that raises ConfigError instead of exiting."""

    def error(self, message):
        raise ConfigError(message)


def _flag(name: str) -> str:
    return f"-{name}" if len(name) == 1 else f"--{name}"


def build_parser() -> OptionParser:
    """
    Build the CLI parser from the option schema.

    Every option defaults to argparse.SUPPRESS so the parsed namespace holds
    only the flags that were actually given; defaults and YAML values are
    layered underneath by the resolver.
    """
    parser = OptionParser(
        prog="crawl-config",
        description="Resolve a crawl run configuration",
        allow_abbrev=False,
        argument_default=argparse.SUPPRESS,
    )
    parser.add_argument("--config", help=f"Path to YAML config file ({STDIN_CONFIG_PATH} reads stdin)")

    for spec in OPTIONS:
        flags = [_flag(n) for n in spec.names]
        kwargs: dict = {"dest": spec.name, "help": spec.help}
        if spec.kind == "number":
            kwargs["type"] = parse_number
        elif spec.kind == "bool":
            kwargs.update(nargs="?", const=True, type=parse_bool)
        elif spec.kind in ("list", "regex"):
            kwargs.update(action="extend", nargs="+")
        elif spec.kind == "flag_or_str":
            kwargs.update(nargs="?", const=True, type=_parse_flag_or_str)
        elif spec.kind == "map":
            kwargs.update(action="append", metavar="KEY=VALUE")
        if spec.choices:
            kwargs["choices"] = spec.choices
        parser.add_argument(*flags, **kwargs)

    return parser


__all__ = [
    "OPTIONS",
    "OPTIONS_BY_NAME",
    "OPTION_ALIASES",
    "OptionSpec",
    "WAIT_UNTIL_OPTS",
    "LOGGING_CHANNELS",
    "SCREENSHOT_TYPES",
    "SAVE_STATE_CHOICES",
    "STDIN_CONFIG_PATH",
    "build_parser",
    "coerce_value",
    "defaults",
    "parse_bool",
    "parse_number",
]
