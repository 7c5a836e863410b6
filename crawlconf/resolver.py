"""
Run configuration resolution.

Layers, lowest precedence first:
    built-in defaults < YAML config (--config, or stdin) < command-line flags

The result is a single immutable RunConfig with every value validated and
normalized: units converted, comma lists split, behaviors composed, seeds
built into ScopeSeed objects. Any validation failure raises ConfigError and
nothing is returned; a run either resolves fully or does not start.
"""

from __future__ import annotations

import logging
import os
import re
import socket
import sys
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Literal, Mapping, Sequence, TextIO

from .behaviors import BehaviorOptions, build_behavior_options
from .devices import lookup_device
from .errors import ConfigError
from .interpolate import interpolate_filename
from .loader import load_yaml_config, merge_layers, normalize_keys, read_seed_file
from .options import (
    OPTIONS_BY_NAME,
    SCREENSHOT_TYPES,
    WAIT_UNTIL_OPTS,
    build_parser,
    coerce_value,
    defaults,
)
from .seeds import ScopeSeed, build_scope_seeds, has_patterns


logger = logging.getLogger(__name__)

COLLECTION_NAME_RX = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_-]*$")

CONCURRENCY_PAGE = "per-page"
CONCURRENCY_WINDOW = "shared-window"

ConcurrencyMode = Literal["per-page", "shared-window"]

# Scope types with nothing further to discover get a longer settle window
SINGLE_PAGE_SCOPES = ("page", "page-spa")
NET_IDLE_WAIT_SINGLE_PAGE = 15
NET_IDLE_WAIT_DEFAULT = 2


@dataclass(frozen=True)
class RunConfig:
    """Fully resolved crawl run configuration."""

    # Identity / output
    collection: str
    crawl_id: str
    cwd: str

    # Workers
    workers: int
    concurrency: ConcurrencyMode

    # Page loading
    timeout_ms: int
    wait_until: tuple[str, ...]
    net_idle_wait: int | float

    # Scope
    seeds: tuple[ScopeSeed, ...]
    scope_type: str | None
    depth: int
    extra_hops: int
    limit: int
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    sitemap: bool | str | None = None
    allow_hash_urls: bool = False
    seed_file: str | None = None

    # Behaviors / logging / screenshots
    logging: frozenset[str] = frozenset()
    behaviors: tuple[str, ...] = ()
    behavior_timeout_ms: int = 0
    behavior_opts: BehaviorOptions = field(default_factory=BehaviorOptions)
    behaviors_log_debug: bool = False
    screenshot: tuple[str, ...] = ()

    # Blocking
    block_rules: tuple = ()
    block_message: str | None = None
    block_ads: bool = False
    ad_block_message: str | None = None

    # Browser
    headless: bool = False
    driver: str = "./defaultDriver.js"
    mobile_device: str | None = None
    emulate_device: dict | None = None
    user_agent: str | None = None
    user_agent_suffix: str | None = None
    profile: str | None = None
    lang: str | None = None

    # Archive output
    generate_cdx: bool = False
    combine_warc: bool = False
    rollover_size: int = 1_000_000_000
    generate_wacz: bool = False
    text: bool = False
    warc_info: dict = field(default_factory=dict)
    stats_filename: str | None = None

    # State and limits
    redis_store_url: str | None = None
    save_state: str = "partial"
    save_state_interval: int = 300
    save_state_history: int = 5
    size_limit: int = 0
    time_limit: int = 0

    # Service ports / lifecycle
    screencast_port: int = 0
    screencast_redis: bool = False
    health_check_port: int = 0
    overwrite: bool = False
    wait_on_done: bool = False

    @property
    def behavior_opts_json(self) -> str:
        return self.behavior_opts.to_json()

    def to_dict(self) -> dict:
        """JSON-safe view of the config."""
        data = asdict(self)
        data["seeds"] = [seed.to_dict() for seed in self.seeds]
        data["logging"] = sorted(self.logging)
        data["behavior_opts"] = self.behavior_opts.to_dict()
        return data


# ---------------------------------------------------------------------------
# Field normalizers
# ---------------------------------------------------------------------------

def split_list(value, name: str = "option") -> list[str]:
    """Comma-separated string or list → list of non-empty stripped tokens."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    elif not isinstance(value, (list, tuple)):
        raise ConfigError(
            f"Invalid value for {name}: {value!r}, expected a comma-separated string or list"
        )
    return [str(v).strip() for v in value if str(v).strip()]


def validate_collection(name: str) -> str:
    if not COLLECTION_NAME_RX.fullmatch(name):
        raise ConfigError(
            f"{name} is an invalid collection name. Please supply a collection name "
            "only using alphanumeric characters and the following characters [_ - ]"
        )
    return name


def normalize_wait_until(value) -> tuple[str, ...]:
    """Accept "load,networkidle2" or a list; every token must be a known condition."""
    if isinstance(value, str):
        tokens = [t.strip() for t in value.split(",")]
    elif isinstance(value, (list, tuple)):
        tokens = [str(t).strip() for t in value]
    else:
        raise ConfigError(f"Invalid waitUntil option: {value!r}")
    for token in tokens:
        if token not in WAIT_UNTIL_OPTS:
            raise ConfigError("Invalid waitUntil option, must be one of: " + ",".join(WAIT_UNTIL_OPTS))
    return tuple(dict.fromkeys(tokens))


def filter_screenshot_types(value) -> tuple[str, ...]:
    """Keep known screenshot kinds in the given order; warn on and drop the rest."""
    kinds = []
    for token in split_list(value, "screenshot"):
        if token in SCREENSHOT_TYPES:
            if token not in kinds:
                kinds.append(token)
        else:
            logger.warning("%s not found in %s", token, ", ".join(SCREENSHOT_TYPES))
    return tuple(kinds)


def select_concurrency(workers: int) -> ConcurrencyMode:
    """Shared-window tab reuse for more than one worker, a page per task otherwise."""
    return CONCURRENCY_WINDOW if workers > 1 else CONCURRENCY_PAGE


def resolve_net_idle_wait(net_idle_wait, scope_type: str | None):
    """-1 means unset: pick a settle window from the scope type."""
    if net_idle_wait < -1:
        raise ConfigError(f"Invalid value for netIdleWait: {net_idle_wait!r}, must be at least -1")
    if net_idle_wait != -1:
        return net_idle_wait
    if scope_type in SINGLE_PAGE_SCOPES:
        return NET_IDLE_WAIT_SINGLE_PAGE
    return NET_IDLE_WAIT_DEFAULT


def _as_int(name: str, value, minimum: int | None = None) -> int:
    if isinstance(value, float):
        if not value.is_integer():
            raise ConfigError(f"Invalid value for {name}: {value!r}, must be a whole number")
        value = int(value)
    if minimum is not None and value < minimum:
        raise ConfigError(f"Invalid value for {name}: {value!r}, must be at least {minimum}")
    return value


def _seconds_to_ms(seconds) -> int:
    return int(round(seconds * 1000))


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def gather_options(
    argv: Sequence[str],
    environ: Mapping[str, str],
    stdin: TextIO | None = None,
    hostname: str | None = None,
) -> dict:
    """Parse argv, load the YAML layer and merge both over the defaults, coerced to option types."""
    argv = list(argv)
    extra = environ.get("CRAWL_ARGS")
    if extra:
        argv.extend(extra.split())

    cli = vars(build_parser().parse_args(argv))
    config_path = cli.pop("config", None)

    file_cfg = {}
    if config_path:
        file_cfg = normalize_keys(load_yaml_config(config_path, stdin=stdin))

    base = defaults()
    base["crawlId"] = environ.get("CRAWL_ID") or hostname or socket.gethostname()
    base["cwd"] = os.getcwd()

    merged = merge_layers(base, file_cfg, cli)
    return {name: coerce_value(OPTIONS_BY_NAME[name], value) for name, value in merged.items()}


def resolve(
    argv: Sequence[str] | None = None,
    environ: Mapping[str, str] | None = None,
    *,
    stdin: TextIO | None = None,
    devices: Mapping[str, dict] | None = None,
    now: datetime | None = None,
    hostname: str | None = None,
) -> RunConfig:
    """
    Resolve a RunConfig from command-line arguments and environment.

    Args:
        argv: Arguments without the program name (default: sys.argv[1:])
        environ: Environment mapping (default: os.environ)
        stdin: Stream read when --config is the stdin sentinel
        devices: Device descriptor table for --mobileDevice (default: Playwright's)
        now: Timestamp for @ts in the collection name
        hostname: Host name for @hostname / @hostsuffix and the crawl id default

    Raises:
        ConfigError: on any invalid option
    """
    if argv is None:
        argv = sys.argv[1:]
    if environ is None:
        environ = os.environ
    if hostname is None:
        hostname = socket.gethostname()

    opts = gather_options(argv, environ, stdin=stdin, hostname=hostname)
    return build_run_config(opts, devices=devices, now=now, hostname=hostname)


def build_run_config(
    opts: dict,
    devices: Mapping[str, dict] | None = None,
    now: datetime | None = None,
    hostname: str | None = None,
) -> RunConfig:
    """Validate merged options and build the RunConfig."""
    crawl_id = opts["crawlId"]

    collection = interpolate_filename(opts["collection"], crawl_id, hostname=hostname, now=now)
    validate_collection(collection)

    timeout_ms = _seconds_to_ms(opts["timeout"])
    wait_until = normalize_wait_until(opts["waitUntil"])
    screenshot = filter_screenshot_types(opts.get("screenshot"))
    logging_channels = frozenset(split_list(opts["logging"], "logging"))

    behaviors = split_list(opts["behaviors"], "behaviors")
    behavior_opts = build_behavior_options(behaviors, opts["behaviorTimeout"], logging_channels)

    if opts.get("newContext"):
        logger.warning(
            "The newContext option is deprecated. Values passed to this option will be ignored"
        )

    workers = _as_int("workers", opts["workers"], minimum=1)
    concurrency = select_concurrency(workers)
    if concurrency == CONCURRENCY_WINDOW:
        logger.info("Window context being used to support %d workers", workers)
    else:
        logger.info("Page context being used with 1 worker")

    emulate_device = None
    if opts.get("mobileDevice"):
        emulate_device = lookup_device(opts["mobileDevice"], devices)

    seeds = list(opts["seeds"])
    if opts.get("seedFile"):
        seeds.extend(read_seed_file(opts["seedFile"]))

    scope_type = opts.get("scopeType")

    net_idle_wait = resolve_net_idle_wait(opts["netIdleWait"], scope_type)
    if opts["netIdleWait"] == -1:
        logger.info("Set netIdleWait to %s seconds", net_idle_wait)

    include = opts.get("include")
    if has_patterns(include) and scope_type and scope_type != "custom":
        logger.warning(
            "You've specified a scopeType and an include regex. "
            "The custom scope regex will take precedence, overriding the scopeType"
        )
        scope_type = "custom"

    depth = _as_int("depth", opts["depth"], minimum=-1)
    extra_hops = _as_int("extraHops", opts["extraHops"])

    scope_opts = {
        "scopeType": scope_type,
        "sitemap": opts.get("sitemap"),
        "include": include,
        "exclude": opts.get("exclude"),
        "depth": depth,
        "extraHops": extra_hops,
    }
    scoped_seeds = build_scope_seeds(seeds, scope_opts)

    cwd = opts["cwd"]
    stats_filename = opts.get("statsFilename")
    if stats_filename:
        stats_filename = os.path.abspath(os.path.join(cwd, stats_filename))

    return RunConfig(
        collection=collection,
        crawl_id=crawl_id,
        cwd=cwd,
        workers=workers,
        concurrency=concurrency,
        timeout_ms=timeout_ms,
        wait_until=wait_until,
        net_idle_wait=net_idle_wait,
        seeds=scoped_seeds,
        scope_type=scope_type,
        depth=depth,
        extra_hops=extra_hops,
        limit=_as_int("limit", opts["limit"]),
        include=_pattern_tuple(include),
        exclude=_pattern_tuple(opts.get("exclude")),
        sitemap=opts.get("sitemap"),
        allow_hash_urls=opts["allowHashUrls"],
        seed_file=opts.get("seedFile"),
        logging=logging_channels,
        behaviors=behavior_opts.enabled,
        behavior_timeout_ms=behavior_opts.timeout_ms or 0,
        behavior_opts=behavior_opts,
        behaviors_log_debug=behavior_opts.debug,
        screenshot=screenshot,
        block_rules=tuple(opts["blockRules"]),
        block_message=opts.get("blockMessage"),
        block_ads=opts["blockAds"],
        ad_block_message=opts.get("adBlockMessage"),
        headless=opts["headless"],
        driver=opts["driver"],
        mobile_device=opts.get("mobileDevice"),
        emulate_device=emulate_device,
        user_agent=opts.get("userAgent"),
        user_agent_suffix=opts.get("userAgentSuffix"),
        profile=opts.get("profile"),
        lang=opts.get("lang"),
        generate_cdx=opts["generateCDX"],
        combine_warc=opts["combineWARC"],
        rollover_size=_as_int("rolloverSize", opts["rolloverSize"]),
        generate_wacz=opts["generateWACZ"],
        text=opts["text"],
        warc_info=dict(opts.get("warcInfo") or {}),
        stats_filename=stats_filename,
        redis_store_url=opts.get("redisStoreUrl"),
        save_state=opts["saveState"],
        save_state_interval=_as_int("saveStateInterval", opts["saveStateInterval"]),
        save_state_history=_as_int("saveStateHistory", opts["saveStateHistory"]),
        size_limit=_as_int("sizeLimit", opts["sizeLimit"]),
        time_limit=_as_int("timeLimit", opts["timeLimit"]),
        screencast_port=_as_int("screencastPort", opts["screencastPort"]),
        screencast_redis=opts["screencastRedis"],
        health_check_port=_as_int("healthCheckPort", opts["healthCheckPort"]),
        overwrite=opts["overwrite"],
        wait_on_done=opts["waitOnDone"],
    )


def _pattern_tuple(value) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)
