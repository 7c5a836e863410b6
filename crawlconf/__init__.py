"""
Crawl run configuration.

Primary interface:
    from crawlconf import resolve

    config = resolve(["--seeds", "https://example.com/", "--workers", "2"])

    # Returns a frozen RunConfig with:
    # - collection, crawl_id, workers, concurrency
    # - timeout_ms, wait_until, net_idle_wait
    # - seeds (ScopeSeed), behavior_opts, screenshot, logging
"""

from .behaviors import BehaviorOptions, build_behavior_options
from .errors import ConfigError
from .interpolate import interpolate_filename
from .resolver import (
    CONCURRENCY_PAGE,
    CONCURRENCY_WINDOW,
    RunConfig,
    build_run_config,
    resolve,
)
from .seeds import ScopeSeed, build_scope_seed, build_scope_seeds


__all__ = [
    "resolve",
    "build_run_config",
    "RunConfig",
    "ConfigError",
    "ScopeSeed",
    "build_scope_seed",
    "build_scope_seeds",
    "BehaviorOptions",
    "build_behavior_options",
    "interpolate_filename",
    "CONCURRENCY_PAGE",
    "CONCURRENCY_WINDOW",
]
