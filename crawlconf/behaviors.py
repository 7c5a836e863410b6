"""
In-page behavior options handed to the crawl engine.
"""

from __future__ import annotations

import json
from dataclasses import dataclass


# Name of the page-side logging hook behaviors report through
BEHAVIOR_LOG_FUNC = "__bx_log"

DEFAULT_BEHAVIORS = "autoplay,autofetch,autoscroll,siteSpecific"

# Keys in the serialized mapping that are not behavior names
RESERVED_KEYS = frozenset({"timeout", "log", "debug"})


@dataclass(frozen=True)
class BehaviorOptions:
    """Which behaviors run on each page and how they report."""
    enabled: tuple[str, ...] = ()
    timeout_ms: int | None = None
    log_func: str | None = None
    debug: bool = False

    def to_dict(self) -> dict:
        opts: dict = {name: True for name in self.enabled}
        if self.timeout_ms:
            opts["timeout"] = self.timeout_ms
        if self.log_func:
            opts["log"] = self.log_func
        if self.debug:
            opts["debug"] = True
        return opts

    def to_json(self) -> str:
        """Opaque blob for the engine's page-side behavior setup."""
        return json.dumps(self.to_dict())


def build_behavior_options(
    behaviors: list[str],
    timeout_seconds: float,
    logging_channels: frozenset[str] | set[str],
) -> BehaviorOptions:
    """
    Compose behavior options from resolved flags.

    A positive timeout (seconds) is stored in milliseconds. The log hook is
    attached when "behaviors" logging is on; "behaviors-debug" attaches it
    and turns on debug output.
    """
    enabled = tuple(dict.fromkeys(b for b in behaviors if b and b not in RESERVED_KEYS))

    timeout_ms = None
    if timeout_seconds and timeout_seconds > 0:
        timeout_ms = int(round(timeout_seconds * 1000))

    log_func = None
    debug = False
    if "behaviors" in logging_channels:
        log_func = BEHAVIOR_LOG_FUNC
    elif "behaviors-debug" in logging_channels:
        log_func = BEHAVIOR_LOG_FUNC
        debug = True

    return BehaviorOptions(enabled=enabled, timeout_ms=timeout_ms, log_func=log_func, debug=debug)
