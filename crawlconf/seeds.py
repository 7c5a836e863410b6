"""
Scoped crawl seeds.

A ScopeSeed pairs a start URL with the rules the crawl engine uses to decide
whether a discovered link is in scope:

- page       only the seed URL itself
- page-spa   the seed URL plus its #fragment variants
- prefix     URLs under the seed's directory (default)
- host       URLs on the seed's host
- domain     URLs on the seed's domain and any subdomain
- any        every URL
- custom     only the supplied include regexes

Explicit include regexes always win over a named preset: a seed given both
is built as "custom".
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable
from urllib.parse import urlsplit, urlunsplit

from .errors import ConfigError


logger = logging.getLogger(__name__)

SCOPE_TYPES = ("page", "page-spa", "prefix", "host", "domain", "any", "custom")

# Stand-in for "unlimited" when comparing depths
MAX_DEPTH = 1_000_000

# Seed option keys accepted from YAML / merged scope options
SEED_KEYS = {
    "url": "url",
    "scopeType": "scope_type",
    "include": "include",
    "exclude": "exclude",
    "depth": "depth",
    "extraHops": "extra_hops",
    "sitemap": "sitemap",
    "allowHash": "allow_hash",
}


@dataclass(frozen=True)
class ScopeSeed:
    """A start URL plus its resolved scope rules."""
    url: str
    scope_type: str
    include: tuple[re.Pattern, ...] = ()
    exclude: tuple[re.Pattern, ...] = ()
    depth: int = -1
    extra_hops: int = 0
    sitemap: str | None = None
    allow_hash: bool = False

    @property
    def check_sitemap(self) -> bool:
        return self.sitemap is not None

    @property
    def max_depth(self) -> int:
        return MAX_DEPTH if self.depth < 0 else self.depth

    def is_included(self, url: str, depth: int, extra_hops: int = 0) -> tuple[str, bool] | None:
        """
        Check a discovered URL against this seed's scope.

        Returns:
            (normalized_url, out_of_scope) if the URL may be queued, where
            out_of_scope marks an extra-hop link; None if it must be skipped.
        """
        if depth > self.max_depth:
            return None

        try:
            parts = _split_http_url(url)
        except ConfigError:
            return None
        if not self.allow_hash:
            parts = parts._replace(fragment="")
        url = urlunsplit(parts)

        if url == self.url:
            return url, False

        in_scope = any(rx.search(url) for rx in self.include)
        out_of_scope = False
        if not in_scope:
            if self.extra_hops and extra_hops <= self.extra_hops:
                out_of_scope = True
            else:
                return None

        if any(rx.search(url) for rx in self.exclude):
            return None

        return url, out_of_scope

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "scopeType": self.scope_type,
            "include": [rx.pattern for rx in self.include],
            "exclude": [rx.pattern for rx in self.exclude],
            "depth": self.depth,
            "extraHops": self.extra_hops,
            "sitemap": self.sitemap,
            "allowHash": self.allow_hash,
        }


def _split_http_url(url: str):
    if not isinstance(url, str):
        raise ConfigError(f'Invalid Seed "{url}" - not a valid URL')
    parts = urlsplit(url.strip())
    if parts.scheme.lower() not in ("http", "https"):
        raise ConfigError(f'Invalid Seed "{url}" - URL must start with http:// or https://')
    if not parts.hostname:
        raise ConfigError(f'Invalid Seed "{url}" - not a valid URL')
    netloc = parts.netloc.rsplit("@", 1)
    netloc[-1] = netloc[-1].lower()
    return parts._replace(
        scheme=parts.scheme.lower(),
        netloc="@".join(netloc),
        path=parts.path or "/",
    )


def parse_regexes(value) -> tuple[re.Pattern, ...]:
    """Compile a regex string, a list of them, or nothing."""
    if value is None or value == "" or value is False:
        return ()
    if isinstance(value, (str, re.Pattern)):
        value = [value]
    patterns = []
    for rx in value:
        if isinstance(rx, re.Pattern):
            patterns.append(rx)
            continue
        try:
            patterns.append(re.compile(str(rx)))
        except re.error as exc:
            raise ConfigError(f'Invalid scope regex "{rx}": {exc}') from exc
    return tuple(patterns)


def has_patterns(value) -> bool:
    """True for a non-empty regex string or a non-empty list of them."""
    if isinstance(value, str):
        return bool(value)
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    return False


def scope_from_type(scope_type: str, parts) -> tuple[tuple[re.Pattern, ...], bool]:
    """Derive include regexes (and hash handling) for a named scope preset."""
    origin = f"{parts.scheme}://{parts.netloc}"
    allow_hash = False

    if scope_type == "page":
        include = []
    elif scope_type == "page-spa":
        include = ["^" + re.escape(urlunsplit(parts._replace(fragment=""))) + "#.+"]
        allow_hash = True
    elif scope_type == "prefix":
        path = parts.path[: parts.path.rfind("/") + 1]
        include = ["^" + re.escape(origin + path)]
    elif scope_type == "host":
        include = ["^" + re.escape(origin + "/")]
    elif scope_type == "domain":
        host = parts.netloc.rsplit("@", 1)[-1]
        if host.startswith("www."):
            host = host[len("www."):]
        include = ["^" + re.escape(parts.scheme + "://") + r"([^/]+\.)*" + re.escape(host + "/")]
    elif scope_type == "any":
        include = [".*"]
    else:
        raise ConfigError(
            f'Invalid scope type "{scope_type}" specified, valid types are: '
            + ", ".join(SCOPE_TYPES)
        )

    return tuple(re.compile(rx) for rx in include), allow_hash


def resolve_sitemap(sitemap, parts) -> str | None:
    """True → /sitemap.xml on the seed's origin; a string is used as-is."""
    if sitemap is True:
        return urlunsplit((parts.scheme, parts.netloc, "/sitemap.xml", "", ""))
    if isinstance(sitemap, str) and sitemap:
        return sitemap
    return None


def _whole_number(name: str, value, default: int, minimum: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        raise ConfigError(f"Invalid value for {name}: {value!r}, must be a whole number")
    try:
        number = float(str(value).strip())
    except ValueError:
        raise ConfigError(f"Invalid value for {name}: {value!r}, must be a whole number") from None
    if not number.is_integer():
        raise ConfigError(f"Invalid value for {name}: {value!r}, must be a whole number")
    if number < minimum:
        raise ConfigError(f"Invalid value for {name}: {value!r}, must be at least {minimum}")
    return int(number)


def build_scope_seed(
    url: str,
    scope_type: str | None = None,
    include=None,
    exclude=None,
    depth: int = -1,
    extra_hops: int = 0,
    sitemap=None,
    allow_hash: bool = False,
) -> ScopeSeed:
    """Construct a ScopeSeed, applying preset and precedence rules."""
    parts = _split_http_url(url)
    include_rx = parse_regexes(include)
    exclude_rx = parse_regexes(exclude)

    if not scope_type:
        scope_type = "custom" if include_rx else "prefix"
    elif include_rx and scope_type != "custom":
        logger.warning(
            "Seed %s has both scopeType %r and include regexes; "
            "the include regexes take precedence, using 'custom'", url, scope_type,
        )
        scope_type = "custom"

    if scope_type == "custom":
        if not include_rx:
            raise ConfigError(f'Seed "{url}" uses custom scope but no include regex was given')
    else:
        include_rx, preset_hash = scope_from_type(scope_type, parts)
        allow_hash = allow_hash or preset_hash

    return ScopeSeed(
        url=urlunsplit(parts),
        scope_type=scope_type,
        include=include_rx,
        exclude=exclude_rx,
        depth=_whole_number("depth", depth, -1, minimum=-1),
        extra_hops=_whole_number("extraHops", extra_hops, 0, minimum=0),
        sitemap=resolve_sitemap(sitemap, parts),
        allow_hash=bool(allow_hash),
    )


def seed_from_options(opts: dict) -> ScopeSeed:
    """Build a seed from a camelCase option mapping (shared scope options merged with seed fields)."""
    kwargs = {}
    for key, value in opts.items():
        name = SEED_KEYS.get(key)
        if name is None:
            logger.debug("Ignoring unknown seed option %r", key)
            continue
        kwargs[name] = value
    if "url" not in kwargs:
        raise ConfigError(f"Seed entry has no url: {opts!r}")
    return build_scope_seed(**kwargs)


def build_scope_seeds(seeds: Iterable, scope_opts: dict) -> tuple[ScopeSeed, ...]:
    """Merge shared scope options under each seed's own fields and build them in order."""
    result = []
    for seed in seeds:
        if isinstance(seed, str):
            seed = {"url": seed}
        elif not isinstance(seed, dict):
            raise ConfigError(f"Invalid seed entry: {seed!r}")
        result.append(seed_from_options({**scope_opts, **seed}))
    return tuple(result)
