"""
crawl-config: resolve and print a crawl run configuration.

Usage:
    crawl-config --seeds https://example.com/ --scopeType host --workers 4
    crawl-config --config crawl.yaml --collection my-crawl
    cat crawl.yaml | crawl-config --config /crawls/stdin

Prints the resolved config as JSON. Exits 1 with an error message if any
option is invalid.
"""

import json
import logging
import sys

from .errors import ConfigError
from .resolver import resolve


def main(argv=None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(message)s", stream=sys.stderr)

    try:
        config = resolve(argv)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(config.to_dict(), indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
