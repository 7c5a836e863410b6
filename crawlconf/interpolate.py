"""
Filename templating for collection and archive names.

Supported tokens:
- @ts          UTC timestamp, ISO 8601 with ':TZz.-' stripped (20261019112033123)
- @hostname    full host name
- @hostsuffix  last 14 characters of the host name
- @id          crawl id
"""

import re
import socket
from datetime import datetime, timezone


_TS_STRIP_RX = re.compile(r"[:TZz.-]")

HOST_SUFFIX_LENGTH = 14


def format_timestamp(now: datetime | None = None) -> str:
    """Compact UTC timestamp with millisecond precision."""
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    iso = now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"
    return _TS_STRIP_RX.sub("", iso)


def interpolate_filename(
    filename: str,
    crawl_id: str,
    hostname: str | None = None,
    now: datetime | None = None,
) -> str:
    """
    Substitute template tokens in a filename.

    Args:
        filename: Template, e.g. "crawl-@ts" or "@id-@hostsuffix"
        crawl_id: Value for @id
        hostname: Value for @hostname / @hostsuffix (defaults to this host)
        now: Timestamp for @ts (defaults to current UTC time)

    Returns:
        Interpolated filename
    """
    if hostname is None:
        hostname = socket.gethostname()

    if "@ts" in filename:
        filename = filename.replace("@ts", format_timestamp(now))
    filename = filename.replace("@hostname", hostname)
    filename = filename.replace("@hostsuffix", hostname[-HOST_SUFFIX_LENGTH:])
    filename = filename.replace("@id", crawl_id)
    return filename
