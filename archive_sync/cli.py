#!/usr/bin/env python3
"""
archive-sync: push a finished archive to the configured object store.

Storage is configured from the environment:
    STORE_ENDPOINT_URL  endpoint with bucket and prefix, e.g. https://s3.host/bucket/crawls/
    STORE_PATH          appended to the endpoint url
    STORE_ACCESS_KEY / STORE_SECRET_KEY
    STORE_USER          user id reported to the webhook
    CRAWL_ID            crawl id (default: host name)
    WEBHOOK_URL         http(s)://... or redis://host:port/db/key

Usage:
    archive-sync upload collections/crawl/crawl.wacz crawl.wacz
    archive-sync upload part-1.wacz part-1.wacz --partial
    archive-sync download crawl.wacz ./crawl.wacz
"""

import argparse
import json
import logging
import sys
from dataclasses import asdict

from crawlconf.errors import ConfigError

from .client import init_storage
from .errors import NotificationError, StorageError
from .transport import shared_connections


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Upload crawl archives to S3-compatible storage")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log transfer details")
    sub = parser.add_subparsers(dest="command", required=True)

    upload = sub.add_parser("upload", help="Upload a file and notify the webhook")
    upload.add_argument("src", help="Local file to upload")
    upload.add_argument("target", help="Object name under the store prefix")
    upload.add_argument("--partial", action="store_true",
                        help="Report the upload as not completed (e.g. a rollover part)")

    download = sub.add_parser("download", help="Download a file from the store")
    download.add_argument("src", help="Object name under the store prefix")
    download.add_argument("dest", help="Local destination path")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(message)s",
        stream=sys.stderr,
    )

    try:
        storage = init_storage()
        if storage is None:
            print("Error: STORE_ENDPOINT_URL is not set", file=sys.stderr)
            return 1

        if args.command == "upload":
            resource = storage.upload_and_notify(args.src, args.target, completed=not args.partial)
            print(json.dumps(asdict(resource)))
        else:
            storage.download_file(args.src, args.dest)
    except (ConfigError, StorageError, NotificationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        shared_connections.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
