"""
Upload finished crawl archives to S3-compatible storage.

The store endpoint URL carries the bucket and key prefix in its path:

    https://s3.example.com/my-bucket/crawls/run-1/
                           ^bucket   ^object prefix

After each upload the local file is hashed (SHA-256) and stat'ed in a
separate pass, and, when a webhook is configured, a completion notification
with the store URI, hash and size is dispatched.
"""

from __future__ import annotations

import logging
import os
import socket
from dataclasses import asdict, dataclass
from typing import Any, Mapping
from urllib.parse import urlsplit, urlunsplit

import boto3
from boto3.exceptions import Boto3Error
from boto3.s3.transfer import TransferConfig
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from crawlconf.errors import ConfigError

from .digest import checksum_file, get_file_size
from .errors import StorageError
from .transport import RedisConnections, Webhook, dispatch, parse_webhook_url


logger = logging.getLogger(__name__)

MULTIPART_CHUNK_SIZE = 100 * 1024 * 1024

DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class StoreInfo:
    """Object store endpoint (bucket and prefix in the path) and credentials."""
    endpoint_url: str
    access_key: str | None = None
    secret_key: str | None = None


@dataclass(frozen=True)
class Resource:
    """One uploaded artifact."""
    path: str
    hash: str
    bytes: int


@dataclass(frozen=True)
class Notification:
    """Completion event sent to the webhook."""
    id: str
    user: str | None
    filename: str
    hash: str
    size: int
    completed: bool

    def to_dict(self) -> dict:
        return asdict(self)


def parse_store_url(url_or_info: str | StoreInfo) -> tuple[StoreInfo, str, str, str]:
    """
    Split a store endpoint into (info, full_prefix, bucket, object_prefix).

    A plain string may carry credentials as user:password; they are moved
    into the StoreInfo and stripped from the prefix.
    """
    if isinstance(url_or_info, str):
        parts = urlsplit(url_or_info)
        info = StoreInfo(url_or_info, parts.username, parts.password)
    else:
        info = url_or_info
        parts = urlsplit(info.endpoint_url)

    if parts.scheme not in ("http", "https") or not parts.hostname:
        raise ConfigError(f"Invalid store endpoint url: {parts.scheme}://{parts.hostname or ''}")

    netloc = parts.hostname
    if parts.port and parts.port != DEFAULT_PORTS[parts.scheme]:
        netloc = f"{netloc}:{parts.port}"
    full_prefix = urlunsplit((parts.scheme, netloc, parts.path, parts.query, ""))

    path = parts.path
    bucket = path[1:].split("/")[0]
    if not bucket:
        raise ConfigError(f"Store endpoint url has no bucket: {full_prefix}")
    object_prefix = path[len(bucket) + 2:]

    return info, full_prefix, bucket, object_prefix


def make_s3_client(info: StoreInfo, endpoint: str):
    return boto3.client(
        "s3",
        endpoint_url=endpoint,
        aws_access_key_id=info.access_key,
        aws_secret_access_key=info.secret_key,
        config=BotoConfig(s3={"addressing_style": "path"}),
    )


class ArtifactSyncClient:
    """Uploads archives to one bucket/prefix and reports them to a webhook."""

    def __init__(
        self,
        url_or_info: str | StoreInfo,
        webhook_url: str | None = None,
        user_id: str | None = None,
        crawl_id: str | None = None,
        s3_client: Any = None,
        connections: RedisConnections | None = None,
    ) -> None:
        self.webhook: Webhook | None = parse_webhook_url(webhook_url) if webhook_url else None
        self.webhook_url = webhook_url

        info, self.full_prefix, self.bucket_name, self.object_prefix = parse_store_url(url_or_info)

        parts = urlsplit(self.full_prefix)
        self.endpoint = f"{parts.scheme}://{parts.netloc}"
        self.client = s3_client if s3_client is not None else make_s3_client(info, self.endpoint)
        self.transfer_config = TransferConfig(
            multipart_threshold=MULTIPART_CHUNK_SIZE,
            multipart_chunksize=MULTIPART_CHUNK_SIZE,
        )

        self.user_id = user_id
        self.crawl_id = crawl_id
        self.connections = connections

    def object_key(self, filename: str) -> str:
        return self.object_prefix + filename

    def upload_file(self, src_filename: str, target_filename: str) -> Resource:
        """
        Upload a local file, then hash and size it.

        The digest is computed in a second pass over the local file after the
        upload returns.

        Raises:
            StorageError: if the upload or the local read fails
        """
        key = self.object_key(target_filename)
        logger.info("Bucket: %s", self.bucket_name)
        logger.info("Crawl Id: %s", self.crawl_id)
        logger.info("Prefix: %s", self.object_prefix)
        logger.info("Target Filename: %s", target_filename)

        try:
            self.client.upload_file(src_filename, self.bucket_name, key, Config=self.transfer_config)
        except (Boto3Error, BotoCoreError, ClientError, OSError) as exc:
            raise StorageError(f"Upload of {src_filename} to {self.bucket_name}/{key} failed: {exc}") from exc

        final_hash = checksum_file(src_filename, "sha256")
        size = get_file_size(src_filename)
        return Resource(path=target_filename, hash=final_hash, bytes=size)

    def download_file(self, src_filename: str, dest_filename: str) -> None:
        """Fetch an object under this client's prefix to a local path."""
        key = self.object_key(src_filename)
        try:
            self.client.download_file(self.bucket_name, key, dest_filename)
        except (Boto3Error, BotoCoreError, ClientError, OSError) as exc:
            raise StorageError(f"Download of {self.bucket_name}/{key} failed: {exc}") from exc

    def build_notification(self, resource: Resource, completed: bool = True) -> Notification:
        return Notification(
            id=self.crawl_id,
            user=self.user_id,
            filename=self.full_prefix + resource.path,
            hash=resource.hash,
            size=resource.bytes,
            completed=completed,
        )

    def upload_and_notify(self, src_filename: str, target_filename: str, completed: bool = True) -> Resource:
        """
        Upload an archive and, if a webhook is configured, report it.

        Raises:
            StorageError: upload or digest failure
            NotificationError: webhook delivery failure
        """
        resource = self.upload_file(src_filename, target_filename)
        logger.info("Uploaded %s (%d bytes, sha256 %s)", resource.path, resource.bytes, resource.hash)

        if self.webhook is not None:
            notification = self.build_notification(resource, completed)
            logger.info("Pinging Webhook: %s", self.webhook_url)
            dispatch(self.webhook, notification.to_dict(), self.connections)

        return resource


def init_storage(
    environ: Mapping[str, str] | None = None,
    **client_kwargs,
) -> ArtifactSyncClient | None:
    """
    Build the sync client from environment variables.

    Returns None when STORE_ENDPOINT_URL is not set.
    """
    if environ is None:
        environ = os.environ

    if not environ.get("STORE_ENDPOINT_URL"):
        return None

    info = StoreInfo(
        endpoint_url=environ["STORE_ENDPOINT_URL"] + environ.get("STORE_PATH", ""),
        access_key=environ.get("STORE_ACCESS_KEY"),
        secret_key=environ.get("STORE_SECRET_KEY"),
    )

    logger.info("Initing Storage...")
    return ArtifactSyncClient(
        info,
        webhook_url=environ.get("WEBHOOK_URL") or None,
        user_id=environ.get("STORE_USER"),
        crawl_id=environ.get("CRAWL_ID") or socket.gethostname(),
        **client_kwargs,
    )
