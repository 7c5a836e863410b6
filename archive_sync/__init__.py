"""
Archive upload and completion notification.

Primary interface:
    from archive_sync import init_storage

    storage = init_storage()   # None when STORE_ENDPOINT_URL is unset
    if storage:
        storage.upload_and_notify("collections/crawl/crawl.wacz", "crawl.wacz")
"""

from .client import (
    ArtifactSyncClient,
    Notification,
    Resource,
    StoreInfo,
    init_storage,
    parse_store_url,
)
from .digest import checksum_file, get_dir_size, get_file_size
from .errors import NotificationError, StorageError
from .transport import (
    HttpWebhook,
    RedisConnections,
    RedisWebhook,
    dispatch,
    parse_webhook_url,
    shared_connections,
)


__all__ = [
    "ArtifactSyncClient",
    "Notification",
    "Resource",
    "StoreInfo",
    "init_storage",
    "parse_store_url",
    "checksum_file",
    "get_dir_size",
    "get_file_size",
    "StorageError",
    "NotificationError",
    "HttpWebhook",
    "RedisWebhook",
    "RedisConnections",
    "dispatch",
    "parse_webhook_url",
    "shared_connections",
]
