"""
Completion webhook transports.

A webhook URL is parsed once into one of two variants:

- HttpWebhook   http(s)://...              single JSON POST
- RedisWebhook  redis://host:port/db/key   RPUSH onto a redis list

Unknown schemes and malformed redis URLs are rejected at parse time, before
any network call.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Callable

import redis
import requests

from crawlconf.errors import ConfigError

from .errors import NotificationError


logger = logging.getLogger(__name__)

REDIS_URL_FORMAT = "redis://<host>:<port>/<db>/<key>"


@dataclass(frozen=True)
class HttpWebhook:
    url: str


@dataclass(frozen=True)
class RedisWebhook:
    connection_url: str
    key: str


Webhook = HttpWebhook | RedisWebhook


def parse_webhook_url(url: str) -> Webhook:
    """
    Parse a webhook URL into its transport variant.

    Raises:
        ConfigError: for a redis URL not of the form redis://host:port/db/key,
            or any scheme other than http, https or redis
    """
    if url.startswith("http://") or url.startswith("https://"):
        return HttpWebhook(url)

    if url.startswith("redis://"):
        parts = url.split("/")
        # ["redis:", "", "host:port", "db", "key"]
        if len(parts) != 5 or not parts[2] or not parts[3] or not parts[4]:
            raise ConfigError(f"redis webhook url must be in format: {REDIS_URL_FORMAT}")
        return RedisWebhook(connection_url="/".join(parts[:4]), key=parts[4])

    raise ConfigError(f"Unsupported webhook url scheme: {url}")


class RedisConnections:
    """
    Process-wide redis clients keyed by connection URL.

    Clients are created on first use and reused by every later dispatch;
    close() releases them at shutdown.
    """

    def __init__(self, factory: Callable[[str], redis.Redis] | None = None) -> None:
        self._factory = factory or redis.Redis.from_url
        self._clients: dict[str, redis.Redis] = {}

    def get(self, url: str) -> redis.Redis:
        client = self._clients.get(url)
        if client is None:
            client = self._factory(url)
            self._clients[url] = client
        return client

    def close(self) -> None:
        clients, self._clients = self._clients, {}
        for client in clients.values():
            client.close()

    def __len__(self) -> int:
        return len(self._clients)


shared_connections = RedisConnections()


def dispatch(webhook: Webhook, payload: dict, connections: RedisConnections | None = None) -> None:
    """
    Deliver a payload over the webhook's transport.

    No retries; any delivery failure raises NotificationError.
    """
    body = json.dumps(payload)

    if isinstance(webhook, HttpWebhook):
        try:
            resp = requests.post(
                webhook.url,
                data=body,
                headers={"Content-Type": "application/json"},
            )
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise NotificationError(f"Webhook POST to {webhook.url} failed: {exc}") from exc
        return

    if isinstance(webhook, RedisWebhook):
        if connections is None:
            connections = shared_connections
        try:
            connections.get(webhook.connection_url).rpush(webhook.key, body)
        except redis.RedisError as exc:
            raise NotificationError(
                f"Webhook push to {webhook.connection_url} list {webhook.key} failed: {exc}"
            ) from exc
        return

    raise NotificationError(f"Unknown webhook transport: {webhook!r}")
