"""
Mobile device emulation lookup.

Device descriptors come from Playwright's built-in registry
(viewport, user agent, scale factor, touch support).
"""

from __future__ import annotations

from typing import Mapping

from .errors import ConfigError


def load_device_table() -> dict[str, dict]:
    """Load Playwright's device descriptor registry."""
    from playwright.sync_api import sync_playwright

    with sync_playwright() as p:
        return {name: dict(desc) for name, desc in p.devices.items()}


def lookup_device(name: str, devices: Mapping[str, dict] | None = None) -> dict:
    """
    Resolve a device name to its emulation descriptor.

    Raises:
        ConfigError: if the name is not in the table
    """
    if devices is None:
        devices = load_device_table()
    descriptor = devices.get(name)
    if not descriptor:
        raise ConfigError(f"Unknown device: {name}")
    return dict(descriptor)
