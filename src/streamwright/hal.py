"""
Accessors for the control plane's HAL JSON.

Any level of a response may be missing. All reads go through ``dig`` so that an
absent key, a null, or a value of the wrong shape always means "nothing here".
"""

import json
from typing import Any

from .transport.base import Transport


def dig(node: Any, *keys: str) -> Any:
    """Follow ``keys`` through nested mappings, returning None at the first gap."""
    if not keys:
        return node
    if not isinstance(node, dict):
        return None
    return dig(node.get(keys[0]), *keys[1:])


def collection(node: Any, *path: str) -> list[Any]:
    """The list found at ``path``, or an empty list."""
    value = dig(node, *path)
    return value if isinstance(value, list) else []


def embedded(node: Any, rel: str) -> list[Any]:
    """Items of the ``_embedded.<rel>`` collection."""
    return collection(node, "_embedded", rel)


def text(node: Any, key: str, default: str | None = "") -> str | None:
    """A field rendered as text, or ``default`` when absent."""
    return as_text(dig(node, key), default)


def as_text(value: Any, default: str | None = "") -> str | None:
    if value is None:
        return default
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


async def collect_pages(
    transport: Transport, path: str, rel: str, query: dict[str, Any] | None = None
) -> list[Any]:
    """Gather ``rel`` items across every page by following ``_links.next.href``."""
    items: list[Any] = []
    seen: set[str] = set()
    page = await transport.get_json(path, query=query)
    while True:
        items.extend(embedded(page, rel))
        href = dig(page, "_links", "next", "href")
        if not href or href in seen:
            return items
        seen.add(href)
        page = await transport.get_json(href)
