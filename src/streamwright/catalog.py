"""
Bulk application catalog: a published ``type.name=artifactUri`` properties file.

Only two-segment keys describe an application. Longer keys such as
``source.s3.metadata`` or ``sink.log.bootVersion`` are descriptor entries for
an existing app and are skipped without complaint, as are lines that do not
parse at all.
"""

from .exceptions import RemoteOperationError
from .models import CatalogEntry
from .observability.logging import get_logger
from .transport.base import Transport

log = get_logger("swr.catalog")


def parse_catalog_line(line: str) -> CatalogEntry | None:
    """Parse one line, returning None for anything that is not an app entry."""
    line = line.strip()
    if not line or line.startswith("#"):
        return None

    key, sep, value = line.partition("=")
    if not sep:
        return None

    app_type, dot, name = key.strip().partition(".")
    if not dot or "." in name:
        return None

    uri = value.strip()
    if not app_type or not name or not uri:
        return None
    return CatalogEntry(type=app_type, name=name, uri=uri)


def parse_catalog(text: str | None) -> list[CatalogEntry]:
    """All app entries of a catalog document, in file order."""
    if not text:
        return []
    entries = []
    for line in text.splitlines():
        entry = parse_catalog_line(line)
        if entry is not None:
            entries.append(entry)
    return entries


async def fetch_catalog(transport: Transport, url: str, timeout: float | None = None) -> str | None:
    """Download the catalog text. A 404 means there is no catalog and yields None."""
    try:
        response = await transport.execute(
            "GET",
            url,
            headers={"Accept": "text/plain"},
            authenticated=False,
            timeout=timeout,
        )
    except RemoteOperationError as e:
        if e.status_code == 404:
            log.warning("Catalog not found", url=url)
            return None
        raise
    return response.body
