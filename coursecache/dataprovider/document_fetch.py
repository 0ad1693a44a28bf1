# coursecache/dataprovider/document_fetch.py
"""
Fetch operations over an IDocumentStore, shaped for the cache manager.

Each builder returns a no-argument coroutine function that the query layer
can call (and call again on refresh).
"""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Sequence

if TYPE_CHECKING:
    from .interfaces import IDocumentStore

logger = logging.getLogger(__name__)


def collection_fetcher(
    store: "IDocumentStore",
    collection: str,
    constraints: Sequence[Any] = (),
) -> Callable[[], Awaitable[list[dict[str, Any]]]]:
    """Fetch a collection query as a list of ``{"id": ..., **fields}`` records."""
    constraints = tuple(constraints)

    async def fetch() -> list[dict[str, Any]]:
        snapshots = await store.query(collection, constraints)
        logger.debug(f"Read {len(snapshots)} documents from '{collection}'.")
        return [snapshot.to_record() for snapshot in snapshots]

    return fetch


def document_fetcher(
    store: "IDocumentStore",
    collection: str,
    doc_id: Optional[str],
) -> Callable[[], Awaitable[Optional[dict[str, Any]]]]:
    """Fetch one document as a record, or None if it does not exist."""

    async def fetch() -> Optional[dict[str, Any]]:
        if not doc_id:
            return None
        snapshot = await store.get(collection, doc_id)
        if snapshot is None:
            logger.debug(f"Document {collection}/{doc_id} does not exist.")
            return None
        return snapshot.to_record()

    return fetch
