# coursecache/dataprovider/interfaces.py
# -*- coding: utf-8 -*-
"""
Defines the interface of the backend document store.

The document database itself is an external collaborator; the cache only
needs collection queries and single-document reads from it.
"""
from __future__ import annotations
import abc
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Sequence, runtime_checkable


@dataclass(frozen=True)
class DocumentSnapshot:
    """A document as returned by the store: its id and field data."""

    id: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_record(self) -> dict[str, Any]:
        """Flatten into the ``{"id": ..., **fields}`` shape the screens consume."""
        return {"id": self.id, **self.data}


@runtime_checkable
class IDocumentStore(Protocol):
    """
    Interface for the document database read path.

    Every call is a paid read against the backend, which is what the cache
    exists to avoid.
    """

    @abc.abstractmethod
    async def query(self, collection: str, constraints: Sequence[Any] = ()) -> list[DocumentSnapshot]:
        """
        Run a collection query.

        Args:
            collection: Collection name, e.g. ``"courses"``.
            constraints: Backend-specific query constraints (where/orderBy/limit).
                         Their ``str()`` form is used in cache keys.

        Returns:
            The matching documents.

        Raises:
            DataProviderError: If the backend request fails.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        """
        Read one document.

        Returns:
            The document, or None if it does not exist.

        Raises:
            DataProviderError: If the backend request fails.
        """
        raise NotImplementedError


class DataProviderError(Exception):
    """Base exception for document store errors."""
    pass
