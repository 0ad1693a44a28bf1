# coursecache/cache/interface.py
# -*- coding: utf-8 -*-
"""
Defines the interface for durable tier providers.

A durable provider is a plain string key/value store that outlives the
process (a directory on the local device, for example). The cache store
handles serialization and expiry; providers only move raw text.
"""
from __future__ import annotations
import abc
from typing import Iterator, Optional, Protocol, runtime_checkable


@runtime_checkable
class IDurableStore(Protocol):
    """
    Interface for persistent key/value storage used as the durable cache tier.

    All methods are synchronous. Implementations raise DurableStoreError on
    storage failures; the cache store catches and logs them.
    """

    @abc.abstractmethod
    def read_raw(self, key: str) -> Optional[str]:
        """
        Read the stored text for a key.

        Args:
            key: The full storage key (including the cache prefix).

        Returns:
            The stored text, or None if the key is not present.
        """
        raise NotImplementedError

    @abc.abstractmethod
    def write_raw(self, key: str, value: str) -> None:
        """
        Store text under a key, replacing any previous value.

        Raises:
            DurableStoreError: If the value could not be stored
                               (quota exceeded, I/O failure, ...).
        """
        raise NotImplementedError

    @abc.abstractmethod
    def remove_raw(self, key: str) -> None:
        """
        Remove a key. Removing an absent key is not an error.
        """
        raise NotImplementedError

    @abc.abstractmethod
    def keys(self) -> Iterator[str]:
        """
        Enumerate every stored key. Used for prefix scans.
        """
        raise NotImplementedError

    # Optional: providers holding OS resources may also define close()
