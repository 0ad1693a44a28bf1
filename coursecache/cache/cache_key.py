# coursecache/cache/cache_key.py
"""
Cache Key Generation Module.

Builds deterministic cache keys from a namespace and a set of query
parameters. Parameter order never changes the key, so call sites that pass
the same filters in a different order share one cache entry.
"""

from __future__ import annotations
import enum
import inspect
import json
import logging
from datetime import date, datetime, time
from typing import Any, Mapping, Optional
import numpy as np
import pandas as pd

from .cache_exceptions import CacheKeyError

logger = logging.getLogger(__name__)

NAMESPACE_DELIMITER = "_"
PAIR_DELIMITER = "&"
VALUE_DELIMITER = "="
DOC_KEY_INFIX = "doc"


def _stable_json_serializer(obj: Any) -> Any:
    """
    JSON fallback for parameter values the json module cannot encode itself.

    Args:
        obj: The Python object to convert.

    Returns:
        A JSON-compatible representation of the object.

    Raises:
        TypeError: If the object has no stable representation.
    """
    if isinstance(obj, pd.DataFrame):
        return {
            "__type__": "pandas.DataFrame",
            "columns": [str(col) for col in obj.columns],
            "index": [str(idx) for idx in obj.index],
            "data": obj.to_numpy().tolist(),
        }
    elif isinstance(obj, pd.Series):
        return {
            "__type__": "pandas.Series",
            "name": None if obj.name is None else str(obj.name),
            "index": [str(idx) for idx in obj.index],
            "data": obj.tolist(),
        }
    elif isinstance(obj, pd.Timestamp):
        return obj.isoformat()
    elif isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, np.generic):
        # numpy scalars (np.int64, np.float32, np.bool_, ...)
        return obj.item()
    elif isinstance(obj, (datetime, date, time)):
        return obj.isoformat()
    elif isinstance(obj, enum.Enum):
        return obj.value
    elif isinstance(obj, (set, frozenset)):
        # Elements may be of mixed types; order by their own canonical text
        return sorted(obj, key=_canonical_text)
    elif isinstance(obj, tuple):
        return list(obj)
    elif hasattr(obj, "__cache_key__"):
        # Objects may define their own key representation
        try:
            key_repr = obj.__cache_key__()
            json.dumps(key_repr, default=_stable_json_serializer, sort_keys=True)
            return key_repr
        except Exception as e:
            logger.error(
                f"Error calling or serializing __cache_key__ for object {obj!r}: {e}",
                exc_info=True,
            )
            raise TypeError(
                f"Object's __cache_key__ method failed or returned non-serializable data for {type(obj)}"
            ) from e
    elif inspect.isfunction(obj) or inspect.ismethod(obj):
        return f"{obj.__module__}.{obj.__qualname__}"
    raise TypeError(
        f"Object of type {type(obj).__name__} is not JSON serializable for cache key generation. "
        f"Consider adding a __cache_key__ method or using simpler types."
    )


def _canonical_text(value: Any) -> str:
    """Compact JSON text of a value with object keys sorted."""
    return json.dumps(
        value,
        default=_stable_json_serializer,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def generate_cache_key(namespace: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """
    Generates a stable cache key from a namespace and query parameters.

    Each parameter is rendered as ``name=<canonical JSON of value>``; the
    pairs are sorted by name, joined with ``&`` and appended to the
    namespace after a ``_``. Without parameters the namespace is returned
    unchanged.

    Args:
        namespace: Logical resource family, e.g. ``"courses"``.
        params: Optional mapping of query parameters.

    Returns:
        The cache key string.

    Raises:
        CacheKeyError: If a parameter value has no canonical text form, or a
            parameter name is not a string or contains ``=`` or ``&``.
    """
    if not params:
        return namespace

    for name in params:
        if not isinstance(name, str) or PAIR_DELIMITER in name or VALUE_DELIMITER in name:
            raise CacheKeyError(
                f"Cannot generate cache key: invalid parameter name {name!r}.",
                details={"namespace": namespace, "param": name},
            )

    pairs = []
    for name in sorted(params):
        try:
            pairs.append(f"{name}{VALUE_DELIMITER}{_canonical_text(params[name])}")
        except (TypeError, ValueError) as e:
            logger.error(
                f"Failed to serialize parameter '{name}' for cache key in namespace '{namespace}': {e}"
            )
            raise CacheKeyError(
                f"Cannot generate cache key: unserializable value for parameter '{name}'. Error: {e}",
                details={"namespace": namespace, "param": name},
            ) from e

    return f"{namespace}{NAMESPACE_DELIMITER}{PAIR_DELIMITER.join(pairs)}"


def generate_doc_key(collection: str, doc_id: Any) -> str:
    """
    Key for a single document, e.g. ``courses_doc_abc123``.

    Shares the collection prefix so prefix invalidation of the collection
    also drops its cached documents.
    """
    return NAMESPACE_DELIMITER.join((collection, DOC_KEY_INFIX, str(doc_id)))
