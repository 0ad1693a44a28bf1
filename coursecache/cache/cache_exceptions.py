class CacheError(Exception):
    """Base class for read cache errors."""
    def __init__(self, message, details=None):
        super().__init__(message)
        self.details = details if details is not None else {}

class DurableStoreError(CacheError):
    """Raised by a durable tier provider when a read, write or remove fails."""
    pass

class CacheSerializationError(CacheError):
    """Raised when a cache entry cannot be converted to or from its stored text form."""
    pass

class CacheKeyError(CacheError, TypeError):
    """Raised when a query parameter has no canonical text form for key generation."""
    pass
