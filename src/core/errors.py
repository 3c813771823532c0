from __future__ import annotations


class BalanceCacheError(Exception):
    """Base error for the balance cache."""


class NotInitializedError(BalanceCacheError):
    """Raised when the cache is used before a store is bound with init()."""


class CacheFileNotFoundError(BalanceCacheError):
    """Raised when a balance table cannot be opened."""


class MalformedFileError(BalanceCacheError):
    """Raised when a balance table has no valid header row."""


class CapacityExceededError(BalanceCacheError):
    """Raised by the store when a new key would exceed max_entries."""


class ValidationError(BalanceCacheError):
    """Raised when user input is invalid."""


class ExternalServiceError(BalanceCacheError):
    """Raised when the remote recovery service fails."""


class BalanceNotFoundError(BalanceCacheError):
    """Raised when a bounded search does not find the balance."""
