"""
Error hierarchy of media-cache.

Every error logs itself on construction at the level of its class, tagged
with the correlation id and the cache table it concerns.
"""

import logging
from typing import Optional, Dict, Any
from mediacache.common.logging import get_logger
from mediacache.common.logging.correlation import get_correlation_id, get_cache_id

logger = get_logger(__name__)


class MediaCacheError(Exception):
    """Base class of all media-cache errors."""

    log_level = logging.ERROR

    def __init__(
        self,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        """
        Args:
            message: What went wrong
            data: Details logged with the error (media_id, cache_id, sqlite_error...)
            cause: Lower-level exception being wrapped
        """
        super().__init__(message)
        self.message = message
        self.data = data or {}
        self.cause = cause
        self.correlation_id = get_correlation_id()
        # An explicit cache_id in data beats the one bound to the context
        self.cache_id = self.data.get("cache_id") or get_cache_id()

        logger.log(self.log_level, message, data=self._log_fields())

    def _log_fields(self) -> Dict[str, Any]:
        fields = dict(self.data, error_type=type(self).__name__)
        if self.cause is not None:
            fields["cause"] = repr(self.cause)
        return fields

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict view, e.g. for JSON reports."""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "data": self.data,
            "correlation_id": self.correlation_id,
            "cache_id": self.cache_id,
            "cause": None if self.cause is None else str(self.cause),
        }


class ValidationError(MediaCacheError):
    """Rejected input: attribute types, keys, identifiers."""

    # Usually recovered by the caller
    log_level = logging.WARNING


class SerializationError(ValidationError):
    """Malformed serialized media string or unserializable media."""


class NotFoundError(MediaCacheError):
    """Requested media or cache table does not exist."""


class StorageError(MediaCacheError):
    """Failure in the backing database (open, prepare, exec, step)."""


class ConfigurationError(MediaCacheError):
    """Unusable configuration, e.g. no database location."""


class MetadataError(MediaCacheError):
    """Tags of a local file could not be read."""
