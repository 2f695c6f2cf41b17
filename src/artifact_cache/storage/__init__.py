"""Key-addressed blob storage on the local filesystem."""

from .cache import FileCache, StoreResult

__all__ = ["FileCache", "StoreResult"]
