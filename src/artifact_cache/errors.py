from __future__ import annotations

from pathlib import Path


class CacheError(Exception):
    """Base error for cache operations. ``path`` is the offending location."""

    def __init__(self, message: str, *, path: str | Path | None = None) -> None:
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class CacheMissError(CacheError, LookupError):
    pass


class CacheDirectoryError(CacheError):
    pass


class CacheFileError(CacheError):
    pass


class CacheCopyError(CacheError):
    pass


class ArtifactOpenError(CacheError):
    pass
