"""Content-addressed cache for build artifacts."""

from .artifact import ArtifactCache
from .config import AppConfig, CacheConfig, load_config
from .errors import (
    ArtifactOpenError,
    CacheCopyError,
    CacheDirectoryError,
    CacheError,
    CacheFileError,
    CacheMissError,
)
from .keys import CacheKey, artifact_fingerprint, artifact_key
from .schemas import CompilationSpec, Package, PackageArtifact
from .storage import FileCache, StoreResult

__all__ = [
    "AppConfig",
    "ArtifactCache",
    "ArtifactOpenError",
    "CacheConfig",
    "CacheCopyError",
    "CacheDirectoryError",
    "CacheError",
    "CacheFileError",
    "CacheKey",
    "CacheMissError",
    "CompilationSpec",
    "FileCache",
    "Package",
    "PackageArtifact",
    "StoreResult",
    "artifact_fingerprint",
    "artifact_key",
    "load_config",
]
