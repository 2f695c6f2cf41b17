from __future__ import annotations

import logging
import os
from pathlib import Path

from artifact_cache.config import CacheConfig
from artifact_cache.errors import ArtifactOpenError
from artifact_cache.keys import CacheKey, artifact_key
from artifact_cache.schemas import ArtifactIdentity
from artifact_cache.storage import FileCache, StoreResult

logger = logging.getLogger(__name__)


class ArtifactCache:
    """Artifact-level view over a :class:`FileCache`.

    Keys are derived from the artifact identity on every call, so an entry can
    be looked up before the artifact bytes exist.
    """

    def __init__(
        self, directory: str | Path | None = None, *, store: FileCache | None = None
    ) -> None:
        if (directory is None) == (store is None):
            raise ValueError("pass exactly one of directory or store")
        self._store = store if store is not None else FileCache(directory)

    @classmethod
    def from_config(cls, config: CacheConfig) -> ArtifactCache:
        return cls(store=FileCache(config.directory, chunk_size=config.chunk_size))

    @property
    def directory(self) -> Path:
        return self._store.directory

    def key_for(self, artifact: ArtifactIdentity) -> CacheKey:
        return artifact_key(artifact)

    def contains(self, artifact: ArtifactIdentity) -> bool:
        return self._store.contains(self.key_for(artifact))

    def get(self, artifact: ArtifactIdentity) -> Path:
        return self._store.resolve(self.key_for(artifact))

    def put(self, artifact: ArtifactIdentity) -> StoreResult:
        source_path = os.fspath(artifact.path)
        try:
            source = open(source_path, "rb")
        except OSError as exc:
            logger.warning("artifact_cache open failed path=%s error=%s", source_path, exc)
            raise ArtifactOpenError(f"failed opening {source_path}", path=source_path) from exc

        with source:
            result = self._store.store(self.key_for(artifact), source)
        logger.info(
            "artifact_cache put path=%s key=%s size=%d",
            source_path,
            result.key.short(),
            result.size,
        )
        return result

    def keys(self) -> list[CacheKey]:
        return list(self._store.keys())
