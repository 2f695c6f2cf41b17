from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from artifact_cache.errors import (
    CacheCopyError,
    CacheDirectoryError,
    CacheError,
    CacheFileError,
    CacheMissError,
)
from artifact_cache.keys import HEX_LENGTH, CacheKey

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1024 * 1024
DIRECTORY_MODE = 0o755
_HEX_DIGITS = frozenset("0123456789abcdef")


def _read_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


# Entries get the mode a plain create would give under the process umask.
ENTRY_MODE = 0o666 & ~_read_umask()


@dataclass(frozen=True, slots=True)
class StoreResult:
    key: CacheKey
    size: int
    path: Path


class FileCache:
    """Flat directory of blobs, one file per key named by the key hex.

    The directory is created on the first store, not on construction.
    """

    def __init__(self, directory: str | Path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")

        self.directory = Path(directory)
        self.chunk_size = chunk_size

    def path_for(self, key: CacheKey) -> Path:
        return self.directory / key.hex()

    def contains(self, key: CacheKey) -> bool:
        return self._exists(self.path_for(key))

    def resolve(self, key: CacheKey) -> Path:
        data_path = self.path_for(key)
        if not self._exists(data_path):
            logger.info("file_cache miss key=%s", key.short())
            raise CacheMissError(f"file not found in cache: {data_path}", path=data_path)

        logger.info("file_cache hit key=%s", key.short())
        return data_path

    def store(self, key: CacheKey, stream: BinaryIO) -> StoreResult:
        try:
            self.directory.mkdir(mode=DIRECTORY_MODE, parents=True, exist_ok=True)
        except OSError as exc:
            logger.warning("file_cache mkdir failed dir=%s error=%s", self.directory, exc)
            raise CacheDirectoryError(
                f"failed to create cache directory {self.directory}", path=self.directory
            ) from exc

        data_path = self.path_for(key)
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{key.short()}.", suffix=".tmp", dir=self.directory
            )
        except OSError as exc:
            logger.warning("file_cache create failed path=%s error=%s", data_path, exc)
            raise CacheFileError(f"failed to create cache file {data_path}", path=data_path) from exc

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as fp:
                written = self._copy(stream, fp)
            os.chmod(tmp_path, ENTRY_MODE)
            os.replace(tmp_path, data_path)
        except Exception as exc:
            with contextlib.suppress(OSError):
                tmp_path.unlink()
            logger.warning("file_cache copy failed path=%s error=%s", data_path, exc)
            raise CacheCopyError(
                f"failed to copy content to cache file {data_path}", path=data_path
            ) from exc

        logger.info("file_cache set key=%s size=%d", key.short(), written)
        return StoreResult(key=key, size=written, path=data_path)

    def keys(self) -> Iterator[CacheKey]:
        if not self.directory.is_dir():
            return
        names = sorted(entry.name for entry in self.directory.iterdir() if entry.is_file())
        for name in names:
            if len(name) == HEX_LENGTH and _HEX_DIGITS.issuperset(name):
                yield CacheKey.from_hex(name)

    @staticmethod
    def _exists(path: Path) -> bool:
        try:
            return path.exists()
        except OSError as exc:
            logger.warning("file_cache stat failed path=%s error=%s", path, exc)
            raise CacheError(f"failed to check cache file {path}", path=path) from exc

    def _copy(self, source: BinaryIO, target: BinaryIO) -> int:
        written = 0
        while True:
            chunk = source.read(self.chunk_size)
            if not chunk:
                break
            target.write(chunk)
            written += len(chunk)
        return written
