from __future__ import annotations

import hashlib
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from artifact_cache.schemas import ArtifactIdentity

KEY_SIZE = 64
HEX_LENGTH = KEY_SIZE * 2


@dataclass(frozen=True, slots=True)
class CacheKey:
    """512-bit identifier of a cache entry."""

    digest: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.digest, bytes):
            raise ValueError("digest must be bytes")
        if len(self.digest) != KEY_SIZE:
            raise ValueError(f"digest must be {KEY_SIZE} bytes, got {len(self.digest)}")

    @classmethod
    def from_fingerprint(cls, fingerprint: str) -> CacheKey:
        return cls(hashlib.sha512(fingerprint.encode("utf-8", "surrogateescape")).digest())

    @classmethod
    def from_hex(cls, value: str) -> CacheKey:
        normalized = value.strip().lower()
        if len(normalized) != HEX_LENGTH:
            raise ValueError(f"key hex must be {HEX_LENGTH} characters")
        try:
            return cls(bytes.fromhex(normalized))
        except ValueError as exc:
            raise ValueError(f"invalid key hex: {value}") from exc

    def hex(self) -> str:
        return self.digest.hex()

    def short(self, length: int = 12) -> str:
        return self.digest.hex()[:length]

    def __str__(self) -> str:
        return self.hex()

    def __repr__(self) -> str:
        return f"CacheKey({self.short()}...)"


def artifact_fingerprint(artifact: ArtifactIdentity) -> str:
    """Build the identity string hashed into an artifact's cache key.

    The package fingerprint, when the artifact was compiled from a spec that
    references a package, replaces the path base name entirely. Checksums are
    appended as ``+{algorithm}:{digest}`` in sorted order.
    """
    fingerprint = _base_name(os.fspath(artifact.path))
    compile_spec = artifact.compile_spec
    if compile_spec is not None and compile_spec.package is not None:
        fingerprint = compile_spec.package.fingerprint()

    for algorithm, digest in sorted_checksums(artifact.checksums):
        fingerprint += f"+{algorithm}:{digest}"
    return fingerprint


def artifact_key(artifact: ArtifactIdentity) -> CacheKey:
    return CacheKey.from_fingerprint(artifact_fingerprint(artifact))


def sorted_checksums(
    checksums: Mapping[str, str] | Iterable[tuple[str, str]] | None,
) -> list[tuple[str, str]]:
    if not checksums:
        return []
    if isinstance(checksums, Mapping):
        pairs = checksums.items()
    else:
        pairs = checksums
    return sorted((str(algorithm), str(digest)) for algorithm, digest in pairs)


def _base_name(path: str) -> str:
    if not path:
        return "."
    stripped = path.rstrip("/" + os.sep)
    if not stripped:
        return os.sep
    return os.path.basename(stripped)
