from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, field_validator


@runtime_checkable
class FingerprintSource(Protocol):
    def fingerprint(self) -> str: ...


@runtime_checkable
class CompileSpecLike(Protocol):
    @property
    def package(self) -> FingerprintSource | None: ...


@runtime_checkable
class ArtifactIdentity(Protocol):
    """What key derivation reads from a build artifact."""

    @property
    def path(self) -> str | os.PathLike[str]: ...

    @property
    def compile_spec(self) -> CompileSpecLike | None: ...

    @property
    def checksums(self) -> Mapping[str, str] | Iterable[tuple[str, str]]: ...


class DTOBase(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class Package(DTOBase):
    name: str
    category: str = ""
    version: str = ""

    def fingerprint(self) -> str:
        return f"{self.name}-{self.category}-{self.version}"


class CompilationSpec(DTOBase):
    package: Package | None = None


class PackageArtifact(DTOBase):
    path: str
    compile_spec: CompilationSpec | None = None
    checksums: list[tuple[str, str]] = Field(default_factory=list)

    @field_validator("path", mode="before")
    @classmethod
    def normalize_path(cls, value: Any) -> str:
        if isinstance(value, os.PathLike):
            return os.fspath(value)
        return value

    @field_validator("checksums", mode="before")
    @classmethod
    def normalize_checksums(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, Mapping):
            return list(value.items())
        return value

    @field_validator("checksums", mode="after")
    @classmethod
    def validate_checksums(cls, value: list[tuple[str, str]]) -> list[tuple[str, str]]:
        for algorithm, digest in value:
            if not algorithm.strip() or not digest.strip():
                raise ValueError("checksum algorithm and digest must not be empty")
        return value
