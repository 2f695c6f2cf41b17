from __future__ import annotations

import hashlib
import os

import pytest

import artifact_cache.artifact as artifact_module
from artifact_cache import (
    ArtifactCache,
    ArtifactOpenError,
    CacheConfig,
    CacheDirectoryError,
    CacheMissError,
    CompilationSpec,
    FileCache,
    Package,
    PackageArtifact,
)
from artifact_cache.keys import artifact_key


def _write_artifact(tmp_path, name: str, content: bytes) -> PackageArtifact:
    source = tmp_path / "build" / name
    source.parent.mkdir(parents=True, exist_ok=True)
    source.write_bytes(content)
    return PackageArtifact(path=source, checksums={"sha256": "abc123"})


def test_put_then_get_roundtrip(tmp_path) -> None:
    cache = ArtifactCache(tmp_path / "cache")
    artifact = _write_artifact(tmp_path, "foo-1.0.pkg", b"\x00binary\xffpayload")

    result = cache.put(artifact)
    cached_path = cache.get(artifact)

    assert result.key == artifact_key(artifact)
    assert result.size == len(b"\x00binary\xffpayload")
    assert cached_path == tmp_path / "cache" / result.key.hex()
    assert cached_path.read_bytes() == b"\x00binary\xffpayload"
    assert cache.contains(artifact)


def test_get_miss(tmp_path) -> None:
    cache = ArtifactCache(tmp_path / "cache")
    artifact = PackageArtifact(path=str(tmp_path / "never-built.pkg"))

    with pytest.raises(CacheMissError):
        cache.get(artifact)
    assert not cache.contains(artifact)


def test_lookup_before_artifact_exists(tmp_path) -> None:
    cache = ArtifactCache(tmp_path / "cache")
    spec = CompilationSpec(package=Package(name="foo", category="app", version="1.0"))
    built = PackageArtifact(path=str(tmp_path / "built.pkg"), compile_spec=spec)
    (tmp_path / "built.pkg").write_bytes(b"built")
    cache.put(built)

    planned = PackageArtifact(path="/not/yet/there.pkg", compile_spec=spec)

    assert cache.get(planned).read_bytes() == b"built"


def test_put_overwrites_previous_content(tmp_path) -> None:
    cache = ArtifactCache(tmp_path / "cache")
    artifact = _write_artifact(tmp_path, "foo-1.0.pkg", b"first")
    cache.put(artifact)

    (tmp_path / "build" / "foo-1.0.pkg").write_bytes(b"second version")
    result = cache.put(artifact)

    assert result.size == len(b"second version")
    assert cache.get(artifact).read_bytes() == b"second version"
    assert cache.keys() == [result.key]


def test_put_missing_source(tmp_path) -> None:
    cache = ArtifactCache(tmp_path / "cache")
    missing = tmp_path / "missing.pkg"

    with pytest.raises(ArtifactOpenError) as exc_info:
        cache.put(PackageArtifact(path=str(missing)))

    assert exc_info.value.path == missing
    assert str(missing) in str(exc_info.value)
    assert not (tmp_path / "cache").exists()


def test_from_config(tmp_path) -> None:
    config = CacheConfig(directory=str(tmp_path / "configured"), chunk_size=2)
    cache = ArtifactCache.from_config(config)
    artifact = _write_artifact(tmp_path, "bar.pkg", b"abcdef")

    result = cache.put(artifact)

    assert cache.directory == tmp_path / "configured"
    assert result.size == 6
    assert result.path.parent == tmp_path / "configured"


def test_put_non_utf8_file_name(tmp_path) -> None:
    raw_path = os.fsencode(tmp_path) + b"/bar-\xff.pkg"
    with open(raw_path, "wb") as fp:
        fp.write(b"raw name")

    class _Artifact:
        path = os.fsdecode(raw_path)
        compile_spec = None
        checksums = {}

    cache = ArtifactCache(tmp_path / "cache")
    result = cache.put(_Artifact())

    assert result.key.hex() == hashlib.sha512(b"bar-\xff.pkg").hexdigest()
    assert cache.get(_Artifact()).read_bytes() == b"raw name"


def test_source_closed_when_store_fails(monkeypatch, tmp_path) -> None:
    opened = []

    def _recording_open(*args, **kwargs):
        handle = open(*args, **kwargs)
        opened.append(handle)
        return handle

    monkeypatch.setattr(artifact_module, "open", _recording_open, raising=False)
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    cache = ArtifactCache(blocker / "cache")
    artifact = _write_artifact(tmp_path, "foo.pkg", b"content")

    with pytest.raises(CacheDirectoryError):
        cache.put(artifact)

    assert len(opened) == 1
    assert opened[0].closed


def test_source_closed_after_put(monkeypatch, tmp_path) -> None:
    opened = []

    def _recording_open(*args, **kwargs):
        handle = open(*args, **kwargs)
        opened.append(handle)
        return handle

    monkeypatch.setattr(artifact_module, "open", _recording_open, raising=False)
    cache = ArtifactCache(tmp_path / "cache")
    cache.put(_write_artifact(tmp_path, "foo.pkg", b"content"))

    assert len(opened) == 1
    assert opened[0].closed


def test_directory_and_store_are_exclusive(tmp_path) -> None:
    store = FileCache(tmp_path / "store")

    with pytest.raises(ValueError):
        ArtifactCache(tmp_path / "cache", store=store)
    with pytest.raises(ValueError):
        ArtifactCache()
    assert ArtifactCache(store=store).directory == tmp_path / "store"
