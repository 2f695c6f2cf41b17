from __future__ import annotations

import logging
from pathlib import Path

import typer

from artifact_cache.artifact import ArtifactCache
from artifact_cache.config import DEFAULT_CACHE_DIR, CacheConfig, load_config
from artifact_cache.errors import CacheError, CacheMissError
from artifact_cache.keys import artifact_fingerprint, artifact_key
from artifact_cache.schemas import CompilationSpec, Package, PackageArtifact

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = typer.Typer(help="Artifact cache CLI")

CACHE_DIR_OPTION = typer.Option(
    Path(DEFAULT_CACHE_DIR),
    "--cache-dir",
    help="Cache storage directory.",
)
CONFIG_OPTION = typer.Option(
    None,
    "--config",
    help="Config file path; its cache section overrides --cache-dir.",
    exists=True,
    dir_okay=False,
    readable=True,
)
CHECKSUM_OPTION = typer.Option(
    [],
    "--checksum",
    "-c",
    help="Checksum as algorithm:digest. Repeatable.",
)
PACKAGE_NAME_OPTION = typer.Option(None, "--package-name", help="Compiled package name.")
PACKAGE_CATEGORY_OPTION = typer.Option("", "--package-category", help="Compiled package category.")
PACKAGE_VERSION_OPTION = typer.Option("", "--package-version", help="Compiled package version.")


@app.command("key")
def show_key(
    path: Path = typer.Argument(..., help="Artifact path."),
    checksums: list[str] = CHECKSUM_OPTION,
    package_name: str | None = PACKAGE_NAME_OPTION,
    package_category: str = PACKAGE_CATEGORY_OPTION,
    package_version: str = PACKAGE_VERSION_OPTION,
) -> None:
    """Print the fingerprint string and cache key of an artifact."""
    artifact = _build_artifact(path, checksums, package_name, package_category, package_version)
    cache_key = artifact_key(artifact)
    typer.echo(f"fingerprint={artifact_fingerprint(artifact)}")
    typer.echo(f"key={cache_key.hex()}")


@app.command("put")
def put_artifact(
    path: Path = typer.Argument(..., help="Artifact path."),
    checksums: list[str] = CHECKSUM_OPTION,
    package_name: str | None = PACKAGE_NAME_OPTION,
    package_category: str = PACKAGE_CATEGORY_OPTION,
    package_version: str = PACKAGE_VERSION_OPTION,
    cache_dir: Path = CACHE_DIR_OPTION,
    config_path: Path | None = CONFIG_OPTION,
) -> None:
    """Store an artifact file in the cache."""
    artifact = _build_artifact(path, checksums, package_name, package_category, package_version)
    cache = _open_cache(cache_dir, config_path)
    try:
        result = cache.put(artifact)
    except CacheError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(f"key={result.key.hex()} size={result.size} path={result.path}")


@app.command("get")
def get_artifact(
    path: Path = typer.Argument(..., help="Artifact path."),
    checksums: list[str] = CHECKSUM_OPTION,
    package_name: str | None = PACKAGE_NAME_OPTION,
    package_category: str = PACKAGE_CATEGORY_OPTION,
    package_version: str = PACKAGE_VERSION_OPTION,
    cache_dir: Path = CACHE_DIR_OPTION,
    config_path: Path | None = CONFIG_OPTION,
) -> None:
    """Print the cached file path of an artifact."""
    artifact = _build_artifact(path, checksums, package_name, package_category, package_version)
    cache = _open_cache(cache_dir, config_path)
    try:
        cached_path = cache.get(artifact)
    except CacheMissError as exc:
        typer.echo("cache miss", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(str(cached_path))


@app.command("ls")
def list_entries(
    cache_dir: Path = CACHE_DIR_OPTION,
    config_path: Path | None = CONFIG_OPTION,
) -> None:
    """List stored cache keys."""
    cache = _open_cache(cache_dir, config_path)
    keys = cache.keys()
    for cache_key in keys:
        typer.echo(cache_key.hex())
    typer.echo(f"entries={len(keys)}")


def _open_cache(cache_dir: Path, config_path: Path | None) -> ArtifactCache:
    if config_path is None:
        return ArtifactCache.from_config(CacheConfig(directory=str(cache_dir)))

    try:
        config = load_config(config_path)
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    logging.getLogger().setLevel(config.log_level)
    return ArtifactCache.from_config(config.cache)


def _build_artifact(
    path: Path,
    checksums: list[str],
    package_name: str | None,
    package_category: str,
    package_version: str,
) -> PackageArtifact:
    try:
        pairs = [_parse_checksum(raw) for raw in checksums]
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    compile_spec = None
    if package_name:
        compile_spec = CompilationSpec(
            package=Package(
                name=package_name,
                category=package_category,
                version=package_version,
            )
        )
    return PackageArtifact(path=str(path), compile_spec=compile_spec, checksums=pairs)


def _parse_checksum(raw: str) -> tuple[str, str]:
    algorithm, sep, digest = raw.partition(":")
    algorithm = algorithm.strip()
    digest = digest.strip()
    if not sep or not algorithm or not digest:
        raise ValueError(f"invalid checksum (expected algorithm:digest): {raw}")
    return algorithm, digest


def main() -> None:
    """CLI entrypoint."""
    app()


if __name__ == "__main__":
    main()
