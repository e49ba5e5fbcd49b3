"""Command-line interface for hybridbuffer compression middleware."""

import logging
import shutil
from pathlib import Path
from typing import Annotated, Optional

import typer

from hybridbuffer.middleware.compression import (
    CompressionAlgorithm,
    CompressionError,
    CompressionMiddleware,
    list_algorithms,
    with_level,
)

app = typer.Typer(
    name="hybridbuffer",
    help="Stream files through hybridbuffer compression middleware",
    add_completion=False,
)


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )


def _check_paths(file: Path, output: Path, force: bool) -> None:
    if not file.exists():
        typer.echo(f"Error: File not found: {file}", err=True)
        raise typer.Exit(1)
    if output.exists() and not force:
        typer.echo(f"Error: Output exists: {output} (use --force to overwrite)", err=True)
        raise typer.Exit(1)


@app.command(name="compress")
def compress_cmd(
    file: Annotated[Path, typer.Argument(help="Path to the file to compress")],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output file path (default: FILE + extension)"),
    ] = None,
    algorithm: Annotated[
        CompressionAlgorithm,
        typer.Option("--algorithm", "-a", help="Compression algorithm"),
    ] = CompressionAlgorithm.GZIP,
    level: Annotated[
        int,
        typer.Option("--level", "-l", help="Compression level 1-9 (invalid values use 6)"),
    ] = 6,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing output file"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Compress a file."""
    _configure_logging(verbose)
    output = output or file.with_name(file.name + algorithm.extension)
    _check_paths(file, output, force)

    middleware = CompressionMiddleware(algorithm, with_level(level))
    try:
        with file.open("rb") as src, output.open("wb") as dst:
            with middleware.writer(dst) as writer:
                shutil.copyfileobj(src, writer)
    except (CompressionError, OSError) as e:
        output.unlink(missing_ok=True)
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    metrics = writer.metrics
    typer.echo(f"Compressed {file} -> {output}")
    typer.echo(f"  Algorithm: {algorithm.value} (level {middleware.level})")
    typer.echo(f"  Size: {metrics.bytes_in:,} -> {metrics.bytes_out:,} bytes")


@app.command(name="decompress")
def decompress_cmd(
    file: Annotated[Path, typer.Argument(help="Path to the compressed file")],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output file path (default: FILE without extension)"),
    ] = None,
    algorithm: Annotated[
        Optional[CompressionAlgorithm],
        typer.Option("--algorithm", "-a", help="Compression algorithm (default: from extension, else gzip)"),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing output file"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Decompress a file."""
    _configure_logging(verbose)
    detected = CompressionAlgorithm.from_extension(file.suffix)
    algorithm = algorithm or detected or CompressionAlgorithm.GZIP
    if output is None:
        output = file.with_suffix("") if detected else file.with_name(file.name + ".out")
    _check_paths(file, output, force)

    middleware = CompressionMiddleware(algorithm)
    try:
        with file.open("rb") as src:
            with middleware.reader(src) as reader, output.open("wb") as dst:
                shutil.copyfileobj(reader, dst)
    except (CompressionError, OSError) as e:
        output.unlink(missing_ok=True)
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Decompressed {file} -> {output}")
    typer.echo(f"  Size: {reader.metrics.bytes_in:,} -> {reader.metrics.bytes_out:,} bytes")


@app.command(name="algorithms")
def algorithms_cmd() -> None:
    """List supported compression algorithms."""
    for algorithm in list_algorithms():
        typer.echo(f"{algorithm.value}\t{algorithm.extension}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
