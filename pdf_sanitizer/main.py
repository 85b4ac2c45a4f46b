import asyncio
from pathlib import Path

import click
from pydantic import ValidationError

from pdf_sanitizer.config.settings import Settings
from pdf_sanitizer.logging.logger import Log
from pdf_sanitizer.pdf.factory import PdfRasterizerFactory
from pdf_sanitizer.sanitizer.models import PDF_MEDIA_TYPE, SanitizableFile, SanitizeOptions
from pdf_sanitizer.sanitizer.pipeline import SanitizationPipeline


@click.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), help="Where to write the sanitized PDF")
@click.option("--scale", type=float, help="Render scale (default from settings)")
@click.option("--quality", type=float, help="JPEG quality in (0, 1]")
@click.option("--max-pages", type=int, help="Skip documents with more pages")
@click.option("--max-file-size-mb", type=int, help="Skip files larger than this")
@click.option("--engine", type=str, help="Rasterizer: pymupdf or pdfplumber")
def cli(
    input_path: Path,
    output: Path | None,
    scale: float | None,
    quality: float | None,
    max_pages: int | None,
    max_file_size_mb: int | None,
    engine: str | None,
) -> None:
    """Rasterize every page of INPUT_PATH into a new image-only PDF."""
    overrides = {
        "scale": scale,
        "quality": quality,
        "max_pages": max_pages,
        "max_file_size_mb": max_file_size_mb,
        "pdf_engine": engine,
    }
    try:
        settings = Settings(**{key: value for key, value in overrides.items() if value is not None})
        rasterizer = PdfRasterizerFactory.create(settings)
    except (ValidationError, ValueError) as exc:
        raise click.UsageError(str(exc)) from exc

    Log.configure(settings.log_level, enabled=settings.log_errors)
    pipeline = SanitizationPipeline(settings, rasterizer)

    content_type = PDF_MEDIA_TYPE if input_path.suffix.lower() == ".pdf" else ""
    source = SanitizableFile(name=input_path.name, content=input_path.read_bytes(), content_type=content_type)

    def on_progress(current: int, total: int, message: str) -> None:
        click.echo(f"  [{current}/{total}] {message}")

    result = asyncio.run(pipeline.sanitize(source, SanitizeOptions(on_progress=on_progress)))
    if result is source:
        click.echo(f"Left unchanged: {input_path}")
        return

    target = output if output is not None else input_path.with_name(f"{input_path.stem}_clean.pdf")
    target.write_bytes(result.content)
    click.echo(f"Sanitized: {input_path} -> {target} ({result.size:,} bytes)")


if __name__ == "__main__":
    cli()
