"""Command-line entry point wrapping the pipeline and the HTTP service."""

from __future__ import annotations

import asyncio
import logging
from typing import Annotated

import typer

from uxpilot.config import settings
from uxpilot.errors import PipelineError
from uxpilot.investigation.pipeline import build_pipeline
from uxpilot.logging import setup_logging

logger = logging.getLogger("uxpilot")

app = typer.Typer(help="UX investigation pipeline", no_args_is_help=True)


@app.command()
def run(
    cached_only: Annotated[
        bool,
        typer.Option("--cached-only", help="Use the most recent cached dataset; never call Clarity."),
    ] = False,
) -> None:
    """Run the full pipeline and write an HTML report."""
    setup_logging()

    async def _run() -> None:
        pipeline = build_pipeline(settings)
        try:
            result = await pipeline.run(cached_only=cached_only)
        finally:
            await pipeline.close()
        typer.echo(f"Report: {result.report_path}")

    try:
        asyncio.run(_run())
    except PipelineError as exc:
        logger.error("Pipeline failed: %s", exc)
        typer.echo(f"Pipeline failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    except Exception as exc:
        logger.exception("Pipeline crashed")
        typer.echo(f"Pipeline failed: {type(exc).__name__}: {exc}", err=True)
        raise typer.Exit(code=1) from exc


@app.command()
def fetch() -> None:
    """Fetch today's Clarity data into the cache (6 API calls)."""
    setup_logging()

    async def _fetch() -> None:
        pipeline = build_pipeline(settings)
        try:
            dataset = await pipeline.clarity.fetch_all()
            path = pipeline.cache.save(dataset)
        finally:
            await pipeline.close()
        typer.echo(f"Data saved to: {path}")
        typer.echo(f"API calls used: {pipeline.clarity.calls_used}")
        typer.echo(f"Remaining API calls today: {pipeline.clarity.remaining_calls()}")

    try:
        asyncio.run(_fetch())
    except PipelineError as exc:
        logger.error("Fetch failed: %s", exc)
        typer.echo(f"Failed to fetch Clarity data: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    except Exception as exc:
        logger.exception("Fetch crashed")
        typer.echo(f"Failed to fetch Clarity data: {type(exc).__name__}: {exc}", err=True)
        raise typer.Exit(code=1) from exc


@app.command()
def serve() -> None:
    """Run the HTTP service."""
    import uvicorn

    uvicorn.run("uxpilot.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    app()
