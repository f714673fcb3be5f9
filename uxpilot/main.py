"""UX investigation service: FastAPI entry point."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException

from uxpilot.clarity.client import QuotaCounter
from uxpilot.config import settings
from uxpilot.errors import PipelineError
from uxpilot.investigation.pipeline import build_pipeline
from uxpilot.logging import setup_logging
from uxpilot.reporting.artifacts import ArtifactStore

logger = logging.getLogger("uxpilot")

# ── Process-scoped state initialised at startup ───────────────────

artifacts: ArtifactStore | None = None
_quota: QuotaCounter | None = None
_current_run: asyncio.Task | None = None
_last_run: dict = {}


@asynccontextmanager
async def lifespan(app: FastAPI):
    global artifacts, _quota

    setup_logging()
    logger.info("Initializing UX investigation service...")

    settings.require_credentials()
    artifacts = ArtifactStore(settings.reports_dir)
    _quota = QuotaCounter(settings.clarity_max_calls_per_day)

    logger.info("Service ready, listening on %s:%d", settings.host, settings.port)

    yield

    if _current_run and not _current_run.done():
        _current_run.cancel()
    logger.info("Service shut down")


async def _run_investigation(cached_only: bool) -> None:
    """Execute one pipeline run and record its outcome."""
    _last_run.clear()
    _last_run.update(status="running", started_at=datetime.now(timezone.utc).isoformat())
    pipeline = None
    try:
        pipeline = build_pipeline(settings, quota=_quota)
        result = await pipeline.run(cached_only=cached_only)
        _last_run.update(
            status="completed",
            report_id=result.report.report_id,
            report_path=str(result.report_path),
            issues=len(result.report.issues),
            error=None,
        )
    except PipelineError as exc:
        logger.error("Investigation aborted: %s", exc)
        _last_run.update(status="failed", error=str(exc))
    except Exception as exc:
        logger.exception("Investigation failed")
        _last_run.update(status="failed", error=str(exc))
    finally:
        _last_run["finished_at"] = datetime.now(timezone.utc).isoformat()
        if pipeline is not None:
            await pipeline.close()


# FastAPI app

app = FastAPI(
    title="UX Investigation Pipeline",
    description="Turns Clarity analytics into prioritized investigation prompts",
    version="3.1.0",
    lifespan=lifespan,
)


@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "running": _current_run is not None and not _current_run.done(),
        "clarity_calls_remaining": _quota.remaining if _quota else None,
    }


@app.post("/investigations", status_code=202)
async def start_investigation(cached_only: bool = False):
    """Start a pipeline run in the background. Only one run at a time."""
    global _current_run
    if _current_run is not None and not _current_run.done():
        raise HTTPException(status_code=409, detail="An investigation is already running")

    _current_run = asyncio.create_task(_run_investigation(cached_only))
    return {"status": "started", "cached_only": cached_only}


@app.get("/investigations/status")
async def investigation_status():
    return _last_run or {"status": "idle"}


@app.get("/reports")
async def list_reports(limit: int = 20):
    if artifacts:
        return {"reports": artifacts.list_reports(limit=limit)}
    return {"reports": []}


@app.get("/reports/{report_id}")
async def get_report(report_id: str):
    if artifacts:
        report = artifacts.get_report(report_id)
        if report:
            return report
    raise HTTPException(status_code=404, detail="Report not found")
