"""Report artifact storage: one HTML document plus its JSON source per run."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from uxpilot.errors import ReportWriteError
from uxpilot.investigation.models import InvestigationReport
from uxpilot.reporting.html import render_report_html

logger = logging.getLogger("uxpilot.reporting")

_PREFIX = "ux-investigation-"


class ArtifactStore:
    """Persist investigation reports and read them back for the service API."""

    def __init__(self, directory: str | Path) -> None:
        self._dir = Path(directory)

    def save_report(self, report: InvestigationReport) -> Path:
        """Write the HTML report and its JSON sibling. Raises ReportWriteError on failure."""
        ts = report.metadata.generated_at.strftime("%Y%m%d_%H%M%S")
        stem = f"{_PREFIX}{ts}-{report.report_id}"
        html_path = self._dir / f"{stem}.html"
        json_path = self._dir / f"{stem}.json"

        html = render_report_html(report)
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            html_path.write_text(html, encoding="utf-8")
            json_path.write_text(report.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
        except OSError as exc:
            raise ReportWriteError(str(html_path), str(exc)) from exc

        logger.info("Report saved: %s (%d bytes)", html_path, len(html.encode("utf-8")))
        return html_path

    def list_reports(self, limit: int = 20) -> list[dict]:
        """Summaries of the most recent reports, newest first."""
        files = sorted(self._dir.glob(f"{_PREFIX}*.json"), reverse=True)[:limit]
        reports = []
        for f in files:
            try:
                data = json.loads(f.read_text(encoding="utf-8"))
            except (OSError, ValueError):
                logger.exception("Failed to read report: %s", f)
                continue
            reports.append({
                "reportId": data.get("reportId"),
                "generatedAt": data.get("metadata", {}).get("generatedAt"),
                "issues": len(data.get("issues", [])),
                "summary": data.get("summary", {}),
                "html": str(f.with_suffix(".html")),
            })
        return reports

    def get_report(self, report_id: str) -> dict | None:
        """Retrieve a specific report by id."""
        for f in self._dir.glob(f"{_PREFIX}*-{report_id}.json"):
            try:
                return json.loads(f.read_text(encoding="utf-8"))
            except (OSError, ValueError):
                logger.exception("Failed to read report: %s", f)
        return None
