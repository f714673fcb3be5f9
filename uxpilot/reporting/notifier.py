"""Slack notifier: best-effort summary of a finished report."""

from __future__ import annotations

import logging
from pathlib import Path

import httpx
from pydantic import BaseModel

from uxpilot.investigation.models import InvestigationReport, Priority

logger = logging.getLogger("uxpilot.reporting")


class NotificationSummary(BaseModel):
    report_path: str
    target_repo: str
    total_issues: int
    critical_count: int
    high_count: int
    medium_count: int
    low_count: int
    total_sessions: int
    top_page: str
    top_page_issue: str
    clarity_api_calls: int
    clarity_max_calls: int
    llm_api_calls: int
    estimated_cost: float
    duration_seconds: float


def summarize_report(
    report: InvestigationReport,
    report_path: str | Path,
    clarity_max_calls: int,
) -> NotificationSummary:
    tiers = report.summary.issues_by_priority
    top = report.issues[0].verified if report.issues else None
    meta = report.metadata
    return NotificationSummary(
        report_path=str(report_path),
        target_repo=meta.target_repo,
        total_issues=len(report.issues),
        critical_count=tiers.get(Priority.P0, 0),
        high_count=tiers.get(Priority.P1, 0),
        medium_count=tiers.get(Priority.P2, 0),
        low_count=tiers.get(Priority.P3, 0),
        total_sessions=report.summary.total_sessions,
        top_page=(top.page_name_inferred or top.url) if top else "N/A",
        top_page_issue=top.type.value if top else "N/A",
        clarity_api_calls=meta.clarity_api_calls,
        clarity_max_calls=clarity_max_calls,
        llm_api_calls=meta.llm_api_calls,
        estimated_cost=meta.estimated_cost,
        duration_seconds=meta.duration_ms / 1000,
    )


def build_slack_payload(summary: NotificationSummary) -> dict:
    """Slack Block Kit message for a report summary."""
    severity = "  ".join(
        f"*{count} {name}*"
        for count, name in (
            (summary.critical_count, "Critical"),
            (summary.high_count, "High"),
            (summary.medium_count, "Medium"),
            (summary.low_count, "Low"),
        )
        if count > 0
    ) or "No issues found"

    return {
        "blocks": [
            {
                "type": "header",
                "text": {"type": "plain_text", "text": "UX Investigation Report Ready", "emoji": True},
            },
            {
                "type": "section",
                "fields": [
                    {"type": "mrkdwn", "text": f"*Repository:*\n{summary.target_repo}"},
                    {"type": "mrkdwn", "text": f"*Total Sessions:*\n{summary.total_sessions}"},
                    {"type": "mrkdwn", "text": f"*Issues Found:*\n{summary.total_issues}"},
                    {"type": "mrkdwn", "text": f"*Severity:*\n{severity}"},
                ],
            },
            {
                "type": "section",
                "fields": [
                    {"type": "mrkdwn", "text": f"*Top Problem Page:*\n{summary.top_page}"},
                    {"type": "mrkdwn", "text": f"*Issue Type:*\n{summary.top_page_issue}"},
                ],
            },
            {"type": "divider"},
            {
                "type": "context",
                "elements": [{
                    "type": "mrkdwn",
                    "text": (
                        f"Clarity API: {summary.clarity_api_calls}/{summary.clarity_max_calls} | "
                        f"LLM API: {summary.llm_api_calls} calls | "
                        f"Cost: ${summary.estimated_cost:.4f} | "
                        f"Duration: {summary.duration_seconds:.1f}s"
                    ),
                }],
            },
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"Report saved to: `{summary.report_path}`"},
            },
        ]
    }


class SlackNotifier:
    def __init__(
        self,
        webhook_url: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._webhook_url = webhook_url
        self._transport = transport

    async def send(self, summary: NotificationSummary) -> bool:
        """Post the summary. Returns False on any failure; never raises."""
        if not self._webhook_url:
            logger.info("SLACK_WEBHOOK_URL not set, skipping notification")
            return False

        try:
            async with httpx.AsyncClient(timeout=10.0, transport=self._transport) as http:
                resp = await http.post(self._webhook_url, json=build_slack_payload(summary))
        except httpx.HTTPError as exc:
            logger.error("Slack notification failed: %s", exc)
            return False

        if resp.status_code >= 300:
            logger.error("Slack notification failed (%d): %s", resp.status_code, resp.text[:200])
            return False

        logger.info("Slack notification sent")
        return True
