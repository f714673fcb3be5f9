"""Report assembler: left-joins the three stage outputs on the verified issue id."""

from __future__ import annotations

import logging
import re

from uxpilot.investigation.models import (
    InvestigationData,
    InvestigationIssueEntry,
    InvestigationPrompt,
    InvestigationReport,
    IssueType,
    Priority,
    QuickContext,
    ReportMetadata,
    ReportSummary,
    VerifiedIssue,
)

logger = logging.getLogger("uxpilot.reporting")

_TOTAL_SESSIONS = re.compile(r"Total Sessions\**\s*\|\s*\**(\d[\d,]*)", re.IGNORECASE)


def default_investigation(issue: VerifiedIssue) -> InvestigationData:
    return InvestigationData(
        issue_id=issue.id,
        known_facts=[f"{issue.count} {issue.type.value} detected on {issue.url}"],
        unknown_factors=["Investigation data not available for this issue"],
    )


def default_prompt(issue: VerifiedIssue) -> InvestigationPrompt:
    return InvestigationPrompt(
        issue_id=issue.id,
        prompt_text=(
            f"Investigate the {issue.type.value} on {issue.url}.\n\n"
            "No automated prompt was generated for this issue. Please investigate manually."
        ),
        quick_context=QuickContext(),
    )


def extract_total_sessions(dashboard_text: str) -> int:
    """Best-effort read of the "Total Sessions" row of the dashboard table."""
    match = _TOTAL_SESSIONS.search(dashboard_text or "")
    if not match:
        return 0
    return int(match.group(1).replace(",", ""))


def _index_by_issue(items, kind: str) -> dict:
    index = {}
    for item in items:
        if item.issue_id in index:
            logger.warning("Duplicate %s for %s, keeping the first", kind, item.issue_id)
            continue
        index[item.issue_id] = item
    return index


def summarize(
    issues: list[VerifiedIssue],
    dashboard_text: str = "",
    total_sessions: int | None = None,
) -> ReportSummary:
    by_priority = {p: 0 for p in Priority}
    for issue in issues:
        by_priority[issue.priority] += 1

    return ReportSummary(
        total_sessions=(
            total_sessions if total_sessions is not None else extract_total_sessions(dashboard_text)
        ),
        total_dead_clicks=sum(i.count for i in issues if i.type == IssueType.DEAD_CLICK),
        total_rage_clicks=sum(i.count for i in issues if i.type == IssueType.RAGE_CLICK),
        total_pages=len({i.url for i in issues}),
        issues_by_priority=by_priority,
    )


def assemble_report(
    issues: list[VerifiedIssue],
    investigations: list[InvestigationData],
    prompts: list[InvestigationPrompt],
    metadata: ReportMetadata,
    dashboard_text: str = "",
    total_sessions: int | None = None,
) -> InvestigationReport:
    """Build the report. Verified issues are authoritative; gaps get synthesized defaults."""
    investigation_map = _index_by_issue(investigations, "investigation")
    prompt_map = _index_by_issue(prompts, "prompt")

    known_ids = {i.id for i in issues}
    orphans = (set(investigation_map) | set(prompt_map)) - known_ids
    if orphans:
        logger.warning("Dropping stage output for unknown issue ids: %s", sorted(orphans))

    entries = []
    defaulted = 0
    for issue in issues:
        investigation = investigation_map.get(issue.id)
        prompt = prompt_map.get(issue.id)
        missing = investigation is None or prompt is None
        if missing:
            defaulted += 1
            logger.info(
                "Synthesizing defaults for %s (investigation=%s, prompt=%s)",
                issue.id, investigation is not None, prompt is not None,
            )
        entries.append(InvestigationIssueEntry(
            verified=issue,
            investigation=investigation or default_investigation(issue),
            prompt=prompt or default_prompt(issue),
            defaulted=missing,
        ))

    if defaulted:
        logger.warning("%d of %d issues use default investigation data", defaulted, len(issues))

    return InvestigationReport(
        metadata=metadata,
        summary=summarize(issues, dashboard_text, total_sessions),
        issues=entries,
    )
