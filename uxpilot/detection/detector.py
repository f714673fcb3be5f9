"""UX detective, the first stage: extract verified issues from raw Clarity data."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any

from langchain_core.messages import HumanMessage
from pydantic import BaseModel

from uxpilot.clarity.models import ClarityDataset
from uxpilot.detection.severity import classify_severity
from uxpilot.investigation.models import IssueType, Priority, VerifiedIssue
from uxpilot.llm.client import GenerationClient
from uxpilot.parsing import extract_json, parse_items

logger = logging.getLogger("uxpilot.detection")

LABEL = "UX Detective"

_SYSTEM_PROMPT = """\
You are a UX detective: a data analyst specializing in Microsoft Clarity behavioral \
analytics. Extract ONLY verified facts from the data. Do NOT speculate about root \
causes, clicked elements, or fixes.

Process:
1. Keep production URLs only (drop preview hosts, localhost, URLs carrying tokens).
2. Normalize URLs: strip query strings, replace ids/UUIDs with {id}, group by path.
3. For every URL with a non-zero DeadClickCount, RageClickCount, QuickbackClickCount, \
ExcessiveScrollCount, ScriptErrorCount or ErrorClickCount, report one issue per metric. \
Use `subTotal` as the count, `sessionsCount` as total sessions and \
`sessionsWithMetricPercentage` as the affected share.
4. Priority:
   - P0: > 50 events, or > 50% sessions affected with multiple signals on the URL
   - P1: > 20 events or > 30% sessions affected
   - P2: > 5 events or > 20% sessions affected
   - P3: anything else above zero
   If the same URL has dead clicks and rage clicks, bump its issues one level.
5. Derive a human-readable page name from the path.

First write a markdown "Executive Dashboard" table with rows: Total Sessions, \
Dead Clicks (total), Rage Clicks (total), Quickback Clicks (total), Excessive Scroll \
Events, API Calls Used.

Then output ONE JSON code block:

```json
{
  "totalSessions": 1234,
  "issues": [
    {
      "id": "UX-001",
      "url": "https://example.com/documents",
      "pageNameInferred": "Documents List",
      "metric": "DeadClickCount",
      "type": "dead_click",
      "count": 6,
      "sessionsTotal": 18,
      "sessionsAffected": 6,
      "percentAffected": 33.33,
      "priority": "P2"
    }
  ]
}
```

`type` is one of: rage_click, dead_click, excessive_scroll, quickback, script_error, \
error_click. Order issues by priority (P0 first), then by count (highest first). \
Every number must come directly from the data.
"""

_PRIORITIES = {p.value for p in Priority}


class DetectionResult(BaseModel):
    raw: str
    issues: list[VerifiedIssue] = []
    total_sessions: int | None = None


def serialize_dataset(dataset: ClarityDataset, budget: int) -> str:
    """Pretty-print the dataset, cutting it at ``budget`` characters."""
    text = dataset.model_dump_json(by_alias=True, indent=2)
    if len(text) > budget:
        return text[:budget] + "\n... (truncated)"
    return text


def _has_priority(item: dict) -> bool:
    priority = item.get("priority")
    return isinstance(priority, str) and priority in _PRIORITIES


def _fill_missing_priorities(items: list[Any]) -> list[Any]:
    """Assign a lookup priority to items whose tier is absent or unknown."""
    click_types: dict[str, set[str]] = defaultdict(set)
    for item in items:
        if isinstance(item, dict):
            click_types[str(item.get("url", ""))].add(str(item.get("type", "")))

    filled = []
    for item in items:
        if isinstance(item, dict) and not _has_priority(item):
            types = click_types[str(item.get("url", ""))]
            multiple = {IssueType.DEAD_CLICK.value, IssueType.RAGE_CLICK.value} <= types
            try:
                count = int(item.get("count", 0))
                percent = float(item.get("percentAffected", 0.0))
            except (TypeError, ValueError):
                filled.append(item)
                continue
            item = {**item, "priority": classify_severity(count, percent, multiple).value}
            logger.info("[%s] Assigned %s to %s by lookup", LABEL, item["priority"], item.get("id"))
        filled.append(item)
    return filled


async def detect_verified_issues(
    client: GenerationClient,
    dataset: ClarityDataset,
    project_id: str,
    char_budget: int,
) -> DetectionResult:
    """Ask the LLM for verified issues. Unparseable output yields an empty list."""
    user_content = (
        "Analyze this Microsoft Clarity data and extract verified UX issues.\n\n"
        f"Clarity Project ID: {project_id}\n\n"
        f"{serialize_dataset(dataset, char_budget)}"
    )
    raw = await client.complete(_SYSTEM_PROMPT, [HumanMessage(content=user_content)], LABEL)

    parsed = extract_json(raw, None)
    total_sessions = None
    if isinstance(parsed, dict):
        sessions = parsed.get("totalSessions")
        if isinstance(sessions, int) and not isinstance(sessions, bool) and sessions >= 0:
            total_sessions = sessions
        parsed = parsed.get("issues")
    if parsed is None:
        logger.warning("[%s] No verified-issue JSON found in response", LABEL)

    if isinstance(parsed, list):
        parsed = _fill_missing_priorities(parsed)

    issues: list[VerifiedIssue] = []
    seen: set[str] = set()
    for issue in parse_items(parsed, VerifiedIssue, LABEL):
        if issue.id in seen:
            logger.warning("[%s] Dropping duplicate issue id %s", LABEL, issue.id)
            continue
        seen.add(issue.id)
        issues.append(issue)

    logger.info("[%s] Extracted %d verified issues", LABEL, len(issues))
    return DetectionResult(raw=raw, issues=issues, total_sessions=total_sessions)
