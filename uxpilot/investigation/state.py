"""Investigation state: the typed state object that flows through the LangGraph."""

from __future__ import annotations

from typing import TypedDict

from uxpilot.clarity.models import ClarityDataset
from uxpilot.investigation.models import (
    InvestigationData,
    InvestigationPrompt,
    InvestigationReport,
    VerifiedIssue,
)


class InvestigationState(TypedDict, total=False):
    # Input
    dataset: ClarityDataset
    project_id: str
    repo_context: str
    route_files: str

    # Stage 1: fact extraction
    dashboard_raw: str
    issues: list[VerifiedIssue]
    total_sessions: int | None

    # Stage 2: hypothesis generation
    investigations: list[InvestigationData]

    # Stage 3: prompt generation
    prompts: list[InvestigationPrompt]

    # Output
    report: InvestigationReport
