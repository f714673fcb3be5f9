"""Data models for verified issues, hypotheses, prompts and the final report.

Wire names are camelCase to match the JSON the generation stages emit.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Priority(str, Enum):
    P0 = "P0"
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"


class Probability(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class IssueType(str, Enum):
    RAGE_CLICK = "rage_click"
    DEAD_CLICK = "dead_click"
    EXCESSIVE_SCROLL = "excessive_scroll"
    QUICKBACK = "quickback"
    SCRIPT_ERROR = "script_error"
    ERROR_CLICK = "error_click"


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# ── Stage 1: verified facts ─────────────────────────────────────────


class VerifiedIssue(_WireModel):
    """An anomaly the analytics data shows directly. No inferred cause."""

    id: str
    url: str
    page_name_inferred: str = ""
    metric: str
    type: IssueType
    count: int = Field(ge=0)
    sessions_total: int = 0
    sessions_affected: int = 0
    percent_affected: float = 0.0
    priority: Priority


# ── Stage 2: hypotheses ─────────────────────────────────────────────


class PossibleCause(_WireModel):
    id: str
    probability: Probability
    title: str
    description: str = ""
    files_likely_involved: list[str] = []


class RelevantFile(_WireModel):
    path: str
    reason: str = ""
    search_terms: list[str] | None = None


class InvestigationData(_WireModel):
    issue_id: str
    known_facts: list[str] = []
    unknown_factors: list[str] = []
    possible_causes: list[PossibleCause] = []
    relevant_files: list[RelevantFile] = []


# ── Stage 3: prompts ────────────────────────────────────────────────


class QuickContext(_WireModel):
    files_to_check: list[str] = []
    search_terms: list[str] = []


class InvestigationPrompt(_WireModel):
    issue_id: str
    prompt_text: str
    quick_context: QuickContext = QuickContext()


# ── Report ──────────────────────────────────────────────────────────


class InvestigationIssueEntry(_WireModel):
    verified: VerifiedIssue
    investigation: InvestigationData
    prompt: InvestigationPrompt
    defaulted: bool = False


class ReportMetadata(_WireModel):
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data_range: str = "Last 1 day"
    target_repo: str = ""
    pipeline_version: str = ""
    clarity_project_id: str = ""
    clarity_api_calls: int = 0
    llm_api_calls: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    estimated_cost: float = 0.0
    duration_ms: int = 0
    usage_by_stage: dict[str, dict[str, int]] = {}


class ReportSummary(_WireModel):
    total_sessions: int = 0
    total_dead_clicks: int = 0
    total_rage_clicks: int = 0
    total_pages: int = 0
    issues_by_priority: dict[Priority, int] = Field(
        default_factory=lambda: {p: 0 for p in Priority}
    )


class InvestigationReport(_WireModel):
    report_id: str = Field(default_factory=lambda: uuid4().hex[:12])
    metadata: ReportMetadata
    summary: ReportSummary
    issues: list[InvestigationIssueEntry] = []
