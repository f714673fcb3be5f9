"""Shared fixtures: canned stage responses, fake chat models and Clarity payloads."""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from langchain_core.messages import AIMessage

from uxpilot.clarity.models import ClarityDataset, MetricResult
from uxpilot.investigation.models import (
    InvestigationData,
    InvestigationPrompt,
    IssueType,
    Priority,
    VerifiedIssue,
)

CLARITY_PAYLOAD = [
    {
        "metricName": "DeadClickCount",
        "information": [
            {"sessionsCount": "18", "sessionsWithMetricPercentage": 33.33, "subTotal": "6",
             "Url": "https://my.example.com/documents"},
        ],
    },
    {
        "metricName": "RageClickCount",
        "information": [
            {"sessionsCount": "40", "sessionsWithMetricPercentage": 25.0, "subTotal": "30",
             "Url": "https://my.example.com/checkout"},
        ],
    },
]


def ai_message(text: str, input_tokens: int = 100, output_tokens: int = 50) -> AIMessage:
    return AIMessage(
        content=text,
        usage_metadata={
            "input_tokens": input_tokens,
            "output_tokens": output_tokens,
            "total_tokens": input_tokens + output_tokens,
        },
    )


def fenced(payload) -> str:
    return f"Here is the result.\n\n```json\n{json.dumps(payload, indent=2)}\n```\n"


def fake_llm(*responses):
    """A chat model stand-in whose ainvoke yields (or raises) ``responses`` in order."""
    llm = MagicMock()
    llm.ainvoke = AsyncMock(side_effect=list(responses))
    return llm


def make_issue(
    issue_id: str,
    priority: Priority = Priority.P2,
    issue_type: IssueType = IssueType.DEAD_CLICK,
    count: int = 4,
    url: str = "https://my.example.com/documents",
) -> VerifiedIssue:
    return VerifiedIssue(
        id=issue_id,
        url=url,
        page_name_inferred="Documents List",
        metric="DeadClickCount" if issue_type == IssueType.DEAD_CLICK else "RageClickCount",
        type=issue_type,
        count=count,
        sessions_total=18,
        sessions_affected=6,
        percent_affected=33.33,
        priority=priority,
    )


def make_investigation(issue_id: str) -> InvestigationData:
    return InvestigationData.model_validate({
        "issueId": issue_id,
        "knownFacts": [f"fact for {issue_id}"],
        "unknownFactors": ["Exact element that was clicked"],
        "possibleCauses": [{
            "id": "CAUSE-001",
            "probability": "MEDIUM",
            "title": "Card has hover effect but no onClick",
            "description": "Only the inner button navigates.",
            "filesLikelyInvolved": ["src/components/DocumentCard.tsx"],
        }],
        "relevantFiles": [{"path": "src/pages/Documents.tsx", "reason": "Route component"}],
    })


def make_prompt(issue_id: str) -> InvestigationPrompt:
    return InvestigationPrompt.model_validate({
        "issueId": issue_id,
        "promptText": f"Investigate {issue_id} thoroughly.",
        "quickContext": {"filesToCheck": ["src/pages/Documents.tsx"], "searchTerms": ["onClick"]},
    })


@pytest.fixture
def issues():
    return [
        make_issue("UX-001", Priority.P0, IssueType.RAGE_CLICK, 30, "https://my.example.com/checkout"),
        make_issue("UX-002", Priority.P2, IssueType.DEAD_CLICK, 4),
    ]


@pytest.fixture
def dataset():
    payload = [MetricResult.model_validate(m) for m in CLARITY_PAYLOAD]
    return ClarityDataset(
        by_url=payload,
        by_device=payload,
        by_browser=payload,
        dead_clicks_by_url=payload,
        rage_clicks_by_url=payload,
        scroll_depth_by_browser_country=payload,
        api_calls_used=6,
    )


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, status_code: int = 200, json_body=None, text: str = "") -> None:
        self.requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            if json_body is not None:
                return httpx.Response(status_code, json=json_body)
            return httpx.Response(status_code, text=text)

        super().__init__(handler)
