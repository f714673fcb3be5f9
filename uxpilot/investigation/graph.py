"""LangGraph investigation workflow: three sequential generation stages, then assembly."""

from __future__ import annotations

import logging
from typing import Callable

from langgraph.graph import END, StateGraph

from uxpilot.config import settings
from uxpilot.detection.detector import detect_verified_issues
from uxpilot.hypothesis.generator import generate_investigations
from uxpilot.investigation.models import ReportMetadata
from uxpilot.investigation.state import InvestigationState
from uxpilot.llm.client import GenerationClient
from uxpilot.prompting.generator import generate_prompts
from uxpilot.reporting.assembler import assemble_report

logger = logging.getLogger("uxpilot.investigation")


def build_investigation_graph(
    client: GenerationClient,
    build_metadata: Callable[[InvestigationState], ReportMetadata],
    dataset_budget: int | None = None,
    route_files_budget: int | None = None,
) -> StateGraph:
    """Construct the linear state machine: detect → investigate → write_prompts → assemble."""
    dataset_budget = dataset_budget or settings.dataset_char_budget
    route_files_budget = route_files_budget or settings.route_files_char_budget

    # ── Node functions ──────────────────────────────────────────────

    async def detect(state: InvestigationState) -> dict:
        result = await detect_verified_issues(
            client, state["dataset"], state["project_id"], dataset_budget
        )
        if not result.issues:
            logger.warning("No verified issues extracted. The report will be empty.")
        return {
            "dashboard_raw": result.raw,
            "issues": result.issues,
            "total_sessions": result.total_sessions,
        }

    async def investigate(state: InvestigationState) -> dict:
        investigations = await generate_investigations(
            client,
            state["issues"],
            state["repo_context"],
            state["route_files"],
            route_files_budget,
        )
        return {"investigations": investigations}

    async def write_prompts(state: InvestigationState) -> dict:
        prompts = await generate_prompts(client, state["issues"], state["investigations"])
        return {"prompts": prompts}

    async def assemble(state: InvestigationState) -> dict:
        report = assemble_report(
            state["issues"],
            state["investigations"],
            state["prompts"],
            build_metadata(state),
            dashboard_text=state.get("dashboard_raw", ""),
            total_sessions=state.get("total_sessions"),
        )
        return {"report": report}

    # ── Build the graph ─────────────────────────────────────────────

    graph = StateGraph(InvestigationState)

    graph.add_node("detect", detect)
    graph.add_node("investigate", investigate)
    graph.add_node("write_prompts", write_prompts)
    graph.add_node("assemble", assemble)

    graph.set_entry_point("detect")
    graph.add_edge("detect", "investigate")
    graph.add_edge("investigate", "write_prompts")
    graph.add_edge("write_prompts", "assemble")
    graph.add_edge("assemble", END)

    return graph


def compile_investigation_graph(
    client: GenerationClient,
    build_metadata: Callable[[InvestigationState], ReportMetadata],
    dataset_budget: int | None = None,
    route_files_budget: int | None = None,
):
    """Build and compile the investigation graph, ready to invoke."""
    graph = build_investigation_graph(client, build_metadata, dataset_budget, route_files_budget)
    return graph.compile()
