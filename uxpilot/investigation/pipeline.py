"""Investigation pipeline: one end-to-end run from analytics data to a saved report."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from pathlib import Path

from langchain_core.language_models import BaseChatModel
from pydantic import BaseModel, ConfigDict

from uxpilot.clarity.cache import DatasetCache, acquire_dataset
from uxpilot.clarity.client import ClarityClient, QuotaCounter
from uxpilot.clarity.models import ClarityDataset
from uxpilot.config import Settings, settings as default_settings
from uxpilot.enrichment.repository import RepositoryContext
from uxpilot.errors import DatasetUnavailableError
from uxpilot.investigation.graph import compile_investigation_graph
from uxpilot.investigation.models import InvestigationReport, ReportMetadata
from uxpilot.investigation.state import InvestigationState
from uxpilot.llm.client import GenerationClient, build_chat_model
from uxpilot.llm.usage import ModelPricing, UsageLedger, estimate_cost
from uxpilot.reporting.artifacts import ArtifactStore
from uxpilot.reporting.notifier import SlackNotifier, summarize_report

logger = logging.getLogger("uxpilot.investigation")

PIPELINE_VERSION = "3.1.0"


class RunResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    report: InvestigationReport
    report_path: Path
    notified: bool = False


class InvestigationPipeline:
    """Owns every piece of per-run state: quota counter, usage ledger, stage outputs.

    Two pipelines in one process share nothing.
    """

    def __init__(
        self,
        llm: BaseChatModel,
        clarity: ClarityClient,
        cache: DatasetCache,
        repository: RepositoryContext,
        artifacts: ArtifactStore,
        notifier: SlackNotifier,
        config: Settings | None = None,
        ledger: UsageLedger | None = None,
        generation: GenerationClient | None = None,
    ) -> None:
        self._config = config or default_settings
        self.clarity = clarity
        self.cache = cache
        self.repository = repository
        self.artifacts = artifacts
        self.notifier = notifier
        self.ledger = ledger or UsageLedger()
        self.generation = generation or GenerationClient(
            llm,
            self.ledger,
            max_retries=self._config.llm_max_retries,
            min_wait_seconds=self._config.llm_min_retry_wait_seconds,
        )
        self.pricing = ModelPricing(
            input_per_mtok=self._config.llm_input_price_per_mtok,
            output_per_mtok=self._config.llm_output_price_per_mtok,
        )

    async def close(self) -> None:
        await self.clarity.close()

    async def load_dataset(self, cached_only: bool = False) -> ClarityDataset:
        if cached_only:
            dataset = self.cache.load() or self.cache.load_latest()
            if dataset is None:
                raise DatasetUnavailableError(str(self.cache.directory))
            return dataset
        return await acquire_dataset(self.cache, self.clarity)

    async def run(self, cached_only: bool = False) -> RunResult:
        """Execute a full run. Typed PipelineErrors propagate; nothing is retried here."""
        started = time.monotonic()
        logger.info(
            "Starting UX investigation: target=%s clarity_project=%s",
            self._config.target_repo, self._config.clarity_project_id,
        )

        dataset = await self.load_dataset(cached_only)

        # git and the file walks block; keep them off the event loop
        await asyncio.to_thread(self.repository.ensure_cloned)
        repo_context = await asyncio.to_thread(self.repository.describe)
        route_files = await asyncio.to_thread(self.repository.route_files)

        def build_metadata(state: InvestigationState) -> ReportMetadata:
            totals = self.ledger.totals()
            days = self._config.clarity_num_days
            return ReportMetadata(
                generated_at=datetime.now(timezone.utc),
                data_range=f"Last {days} day{'s' if days > 1 else ''}",
                target_repo=self._config.target_repo,
                pipeline_version=PIPELINE_VERSION,
                clarity_project_id=self._config.clarity_project_id,
                clarity_api_calls=state["dataset"].api_calls_used,
                llm_api_calls=self.ledger.calls,
                input_tokens=totals.input_tokens,
                output_tokens=totals.output_tokens,
                estimated_cost=estimate_cost(
                    totals.input_tokens, totals.output_tokens, self.pricing
                ),
                duration_ms=int((time.monotonic() - started) * 1000),
                usage_by_stage={
                    label: {"inputTokens": u.input_tokens, "outputTokens": u.output_tokens}
                    for label, u in self.ledger.by_label().items()
                },
            )

        graph = compile_investigation_graph(
            self.generation,
            build_metadata,
            dataset_budget=self._config.dataset_char_budget,
            route_files_budget=self._config.route_files_char_budget,
        )
        final = await graph.ainvoke({
            "dataset": dataset,
            "project_id": self._config.clarity_project_id,
            "repo_context": repo_context,
            "route_files": route_files,
        })
        report: InvestigationReport = final["report"]

        report_path = self.artifacts.save_report(report)

        meta = report.metadata
        logger.info(
            "Pipeline complete: report=%s issues=%d llm_calls=%d tokens=%d/%d cost=$%.4f duration=%.1fs",
            report_path, len(report.issues), meta.llm_api_calls,
            meta.input_tokens, meta.output_tokens, meta.estimated_cost, meta.duration_ms / 1000,
        )

        notified = await self.notifier.send(
            summarize_report(report, report_path, self._config.clarity_max_calls_per_day)
        )
        return RunResult(report=report, report_path=report_path, notified=notified)


def build_pipeline(
    config: Settings | None = None,
    quota: QuotaCounter | None = None,
) -> InvestigationPipeline:
    """Wire a pipeline from settings. Missing credentials fail before any call.

    Pass a shared ``quota`` to make several runs draw on one daily budget.
    """
    config = config or default_settings
    config.require_credentials()

    return InvestigationPipeline(
        llm=build_chat_model(config),
        clarity=ClarityClient(
            config.clarity_api_token,
            quota or QuotaCounter(config.clarity_max_calls_per_day),
            base_url=config.clarity_base_url,
            num_days=config.clarity_num_days,
        ),
        cache=DatasetCache(config.data_dir),
        repository=RepositoryContext(
            config.target_repo,
            config.clone_dir,
            config.github_token,
            manifest_budget=config.manifest_char_budget,
            listing_budget=config.file_listing_char_budget,
            max_route_files=config.max_route_files,
            full_file_size=config.route_file_full_size,
            head_lines=config.route_file_head_lines,
        ),
        artifacts=ArtifactStore(config.reports_dir),
        notifier=SlackNotifier(config.slack_webhook_url),
        config=config,
    )
