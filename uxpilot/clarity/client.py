"""Clarity export client: quota-limited GETs against the Data Export API."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

import httpx

from uxpilot.clarity.models import ClarityDataset, Dimension, InsightsRequest, MetricResult
from uxpilot.config import settings
from uxpilot.errors import (
    AnalyticsRateLimitedError,
    ForbiddenError,
    QuotaExceededError,
    UnauthorizedError,
    UpstreamError,
)

logger = logging.getLogger("uxpilot.clarity")

_SERVICE = "Clarity"


class QuotaCounter:
    """Daily call budget shared by every request a client makes.

    A slot is reserved under the lock before the request goes out, so
    parallel calls in a batch cannot overshoot ``allowed``.
    """

    def __init__(self, allowed: int) -> None:
        self.allowed = allowed
        self.used = 0
        self._lock = asyncio.Lock()

    async def reserve(self) -> None:
        async with self._lock:
            if self.used >= self.allowed:
                raise QuotaExceededError(self.used, self.allowed)
            self.used += 1

    async def release(self) -> None:
        async with self._lock:
            self.used = max(0, self.used - 1)

    @property
    def remaining(self) -> int:
        return self.allowed - self.used


class ClarityClient:
    def __init__(
        self,
        token: str,
        quota: QuotaCounter,
        base_url: str | None = None,
        num_days: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._quota = quota
        self._url = base_url or settings.clarity_base_url
        self._num_days = num_days or settings.clarity_num_days
        self._http = httpx.AsyncClient(
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
            timeout=30.0,
            transport=transport,
        )

    async def close(self) -> None:
        await self._http.aclose()

    @property
    def calls_used(self) -> int:
        return self._quota.used

    def remaining_calls(self) -> int:
        return self._quota.remaining

    async def fetch_insights(self, request: InsightsRequest) -> list[MetricResult]:
        """Execute one export call. Raises on quota, auth, rate-limit and HTTP errors."""
        await self._quota.reserve()
        try:
            resp = await self._http.get(self._url, params=request.to_params())
        except httpx.HTTPError:
            await self._quota.release()
            raise

        if resp.status_code >= 300:
            await self._quota.release()
            if resp.status_code == 401:
                raise UnauthorizedError(_SERVICE, resp.text)
            if resp.status_code == 403:
                raise ForbiddenError(_SERVICE, resp.text)
            if resp.status_code == 429:
                raise AnalyticsRateLimitedError(resp.text)
            raise UpstreamError(_SERVICE, resp.status_code, resp.text)

        return [MetricResult.model_validate(m) for m in resp.json()]

    async def fetch_all(self) -> ClarityDataset:
        """Fetch the six breakdowns the pipeline analyses, in two parallel batches.

        Batch 2 repeats the dimension sets of batch 1: the export API has no
        per-metric filter, so the dedicated dead-click, rage-click and scroll
        depth payloads are full breakdowns of the same axes.
        """
        days = self._num_days
        logger.info("Fetching Clarity data (6 API calls, %d day window)", days)

        by_url, by_device, by_browser = await asyncio.gather(
            self.fetch_insights(InsightsRequest(num_of_days=days, dimensions=[Dimension.URL])),
            self.fetch_insights(
                InsightsRequest(num_of_days=days, dimensions=[Dimension.DEVICE, Dimension.OS])
            ),
            self.fetch_insights(
                InsightsRequest(num_of_days=days, dimensions=[Dimension.BROWSER, Dimension.COUNTRY])
            ),
        )
        logger.info("Batch 1 complete (%d calls used)", self.calls_used)

        dead_clicks, rage_clicks, scroll_depth = await asyncio.gather(
            self.fetch_insights(InsightsRequest(num_of_days=days, dimensions=[Dimension.URL])),
            self.fetch_insights(InsightsRequest(num_of_days=days, dimensions=[Dimension.URL])),
            self.fetch_insights(
                InsightsRequest(num_of_days=days, dimensions=[Dimension.BROWSER, Dimension.COUNTRY])
            ),
        )
        logger.info(
            "Clarity data fetched: %d/%d calls used",
            self.calls_used, self._quota.allowed,
        )

        return ClarityDataset(
            by_url=by_url,
            by_device=by_device,
            by_browser=by_browser,
            dead_clicks_by_url=dead_clicks,
            rage_clicks_by_url=rage_clicks,
            scroll_depth_by_browser_country=scroll_depth,
            fetched_at=datetime.now(timezone.utc),
            api_calls_used=self.calls_used,
        )
