"""Data models for the Clarity Data Export API."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Dimension(str, Enum):
    BROWSER = "Browser"
    DEVICE = "Device"
    COUNTRY = "Country"
    OS = "OS"
    SOURCE = "Source"
    MEDIUM = "Medium"
    CAMPAIGN = "Campaign"
    CHANNEL = "Channel"
    URL = "URL"


class InsightsRequest(BaseModel):
    """Query for one export call: a day window and up to three dimensions."""

    num_of_days: int = Field(ge=1, le=3)
    dimensions: list[Dimension] = Field(default_factory=list, max_length=3)

    @model_validator(mode="after")
    def _distinct_dimensions(self) -> InsightsRequest:
        if len(set(self.dimensions)) != len(self.dimensions):
            raise ValueError("dimensions must be distinct")
        return self

    def to_params(self) -> dict[str, str]:
        params = {"numOfDays": str(self.num_of_days)}
        for i, dim in enumerate(self.dimensions, start=1):
            params[f"dimension{i}"] = dim.value
        return params


class MetricResult(BaseModel):
    """One metric with its per-dimension-value records."""

    model_config = ConfigDict(populate_by_name=True)

    metric_name: str = Field(alias="metricName")
    information: list[dict[str, Any]] = []


class ClarityDataset(BaseModel):
    """The six export payloads of a daily fetch."""

    model_config = ConfigDict(populate_by_name=True)

    by_url: list[MetricResult] = Field(alias="byUrl", default=[])
    by_device: list[MetricResult] = Field(alias="byDevice", default=[])
    by_browser: list[MetricResult] = Field(alias="byBrowser", default=[])
    dead_clicks_by_url: list[MetricResult] = Field(alias="deadClicksByUrl", default=[])
    rage_clicks_by_url: list[MetricResult] = Field(alias="rageClicksByUrl", default=[])
    scroll_depth_by_browser_country: list[MetricResult] = Field(
        alias="scrollDepthByBrowserCountry", default=[]
    )
    fetched_at: datetime = Field(
        alias="fetchedAt", default_factory=lambda: datetime.now(timezone.utc)
    )
    api_calls_used: int = Field(alias="apiCallsUsed", default=0)
