"""Tests for the quota-limited Clarity export client."""

import asyncio

import pytest

from conftest import CLARITY_PAYLOAD, RecordingTransport
from uxpilot.clarity.client import ClarityClient, QuotaCounter
from uxpilot.clarity.models import Dimension, InsightsRequest
from uxpilot.errors import (
    AnalyticsRateLimitedError,
    ForbiddenError,
    QuotaExceededError,
    UnauthorizedError,
    UpstreamError,
)

BASE_URL = "https://clarity.test/export"


def _client(transport, allowed=10, quota=None):
    return ClarityClient(
        "secret-token",
        quota or QuotaCounter(allowed),
        base_url=BASE_URL,
        num_days=1,
        transport=transport,
    )


def _request():
    return InsightsRequest(num_of_days=1, dimensions=[Dimension.URL])


def test_fetch_insights_sends_params_and_auth():
    transport = RecordingTransport(json_body=CLARITY_PAYLOAD)

    async def run_test():
        client = _client(transport)
        result = await client.fetch_insights(
            InsightsRequest(num_of_days=2, dimensions=[Dimension.BROWSER, Dimension.COUNTRY])
        )
        await client.close()
        return client, result

    client, result = asyncio.run(run_test())

    assert [m.metric_name for m in result] == ["DeadClickCount", "RageClickCount"]
    req = transport.requests[0]
    assert req.method == "GET"
    assert req.url.params["numOfDays"] == "2"
    assert req.url.params["dimension1"] == "Browser"
    assert req.url.params["dimension2"] == "Country"
    assert "dimension3" not in req.url.params
    assert req.headers["Authorization"] == "Bearer secret-token"
    assert client.calls_used == 1


def test_fetch_all_issues_exactly_six_calls():
    transport = RecordingTransport(json_body=CLARITY_PAYLOAD)

    async def run_test():
        client = _client(transport)
        dataset = await client.fetch_all()
        await client.close()
        return client, dataset

    client, dataset = asyncio.run(run_test())

    assert len(transport.requests) == 6
    assert dataset.api_calls_used == 6
    assert client.remaining_calls() == 4
    assert dataset.rage_clicks_by_url[1].metric_name == "RageClickCount"
    dims = [tuple(v for k, v in r.url.params.items() if k.startswith("dimension")) for r in transport.requests]
    assert dims.count(("URL",)) == 3
    assert dims.count(("Device", "OS")) == 1
    assert dims.count(("Browser", "Country")) == 2


def test_repeated_fetch_all_never_exceeds_daily_maximum():
    transport = RecordingTransport(json_body=CLARITY_PAYLOAD)

    async def run_test():
        client = _client(transport, allowed=10)
        await client.fetch_all()
        with pytest.raises(QuotaExceededError):
            await client.fetch_all()
        await asyncio.sleep(0)
        await client.close()
        return client

    client = asyncio.run(run_test())

    assert len(transport.requests) <= 10
    assert client.calls_used == 10


def test_exhausted_quota_fails_before_any_request():
    transport = RecordingTransport(json_body=CLARITY_PAYLOAD)
    quota = QuotaCounter(10)
    quota.used = 10

    async def run_test():
        client = _client(transport, quota=quota)
        try:
            await client.fetch_insights(_request())
        finally:
            await client.close()

    with pytest.raises(QuotaExceededError) as exc_info:
        asyncio.run(run_test())

    assert exc_info.value.used == 10
    assert exc_info.value.allowed == 10
    assert transport.requests == []


@pytest.mark.parametrize(
    "status, error",
    [
        (401, UnauthorizedError),
        (403, ForbiddenError),
        (429, AnalyticsRateLimitedError),
        (500, UpstreamError),
    ],
)
def test_error_statuses_map_to_typed_errors(status, error):
    transport = RecordingTransport(status_code=status, text="upstream says no")

    async def run_test():
        client = _client(transport)
        try:
            await client.fetch_insights(_request())
        finally:
            await client.close()
        return client

    with pytest.raises(error) as exc_info:
        asyncio.run(run_test())

    assert exc_info.value.status == status
    # never retried
    assert len(transport.requests) == 1


def test_upstream_error_carries_body_excerpt():
    transport = RecordingTransport(status_code=502, text="x" * 2000)

    async def run_test():
        client = _client(transport)
        try:
            await client.fetch_insights(_request())
        finally:
            await client.close()

    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(run_test())

    assert len(exc_info.value.body) == 500
    assert "502" in str(exc_info.value)


def test_request_validation_rejects_bad_params():
    with pytest.raises(ValueError):
        InsightsRequest(num_of_days=4, dimensions=[Dimension.URL])
    with pytest.raises(ValueError):
        InsightsRequest(
            num_of_days=1,
            dimensions=[Dimension.URL, Dimension.OS, Dimension.DEVICE, Dimension.BROWSER],
        )
    with pytest.raises(ValueError):
        InsightsRequest(num_of_days=1, dimensions=[Dimension.URL, Dimension.URL])


def test_parallel_calls_respect_quota():
    transport = RecordingTransport(json_body=CLARITY_PAYLOAD)

    async def run_test():
        client = _client(transport, allowed=2)
        results = await asyncio.gather(
            *(client.fetch_insights(_request()) for _ in range(3)),
            return_exceptions=True,
        )
        await client.close()
        return results

    results = asyncio.run(run_test())

    assert sum(isinstance(r, QuotaExceededError) for r in results) == 1
    assert len(transport.requests) == 2
