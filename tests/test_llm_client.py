"""Tests for the rate-limit-aware generation client and the usage ledger."""

import asyncio
from unittest.mock import AsyncMock

import anthropic
import httpx
import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from conftest import ai_message, fake_llm
from uxpilot.errors import RetryExhaustedError, UnauthorizedError, UpstreamError
from uxpilot.llm.client import GenerationClient
from uxpilot.llm.usage import ModelPricing, UsageLedger, estimate_cost

_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def rate_limited(retry_after: str | None = None) -> anthropic.RateLimitError:
    headers = {"retry-after": retry_after} if retry_after is not None else {}
    response = httpx.Response(429, headers=headers, request=_REQUEST)
    return anthropic.RateLimitError("rate limited", response=response, body=None)


def status_error(status: int) -> anthropic.APIStatusError:
    response = httpx.Response(status, request=_REQUEST)
    return anthropic.APIStatusError(f"error {status}", response=response, body=None)


def _client(llm, ledger=None, sleep=None, max_retries=3, min_wait=60.0):
    return GenerationClient(
        llm,
        ledger or UsageLedger(),
        max_retries=max_retries,
        min_wait_seconds=min_wait,
        sleep=sleep or AsyncMock(),
    )


def test_success_records_usage_and_returns_text():
    llm = fake_llm(ai_message("hello", input_tokens=1200, output_tokens=300))
    ledger = UsageLedger()
    client = _client(llm, ledger)

    text = asyncio.run(client.complete("system", [HumanMessage(content="hi")], "UX Detective"))

    assert text == "hello"
    assert ledger.calls == 1
    assert ledger.totals().input_tokens == 1200
    assert ledger.totals().output_tokens == 300
    sent = llm.ainvoke.await_args.args[0]
    assert isinstance(sent[0], SystemMessage)
    assert sent[0].content == "system"
    assert sent[1].content == "hi"


def test_three_rate_limits_then_success_returns_fourth_response():
    sleep = AsyncMock()
    llm = fake_llm(
        rate_limited("5"),
        rate_limited("120"),
        rate_limited(),
        ai_message("fourth response"),
    )
    ledger = UsageLedger()
    client = _client(llm, ledger, sleep=sleep)

    text = asyncio.run(client.complete("s", [HumanMessage(content="u")], "Code Investigator"))

    assert text == "fourth response"
    assert llm.ainvoke.await_count == 4
    assert sleep.await_count == 3
    # retry-after below the floor is raised to the minimum wait
    assert [c.args[0] for c in sleep.await_args_list] == [60.0, 120.0, 60.0]
    assert ledger.calls == 1


def test_rate_limit_beyond_ceiling_raises_retry_exhausted():
    sleep = AsyncMock()
    llm = fake_llm(*(rate_limited() for _ in range(4)))
    client = _client(llm, sleep=sleep)

    with pytest.raises(RetryExhaustedError) as exc_info:
        asyncio.run(client.complete("s", [HumanMessage(content="u")], "Prompt Generator"))

    assert exc_info.value.attempts == 4
    assert exc_info.value.label == "Prompt Generator"
    assert sleep.await_count == 3


def test_non_rate_limit_error_is_not_retried():
    sleep = AsyncMock()
    llm = fake_llm(status_error(500), ai_message("never reached"))
    client = _client(llm, sleep=sleep)

    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(client.complete("s", [HumanMessage(content="u")], "UX Detective"))

    assert exc_info.value.status == 500
    assert llm.ainvoke.await_count == 1
    sleep.assert_not_awaited()


def test_auth_error_is_typed():
    llm = fake_llm(status_error(401))
    client = _client(llm)

    with pytest.raises(UnauthorizedError):
        asyncio.run(client.complete("s", [HumanMessage(content="u")], "UX Detective"))


def test_errors_without_status_propagate_unchanged():
    llm = fake_llm(RuntimeError("boom"))
    client = _client(llm)

    with pytest.raises(RuntimeError, match="boom"):
        asyncio.run(client.complete("s", [HumanMessage(content="u")], "UX Detective"))


def test_text_blocks_are_joined():
    message = AIMessage(content=[
        {"type": "text", "text": "part one"},
        {"type": "tool_use", "id": "x", "name": "t", "input": {}},
        {"type": "text", "text": "part two"},
    ])
    client = _client(fake_llm(message))

    text = asyncio.run(client.complete("s", [HumanMessage(content="u")], "UX Detective"))

    assert text == "part one\npart two"


def test_ledger_groups_by_label():
    ledger = UsageLedger()
    ledger.record("UX Detective", 100, 10)
    ledger.record("Code Investigator", 200, 20)
    ledger.record("UX Detective", 50, 5)

    grouped = ledger.by_label()
    assert grouped["UX Detective"].input_tokens == 150
    assert grouped["UX Detective"].output_tokens == 15
    assert ledger.totals().input_tokens == 350
    assert ledger.calls == 3


def test_estimate_cost_uses_price_table():
    pricing = ModelPricing(input_per_mtok=3.0, output_per_mtok=15.0)
    assert estimate_cost(1_000_000, 0, pricing) == pytest.approx(3.0)
    assert estimate_cost(100_000, 20_000, pricing) == pytest.approx(0.6)
    assert estimate_cost(0, 0, pricing) == 0
