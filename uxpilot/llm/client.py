"""Generation client: one chat completion per call, with rate-limit backoff."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Sequence

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, SystemMessage

from uxpilot.config import Settings, settings
from uxpilot.errors import (
    ForbiddenError,
    RetryExhaustedError,
    UnauthorizedError,
    UpstreamError,
)
from uxpilot.llm.usage import UsageLedger

logger = logging.getLogger("uxpilot.llm")

_SERVICE = "LLM"


def build_chat_model(config: Settings | None = None) -> BaseChatModel:
    """Build the configured chat model with provider-side retries disabled."""
    config = config or settings
    if config.llm_provider == "anthropic":
        from langchain_anthropic import ChatAnthropic
        return ChatAnthropic(
            model=config.llm_model,
            api_key=config.anthropic_api_key,
            temperature=config.llm_temperature,
            max_tokens=config.llm_max_tokens,
            max_retries=0,
        )
    elif config.llm_provider == "openai":
        from langchain_openai import ChatOpenAI
        return ChatOpenAI(
            model=config.llm_model,
            api_key=config.openai_api_key,
            temperature=config.llm_temperature,
            max_tokens=config.llm_max_tokens,
            max_retries=0,
        )
    else:
        raise ValueError(f"Unsupported LLM provider: {config.llm_provider}")


def _status_of(exc: Exception) -> int | None:
    status = getattr(exc, "status_code", None)
    return status if isinstance(status, int) else None


def _retry_after(exc: Exception) -> float | None:
    response = getattr(exc, "response", None)
    headers = getattr(response, "headers", None)
    if not headers:
        return None
    try:
        return float(headers.get("retry-after", ""))
    except (TypeError, ValueError):
        return None


def _text_of(content: str | list) -> str:
    if isinstance(content, str):
        return content
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "\n".join(parts)


class GenerationClient:
    def __init__(
        self,
        llm: BaseChatModel,
        ledger: UsageLedger,
        max_retries: int | None = None,
        min_wait_seconds: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._llm = llm
        self._ledger = ledger
        self._max_retries = settings.llm_max_retries if max_retries is None else max_retries
        self._min_wait = (
            settings.llm_min_retry_wait_seconds if min_wait_seconds is None else min_wait_seconds
        )
        self._sleep = sleep

    @property
    def ledger(self) -> UsageLedger:
        return self._ledger

    async def complete(
        self,
        system_instructions: str,
        messages: Sequence[BaseMessage],
        label: str,
    ) -> str:
        """Run one completion; retry only on rate limiting."""
        logger.info("[%s] Calling LLM...", label)
        started = time.monotonic()
        conversation = [SystemMessage(content=system_instructions), *messages]

        attempts = 0
        while True:
            attempts += 1
            try:
                response = await self._llm.ainvoke(conversation)
                break
            except Exception as exc:
                status = _status_of(exc)
                if status is None:
                    raise
                if status != 429:
                    body = str(exc)
                    if status == 401:
                        raise UnauthorizedError(_SERVICE, body) from exc
                    if status == 403:
                        raise ForbiddenError(_SERVICE, body) from exc
                    raise UpstreamError(_SERVICE, status, body) from exc
                if attempts > self._max_retries:
                    raise RetryExhaustedError(label, attempts) from exc

                wait = max(_retry_after(exc) or 0.0, self._min_wait)
                logger.warning(
                    "[%s] Rate limited. Waiting %.0fs before retry %d/%d",
                    label, wait, attempts, self._max_retries,
                )
                await self._sleep(wait)

        usage = response.usage_metadata or {}
        input_tokens = usage.get("input_tokens", 0)
        output_tokens = usage.get("output_tokens", 0)
        self._ledger.record(label, input_tokens, output_tokens)

        logger.info(
            "[%s] Done in %.1fs (%d in / %d out tokens)",
            label, time.monotonic() - started, input_tokens, output_tokens,
        )
        return _text_of(response.content)
