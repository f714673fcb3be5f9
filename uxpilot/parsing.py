"""Extraction of JSON payloads from free-form model responses."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger("uxpilot.parsing")

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

_FENCED_BLOCK = re.compile(r"```(?:json)?[ \t]*\r?\n(.*?)\r?\n[ \t]*```", re.DOTALL)


def extract_json(text: str, fallback: T) -> Any | T:
    """Parse the first ```json (or untagged) fenced block in ``text``.

    Returns ``fallback`` itself when there is no such block or its contents
    are not valid JSON. Never raises.
    """
    if not isinstance(text, str):
        return fallback

    match = _FENCED_BLOCK.search(text)
    if not match:
        return fallback

    try:
        return json.loads(match.group(1))
    except ValueError:
        return fallback


def parse_items(raw: Any, model: type[M], label: str) -> list[M]:
    """Validate each element of a parsed JSON array, dropping the invalid ones."""
    if not isinstance(raw, list):
        if raw is not None:
            logger.warning("[%s] Expected a JSON array, got %s", label, type(raw).__name__)
        return []

    items: list[M] = []
    for i, item in enumerate(raw):
        try:
            items.append(model.model_validate(item))
        except ValidationError as exc:
            logger.warning(
                "[%s] Dropping malformed %s at index %d: %s",
                label, model.__name__, i, exc.errors()[0].get("msg", exc),
            )
    return items
