"""Token usage ledger and cost estimation for one pipeline run."""

from __future__ import annotations

from pydantic import BaseModel


class TokenUsage(BaseModel):
    label: str
    input_tokens: int = 0
    output_tokens: int = 0


class ModelPricing(BaseModel):
    """USD per million tokens."""

    input_per_mtok: float = 3.0
    output_per_mtok: float = 15.0


class UsageLedger:
    """Per-call token records plus the count of successful generation calls."""

    def __init__(self) -> None:
        self.entries: list[TokenUsage] = []

    @property
    def calls(self) -> int:
        return len(self.entries)

    def record(self, label: str, input_tokens: int, output_tokens: int) -> None:
        self.entries.append(
            TokenUsage(label=label, input_tokens=input_tokens, output_tokens=output_tokens)
        )

    def totals(self) -> TokenUsage:
        return TokenUsage(
            label="total",
            input_tokens=sum(e.input_tokens for e in self.entries),
            output_tokens=sum(e.output_tokens for e in self.entries),
        )

    def by_label(self) -> dict[str, TokenUsage]:
        grouped: dict[str, TokenUsage] = {}
        for e in self.entries:
            acc = grouped.setdefault(e.label, TokenUsage(label=e.label))
            acc.input_tokens += e.input_tokens
            acc.output_tokens += e.output_tokens
        return grouped


def estimate_cost(input_tokens: int, output_tokens: int, pricing: ModelPricing) -> float:
    return (
        input_tokens * pricing.input_per_mtok + output_tokens * pricing.output_per_mtok
    ) / 1_000_000
