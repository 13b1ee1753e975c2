"""
Model tiers, cost calculation and running usage statistics.

Costs are kept as exact Decimals while accumulating. Rounding happens only
in format_cost(), which is for display.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel

from chat_core.llm_adapter.errors import InvalidInput
from chat_core.llm_adapter.models import ResponseEnvelope

_THOUSAND = Decimal("1000")


class Tier(str, Enum):
    SMALL = "small"
    LARGE = "large"


@dataclass(frozen=True)
class ModelProfile:
    """Static pricing and capacity for one upstream model."""

    identifier: str
    input_cost_per_1k: Decimal
    output_cost_per_1k: Decimal
    max_context_tokens: int


@dataclass(frozen=True)
class ModelCatalog:
    """The two routable tiers, looked up by tier or by model identifier."""

    small: ModelProfile
    large: ModelProfile

    def for_tier(self, tier: Tier) -> ModelProfile:
        return self.small if tier is Tier.SMALL else self.large

    def tier_of(self, identifier: str) -> Tier | None:
        if identifier == self.small.identifier:
            return Tier.SMALL
        if identifier == self.large.identifier:
            return Tier.LARGE
        return None

    def get(self, identifier: str) -> ModelProfile:
        tier = self.tier_of(identifier)
        if tier is None:
            raise InvalidInput(
                f"Unsupported model: {identifier}. "
                f"Available: {self.small.identifier}, {self.large.identifier}"
            )
        return self.for_tier(tier)


MISTRAL_SMALL = ModelProfile(
    identifier="mistral-small-latest",
    input_cost_per_1k=Decimal("0.0002"),
    output_cost_per_1k=Decimal("0.0006"),
    max_context_tokens=32_000,
)

MISTRAL_LARGE = ModelProfile(
    identifier="mistral-large-latest",
    input_cost_per_1k=Decimal("0.002"),
    output_cost_per_1k=Decimal("0.006"),
    max_context_tokens=128_000,
)

DEFAULT_CATALOG = ModelCatalog(small=MISTRAL_SMALL, large=MISTRAL_LARGE)


def calculate_cost(profile: ModelProfile, input_tokens: int, output_tokens: int) -> Decimal:
    """(in / 1000) * input rate + (out / 1000) * output rate, unrounded."""
    if input_tokens < 0 or output_tokens < 0:
        raise InvalidInput("token counts cannot be negative")
    input_cost = (Decimal(input_tokens) / _THOUSAND) * profile.input_cost_per_1k
    output_cost = (Decimal(output_tokens) / _THOUSAND) * profile.output_cost_per_1k
    return input_cost + output_cost


def format_cost(value: Decimal, places: int = 6) -> str:
    return f"${value:.{places}f}"


class StatsSnapshot(BaseModel):
    """Read-only copy of RunningStats plus derived ratios."""

    requests_to_upstream: int
    cache_hits: int
    total_cost: Decimal
    input_tokens: int
    output_tokens: int
    routed_to_small: int
    routed_to_large: int
    cost_saved: Decimal
    cache_hit_rate: str
    avg_cost_per_request: str
    estimated_savings: str


@dataclass
class RunningStats:
    """
    Process-wide usage counters owned by a single engine.

    Every mutation happens on the engine's event loop, so no locking.
    """

    requests_to_upstream: int = 0
    cache_hits: int = 0
    total_cost: Decimal = field(default_factory=Decimal)
    input_tokens: int = 0
    output_tokens: int = 0
    routed_to_small: int = 0
    routed_to_large: int = 0
    cost_saved: Decimal = field(default_factory=Decimal)

    def record_route(self, tier: Tier) -> None:
        if tier is Tier.SMALL:
            self.routed_to_small += 1
        else:
            self.routed_to_large += 1

    def record_hit(self, envelope: ResponseEnvelope) -> None:
        self.cache_hits += 1
        self.cost_saved += envelope.cost

    def record_upstream(self) -> None:
        self.requests_to_upstream += 1

    def record_usage(self, envelope: ResponseEnvelope) -> None:
        self.input_tokens += envelope.input_tokens
        self.output_tokens += envelope.output_tokens
        self.total_cost += envelope.cost

    def reset(self) -> None:
        self.requests_to_upstream = 0
        self.cache_hits = 0
        self.total_cost = Decimal()
        self.input_tokens = 0
        self.output_tokens = 0
        self.routed_to_small = 0
        self.routed_to_large = 0
        self.cost_saved = Decimal()

    def snapshot(self) -> StatsSnapshot:
        served = self.requests_to_upstream + self.cache_hits
        hit_rate = (self.cache_hits / served * 100) if served else 0.0
        avg = (
            self.total_cost / self.requests_to_upstream
            if self.requests_to_upstream
            else Decimal()
        )
        return StatsSnapshot(
            requests_to_upstream=self.requests_to_upstream,
            cache_hits=self.cache_hits,
            total_cost=self.total_cost,
            input_tokens=self.input_tokens,
            output_tokens=self.output_tokens,
            routed_to_small=self.routed_to_small,
            routed_to_large=self.routed_to_large,
            cost_saved=self.cost_saved,
            cache_hit_rate=f"{hit_rate:.1f}%",
            avg_cost_per_request=format_cost(avg),
            estimated_savings=format_cost(self.cost_saved),
        )
