from prometheus_client import (
    Counter,
    generate_latest,
    CONTENT_TYPE_LATEST,
)
from fastapi import Response


llm_requests = Counter(
    "llm_requests_total",
    "Upstream chat-completion calls attempted",
    ["model"],
)

llm_upstream_errors = Counter(
    "llm_upstream_errors_total",
    "Upstream chat-completion calls that failed",
    ["model"],
)

llm_cache_hits = Counter(
    "llm_cache_hits_total",
    "Requests answered from the response cache",
)

llm_cache_errors = Counter(
    "llm_cache_errors_total",
    "Cache operations that failed and were skipped",
    ["operation"],
)

llm_routed = Counter(
    "llm_routed_total",
    "Requests routed by the complexity classifier",
    ["tier"],
)

llm_tokens = Counter(
    "llm_tokens_total",
    "Total LLM tokens consumed",
    ["model", "direction"],
)

llm_cost = Counter(
    "llm_cost_total",
    "Accumulated upstream cost in USD",
    ["model"],
)


def metrics_response() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
