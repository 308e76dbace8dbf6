"""Prometheus metrics for ingestion, analysis, outlook risk, and external API health"""

from prometheus_client import Counter, Histogram

# Ingestion metrics
transactions_ingested_counter = Counter(
    "money_transactions_ingested_total",
    "Transactions received from the bank aggregator",
    ["source"],  # webhook | sync | initial
)

# AI analysis metrics
analysis_counter = Counter(
    "money_analysis_total",
    "AI transaction analyses run",
    ["outcome"],  # success | failure
)

llm_latency_histogram = Histogram(
    "llm_latency_seconds",
    "LLM analysis response time",
    buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
)

# Bank API metrics
plaid_failures_counter = Counter(
    "plaid_api_failures_total",
    "Failed bank aggregator API calls",
    ["operation"],
)

# Outlook and alerts
outlook_risk_counter = Counter(
    "money_outlook_risk_total",
    "Computed outlooks by risk level",
    ["risk_level"],  # low | medium | high
)

alerts_generated_counter = Counter(
    "money_alerts_generated_total",
    "Alerts created by the rule pass",
    ["type"],
)

cache_lookup_counter = Counter(
    "money_cache_lookups_total",
    "Response cache lookups",
    ["cache", "result"],  # result: hit | miss
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_outlook(risk_level: str) -> None:
    outlook_risk_counter.labels(risk_level=risk_level).inc()


def record_cache_lookup(cache: str, hit: bool) -> None:
    cache_lookup_counter.labels(cache=cache, result="hit" if hit else "miss").inc()
