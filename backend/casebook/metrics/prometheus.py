from prometheus_client import Counter, Histogram

api_request_latency_seconds = Histogram(
    "api_request_latency_seconds",
    "API request latency in seconds",
    ["route", "method", "status"],
)

cases_created_total = Counter(
    "cases_created_total",
    "Total number of cases created",
)

case_mutations_total = Counter(
    "case_mutations_total",
    "Total case record writes by mutation type",
    ["operation"],
)

exports_total = Counter(
    "exports_total",
    "Total case exports rendered",
    ["format", "source"],
)

ai_requests_total = Counter(
    "ai_requests_total",
    "Calls to the summarization service",
    ["operation", "outcome"],
)

ai_request_latency_seconds = Histogram(
    "ai_request_latency_seconds",
    "Latency of summarization service calls in seconds",
    ["operation"],
)

legacy_cases_imported_total = Counter(
    "legacy_cases_imported_total",
    "Total legacy case objects imported",
)
