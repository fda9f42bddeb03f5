from prometheus_client import Counter, Histogram, generate_latest

# outcome 为 "ok" 或异常类名，保持低基数
OPERATIONS = Counter(
    "storage_operations_total",
    "Total object storage operations",
    ["operation", "outcome"],
)

LATENCY = Histogram(
    "storage_operation_duration_seconds",
    "Object storage operation latency in seconds",
    ["operation"],
)

CONNECTIONS = Counter(
    "storage_connections_built_total",
    "Storage connection handles built",
)


def render_metrics() -> str:
    return generate_latest().decode("utf-8")
