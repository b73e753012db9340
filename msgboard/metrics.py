"""
Prometheus metrics for the message board.

This module provides:
- HTTP request counter (method, path, status)
- Board event counter (action, result)
- Retention eviction counter
- Request latency histogram (method, path)

Metrics are stored in-memory using prometheus-client.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST


# =============================================================================
# Metric Definitions
# =============================================================================

# HTTP request counter with labels for method, path, and status code
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    labelnames=["method", "path", "status"]
)

# Board write outcomes
# action: submit, delete
# result: created, empty, deleted, not_found, invalid_id
board_events_total = Counter(
    "board_events_total",
    "Total message board write outcomes",
    labelnames=["action", "result"]
)

# Messages removed by the retention cap
messages_evicted_total = Counter(
    "messages_evicted_total",
    "Total messages evicted by the retention cap"
)

# Request latency histogram in seconds
request_latency_seconds = Histogram(
    "request_latency_seconds",
    "Request latency in seconds",
    labelnames=["method", "path"]
)


# =============================================================================
# Helper Functions
# =============================================================================

def record_http_request(method: str, path: str, status: int, latency_seconds: float) -> None:
    """
    Record an HTTP request in metrics.
    
    Args:
        method: HTTP method (GET, POST, etc.)
        path: Request path
        status: HTTP status code
        latency_seconds: Request processing time in seconds
    """
    # Normalize path to avoid high-cardinality labels
    normalized_path = path.split("?")[0]
    
    http_requests_total.labels(
        method=method,
        path=normalized_path,
        status=str(status)
    ).inc()
    
    request_latency_seconds.labels(
        method=method,
        path=normalized_path
    ).observe(latency_seconds)


def record_board_event(action: str, result: str, evicted: int = 0) -> None:
    """
    Record a board write outcome.
    
    Args:
        action: "submit" or "delete"
        result: Processing result - one of:
            - "created": New message stored
            - "empty": Blank submission ignored
            - "deleted": Message removed
            - "not_found": No message with that id
            - "invalid_id": Id could not be parsed
        evicted: Messages removed by retention as part of this write
    """
    board_events_total.labels(action=action, result=result).inc()
    if evicted:
        messages_evicted_total.inc(evicted)


def get_metrics() -> bytes:
    """
    Generate Prometheus exposition format metrics.
    
    Returns:
        Metrics in Prometheus text format as bytes
    """
    return generate_latest()


def get_metrics_content_type() -> str:
    """
    Get the content type for Prometheus metrics.
    
    Returns:
        Content type string for Prometheus exposition format
    """
    return CONTENT_TYPE_LATEST
