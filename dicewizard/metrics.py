from prometheus_client import Counter, Gauge, Histogram

CHARACTERS_TOTAL = Gauge("dnd_characters_total", "The total number of characters")

HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total", "Total number of HTTP requests", ["method", "path", "status"]
)

HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds", "HTTP request duration in seconds", ["method", "path"]
)


def route_path(request) -> str:
    """Route template (``/api/campaigns/{campaign_id}``) so ids don't explode label cardinality."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"
