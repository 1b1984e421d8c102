# studyplanner/metrics.py
from prometheus_client import Counter, Summary, start_http_server

RANKING_TIME = Summary(
    "studyplanner_ranking_seconds",
    "Time spent computing task priorities",
)

SNAPSHOT_UPDATES = Counter(
    "studyplanner_snapshot_updates_total",
    "Store snapshots applied to a planner session",
    ["kind"],  # tasks | blocks | pattern | exclusions
)

_server_started = False


def start_metrics_server(port: int = 8000) -> bool:
    """Expose metrics over HTTP once per process. Returns True if this call started it."""
    global _server_started
    if _server_started:
        return False
    start_http_server(port)
    _server_started = True
    return True
