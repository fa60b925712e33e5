"""In-process metrics counters and histograms."""

import time
from collections import defaultdict
from typing import Any

from backend.core.config import settings

# Global metrics storage
_metrics = defaultdict(lambda: {"count": 0, "sum": 0.0, "values": [], "buckets": defaultdict(int)})


def init_metrics() -> None:
    """Initialize metrics if enabled."""
    if not settings.enable_metrics:
        return


def increment_counter(name: str, labels: dict[str, str] = None, value: float = 1.0) -> None:
    """Increment a counter metric."""
    if not settings.enable_metrics:
        return

    key = name
    if labels:
        key += "{" + ",".join(f"{k}={v}" for k, v in labels.items()) + "}"

    _metrics[key]["count"] += value


def record_histogram(name: str, value: float, labels: dict[str, str] = None) -> None:
    """Record a histogram measurement."""
    if not settings.enable_metrics:
        return

    key = name
    if labels:
        key += "{" + ",".join(f"{k}={v}" for k, v in labels.items()) + "}"

    metrics = _metrics[key]
    metrics["count"] += 1
    metrics["sum"] += value
    metrics["values"].append(value)

    # Simple buckets for basic histogram visualization
    if value < 0.1:
        metrics["buckets"]["<0.1"] += 1
    elif value < 1:
        metrics["buckets"]["0.1-1.0"] += 1
    elif value < 10:
        metrics["buckets"]["1.0-10.0"] += 1
    elif value < 100:
        metrics["buckets"]["10.0-100.0"] += 1
    elif value < 1000:
        metrics["buckets"]["100.0-1000.0"] += 1
    else:
        metrics["buckets"][">=1000.0"] += 1


def observe_duration(start_time: float, name: str, labels: dict[str, str] = None) -> None:
    """Observe a duration measurement."""
    duration_ms = (time.time() - start_time) * 1000
    record_histogram(name, duration_ms, labels)


def get_metrics() -> dict[str, Any]:
    """Get current metrics snapshot."""
    if not settings.enable_metrics:
        return {"note": "metrics disabled"}

    # Calculate basic statistics for histograms
    result = {}
    for key, data in _metrics.items():
        metric_result = {"count": data["count"], "sum": data["sum"]}

        if data["values"]:
            values = data["values"]
            metric_result.update(
                {
                    "min": min(values),
                    "max": max(values),
                    "avg": data["sum"] / len(values),
                    "buckets": dict(data["buckets"]),
                }
            )

        result[key] = metric_result

    return result


def reset_metrics() -> None:
    """Reset all metrics (useful for testing)."""
    global _metrics
    _metrics.clear()


# Format generation metrics
def increment_formats_generated(format_key: str) -> None:
    increment_counter("formats_generated_total", labels={"format": format_key})


def increment_generation_failures(reason: str) -> None:
    increment_counter("format_generation_failures_total", labels={"reason": reason})


def record_generation_duration(duration_ms: float) -> None:
    record_histogram("generation_duration_ms", duration_ms)


# Company header policy metrics
def increment_company_validation_failure(reason: str) -> None:
    increment_counter("company_validation_failures_total", labels={"reason": reason})
