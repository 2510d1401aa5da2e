"""Telemetry helpers and metrics."""

from .metrics import (
    ERROR_COUNTER,
    PIPELINE_DURATION,
    PIPELINE_RUNS,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    WORKSPACE_CLEANUP_FAILURES,
    increment_cleanup_failure,
    observe_pipeline,
    observe_request,
)

__all__ = [
    "ERROR_COUNTER",
    "PIPELINE_DURATION",
    "PIPELINE_RUNS",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "WORKSPACE_CLEANUP_FAILURES",
    "increment_cleanup_failure",
    "observe_pipeline",
    "observe_request",
]
