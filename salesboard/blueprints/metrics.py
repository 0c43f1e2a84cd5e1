"""
Prometheus metrics for the dashboard and the text-to-SQL pipeline.

GET /metrics exposes:
- salesboard_http_requests_total / salesboard_http_request_seconds per endpoint
- salesboard_text_to_sql_streams_total by terminal event (complete / error)
- salesboard_text_to_sql_stage_seconds per pipeline stage
- salesboard_upstream_errors_total per external service (supabase / openai)
- salesboard_dashboard_cache_total hits and misses

Scrape it from the monitoring network only.
"""
from contextlib import contextmanager
from flask import Blueprint, Response, request, g
from prometheus_client import Counter, Histogram, generate_latest, CollectorRegistry, CONTENT_TYPE_LATEST
from prometheus_client import multiprocess, REGISTRY
import time
import os

metrics_bp = Blueprint('metrics', __name__)

# Gunicorn workers write to PROMETHEUS_MULTIPROC_DIR and are merged at scrape time
MULTIPROCESS_MODE = os.environ.get('PROMETHEUS_MULTIPROC_DIR') is not None

if MULTIPROCESS_MODE:
    registry = CollectorRegistry()
    multiprocess.MultiProcessCollector(registry)
    _metric_registry = None
else:
    registry = REGISTRY
    _metric_registry = REGISTRY

UNTRACKED_ENDPOINTS = {'metrics.metrics', 'static'}

http_requests = Counter(
    'salesboard_http_requests_total',
    'HTTP requests by endpoint and status',
    ['method', 'endpoint', 'status'],
    registry=_metric_registry
)

http_request_seconds = Histogram(
    'salesboard_http_request_seconds',
    'Time to produce a response (streams are measured until headers are sent)',
    ['method', 'endpoint'],
    registry=_metric_registry,
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
)

text_to_sql_streams = Counter(
    'salesboard_text_to_sql_streams_total',
    'Text-to-SQL event streams by terminal event',
    ['outcome'],
    registry=_metric_registry
)

text_to_sql_stage_seconds = Histogram(
    'salesboard_text_to_sql_stage_seconds',
    'Duration of each text-to-SQL stage',
    ['stage'],
    registry=_metric_registry,
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 40.0)
)

upstream_errors = Counter(
    'salesboard_upstream_errors_total',
    'Failed calls to external services',
    ['service'],
    registry=_metric_registry
)

dashboard_cache = Counter(
    'salesboard_dashboard_cache_total',
    'Dashboard aggregate lookups by cache result',
    ['result'],
    registry=_metric_registry
)


def record_text_to_sql_outcome(outcome: str) -> None:
    text_to_sql_streams.labels(outcome=outcome).inc()


def record_upstream_error(service: str) -> None:
    upstream_errors.labels(service=service or 'unknown').inc()


def record_dashboard_cache(hit: bool) -> None:
    dashboard_cache.labels(result='hit' if hit else 'miss').inc()


@contextmanager
def time_stage(stage: str):
    """Observe the duration of one text-to-SQL stage, failed attempts included."""
    started = time.perf_counter()
    try:
        yield
    finally:
        text_to_sql_stage_seconds.labels(stage=stage).observe(time.perf_counter() - started)


def setup_metrics_instrumentation(app):
    """Time every request except the scrape endpoint itself."""

    @app.before_request
    def start_request_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def record_request(response):
        endpoint = request.endpoint or 'unknown'
        started = g.pop('request_started', None)
        if started is None or endpoint in UNTRACKED_ENDPOINTS:
            return response

        http_request_seconds.labels(method=request.method, endpoint=endpoint).observe(
            time.perf_counter() - started
        )
        http_requests.labels(method=request.method, endpoint=endpoint, status=response.status_code).inc()
        return response


@metrics_bp.route('/metrics')
def metrics():
    """Prometheus text exposition. Not authenticated."""
    return Response(generate_latest(registry), mimetype=CONTENT_TYPE_LATEST)
