"""Prometheus metrics integration for the Whisper Tree concept API."""

from prometheus_client import Counter, Histogram, Gauge, Info, generate_latest
from prometheus_client.core import CollectorRegistry
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
import re
import time
from typing import Optional, Dict, Any
import logging
import os

logger = logging.getLogger(__name__)

# Custom registry so tests and multiple app instances do not collide with the default one
whisper_tree_registry = CollectorRegistry()

# Request metrics
request_count = Counter(
    'whisper_tree_http_requests_total',
    'Total number of HTTP requests',
    ['method', 'endpoint', 'status_code'],
    registry=whisper_tree_registry
)

request_duration = Histogram(
    'whisper_tree_http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
    registry=whisper_tree_registry
)

# Search metrics
search_requests = Counter(
    'whisper_tree_search_requests_total',
    'Total number of Notion searches',
    ['status'],
    registry=whisper_tree_registry
)

search_duration = Histogram(
    'whisper_tree_search_duration_seconds',
    'Notion search duration in seconds',
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
    registry=whisper_tree_registry
)

search_results_count = Histogram(
    'whisper_tree_search_results_count',
    'Number of search results returned',
    buckets=[0, 1, 5, 10, 20, 30],
    registry=whisper_tree_registry
)

collection_errors = Counter(
    'whisper_tree_collection_errors_total',
    'Notion collection queries that failed and were degraded to empty results',
    ['collection'],
    registry=whisper_tree_registry
)

# FAQ cache metrics
cache_refreshes = Counter(
    'whisper_tree_faq_cache_refreshes_total',
    'FAQ snapshot refresh attempts',
    ['status'],
    registry=whisper_tree_registry
)

cache_size = Gauge(
    'whisper_tree_faq_cache_size',
    'Number of FAQ documents in the current snapshot',
    registry=whisper_tree_registry
)

# Concept metrics
concepts_generated = Counter(
    'whisper_tree_concepts_generated_total',
    'Composed concept replies',
    ['match'],
    registry=whisper_tree_registry
)

# Application info
app_info = Info(
    'whisper_tree_app_info',
    'Whisper Tree application information',
    registry=whisper_tree_registry
)

# Error metrics
error_count = Counter(
    'whisper_tree_errors_total',
    'Total number of errors',
    ['error_type', 'component'],
    registry=whisper_tree_registry
)


class PrometheusMiddleware:
    """Middleware to collect Prometheus metrics for HTTP requests."""

    def __init__(self, app: FastAPI):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        method = request.method
        endpoint = self._normalize_endpoint(request.url.path)

        start_time = time.time()
        status_code = 500  # Default to error

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as e:
            logger.error(f"Request processing error: {e}")
            error_count.labels(error_type=type(e).__name__, component="http").inc()
            raise
        finally:
            duration = time.time() - start_time

            request_count.labels(
                method=method,
                endpoint=endpoint,
                status_code=str(status_code)
            ).inc()

            request_duration.labels(
                method=method,
                endpoint=endpoint
            ).observe(duration)

    def _normalize_endpoint(self, path: str) -> str:
        """Normalize endpoint path to reduce cardinality."""
        path = re.sub(r'/[0-9a-f]{8}-?[0-9a-f]{4}-?[0-9a-f]{4}-?[0-9a-f]{4}-?[0-9a-f]{12}', '/{id}', path)
        path = re.sub(r'/\d+', '/{id}', path)
        return path


def setup_prometheus_metrics(app: FastAPI, version: str = "unknown") -> None:
    """Setup Prometheus metrics collection for FastAPI app."""
    app.add_middleware(PrometheusMiddleware)

    @app.get("/metrics", response_class=PlainTextResponse)
    async def metrics_endpoint():
        """Prometheus metrics endpoint."""
        return generate_latest(whisper_tree_registry)

    app_info.info({
        'version': version,
        'environment': os.getenv('ENVIRONMENT', 'development'),
    })

    logger.info("Prometheus metrics configured")


def record_search_metrics(duration: float, result_count: int, error: Optional[str] = None) -> None:
    """Record search-related metrics."""
    status = "error" if error else "success"

    search_requests.labels(status=status).inc()
    search_duration.observe(duration)

    if error:
        error_count.labels(error_type="search_error", component="search").inc()
    else:
        search_results_count.observe(result_count)


def record_collection_error(collection: str) -> None:
    collection_errors.labels(collection=collection).inc()


def record_cache_refresh(size: Optional[int], error: Optional[str] = None) -> None:
    """Record the outcome of a FAQ snapshot refresh."""
    if error:
        cache_refreshes.labels(status="error").inc()
        error_count.labels(error_type="refresh_error", component="cache").inc()
        return

    cache_refreshes.labels(status="success").inc()
    if size is not None:
        cache_size.set(size)


def record_concept(matched: bool) -> None:
    concepts_generated.labels(match="keyword" if matched else "fallback").inc()


def get_metrics_summary() -> Dict[str, Any]:
    """Get a summary of current metrics."""
    try:
        return {
            "search_requests_total": sum(
                search_requests.labels(status=s)._value.get() for s in ("success", "error")
            ),
            "cache_refreshes_total": sum(
                cache_refreshes.labels(status=s)._value.get() for s in ("success", "error")
            ),
            "faq_cache_size": cache_size._value.get(),
        }
    except Exception as e:
        logger.error(f"Error getting metrics summary: {e}")
        return {}
