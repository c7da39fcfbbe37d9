"""Observability package for the Whisper Tree concept API."""

from .logging import setup_logging, JSONFormatter, ColoredFormatter
from .prometheus_metrics import (
    setup_prometheus_metrics,
    record_search_metrics,
    record_collection_error,
    record_cache_refresh,
    record_concept,
    get_metrics_summary,
    PrometheusMiddleware,
    whisper_tree_registry
)

__all__ = [
    'setup_logging',
    'JSONFormatter',
    'ColoredFormatter',
    'setup_prometheus_metrics',
    'record_search_metrics',
    'record_collection_error',
    'record_cache_refresh',
    'record_concept',
    'get_metrics_summary',
    'PrometheusMiddleware',
    'whisper_tree_registry'
]
