"""Configuration module for the Whisper Tree concept API.

Provides environment-sourced settings for Notion access, the FAQ cache and the HTTP server.
"""

from .settings import (
    ServiceConfig,
    SERVICE_NAME,
    SERVICE_VERSION,
    get_config
)

__all__ = [
    'ServiceConfig',
    'SERVICE_NAME',
    'SERVICE_VERSION',
    'get_config'
]
