"""Security package for the concept API."""

from .cors import (
    setup_cors,
    get_allowed_origins,
    get_cors_config
)

__all__ = [
    "setup_cors",
    "get_allowed_origins",
    "get_cors_config"
]
