"""CORS (Cross-Origin Resource Sharing) configuration for the concept API."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import os
from typing import List
import logging

logger = logging.getLogger(__name__)


def get_allowed_origins(frontend_url: str) -> List[str]:
    """The chat front-end origin plus any extra comma-separated ALLOWED_ORIGINS."""
    origins = [frontend_url.rstrip("/")] if frontend_url else []

    env_origins = os.getenv("ALLOWED_ORIGINS", "")
    for origin in env_origins.split(","):
        origin = origin.strip().rstrip("/")
        if origin and origin not in origins:
            origins.append(origin)

    return origins


def get_cors_config(frontend_url: str) -> dict:
    """Get CORS configuration based on environment."""
    is_production = os.getenv("ENVIRONMENT", "development") == "production"

    return {
        "allow_origins": get_allowed_origins(frontend_url),
        "allow_credentials": True,
        "allow_methods": ["GET", "POST", "OPTIONS"],
        "allow_headers": [
            "Accept",
            "Accept-Language",
            "Content-Language",
            "Content-Type",
            "X-Requested-With"
        ],
        "max_age": 86400 if is_production else 600  # 24 hours in prod, 10 minutes in dev
    }


def setup_cors(app: FastAPI, frontend_url: str) -> None:
    """Setup CORS middleware for FastAPI application."""
    config = get_cors_config(frontend_url)

    app.add_middleware(
        CORSMiddleware,
        **config
    )

    logger.info(f"CORS enabled for: {', '.join(config['allow_origins'])}")
