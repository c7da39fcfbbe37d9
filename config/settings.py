"""Service configuration for the Whisper Tree concept API.

Everything is sourced from environment variables. A blank Notion database id
switches that collection off instead of failing startup.
"""

import os
import logging
from typing import Dict, Optional
from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)

SERVICE_NAME = "whisper-tree-notion-api"
SERVICE_VERSION = "0.2.0"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class ServiceConfig(BaseModel):
    """Runtime configuration."""
    service_name: str = Field(default=SERVICE_NAME, description="Service name reported by /health")

    # Notion
    notion_api_key: str = Field(default="", description="Notion integration token")
    faq_database_id: str = Field(default="", description="FAQ database id")
    templates_database_id: str = Field(default="", description="Templates database id")
    knowledge_database_id: str = Field(default="", description="Knowledge database id")
    notion_timeout: float = Field(default=30.0, gt=0, description="Notion request timeout in seconds")

    # FAQ cache
    cache_duration: float = Field(default=300.0, gt=0, description="Snapshot freshness window in seconds")
    refresh_interval: float = Field(default=240.0, gt=0, description="Background refresh period in seconds")

    # HTTP
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=3001, description="HTTP port")
    frontend_url: str = Field(default="http://localhost:8080", description="Origin allowed by CORS")

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_json: bool = Field(default=False, description="Emit JSON log lines on the console")
    log_file: Optional[str] = Field(default=None, description="Optional JSON log file")
    environment: str = Field(default="development", description="Deployment environment")

    @model_validator(mode="after")
    def _refresh_before_expiry(self) -> "ServiceConfig":
        if self.refresh_interval >= self.cache_duration:
            raise ValueError(
                f"refresh_interval ({self.refresh_interval}s) must be shorter than "
                f"cache_duration ({self.cache_duration}s)"
            )
        return self

    @property
    def database_ids(self) -> Dict[str, str]:
        return {
            "faq": self.faq_database_id,
            "template": self.templates_database_id,
            "knowledge": self.knowledge_database_id,
        }

    @property
    def notion_configured(self) -> bool:
        return bool(self.notion_api_key)

    @classmethod
    def from_env(cls) -> 'ServiceConfig':
        """Create configuration from environment variables."""
        return cls(
            notion_api_key=os.getenv('NOTION_API_KEY', ''),
            faq_database_id=os.getenv('NOTION_DATABASE_FAQ_ID', ''),
            templates_database_id=os.getenv('NOTION_DATABASE_TEMPLATES_ID', ''),
            knowledge_database_id=os.getenv('NOTION_DATABASE_KNOWLEDGE_ID', ''),
            notion_timeout=float(os.getenv('NOTION_TIMEOUT_SECONDS', '30')),
            cache_duration=float(os.getenv('CACHE_DURATION_SECONDS', '300')),
            refresh_interval=float(os.getenv('CACHE_REFRESH_INTERVAL_SECONDS', '240')),
            host=os.getenv('HOST', '0.0.0.0'),
            port=int(os.getenv('PORT', '3001')),
            frontend_url=os.getenv('FRONTEND_URL', 'http://localhost:8080'),
            log_level=os.getenv('LOG_LEVEL', 'INFO'),
            log_json=_env_bool('LOG_JSON'),
            log_file=os.getenv('LOG_FILE') or None,
            environment=os.getenv('ENVIRONMENT', 'development'),
        )


_config: Optional[ServiceConfig] = None


def get_config() -> ServiceConfig:
    """Get the process-wide configuration, loading it from the environment once."""
    global _config
    if _config is None:
        _config = ServiceConfig.from_env()
        logger.debug("Configuration loaded from environment")
    return _config
