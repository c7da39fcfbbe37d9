"""Minimal asynchronous client for the Notion REST API.

Only the two calls the content service needs are implemented: querying a
database and listing the child blocks of a page.
"""

import logging
from typing import Any, Dict, List, Optional

import aiohttp

logger = logging.getLogger(__name__)

NOTION_API_URL = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"


class NotionAPIError(Exception):
    """Raised when Notion answers with a non-2xx status."""

    def __init__(self, status: int, code: str = "unknown", message: str = ""):
        self.status = status
        self.code = code
        self.message = message
        super().__init__(f"Notion API error {status} ({code}): {message}")


class NotionClient:
    """Asynchronous Notion client backed by a shared aiohttp session."""

    def __init__(self,
                 auth: str,
                 request_timeout: float = 30.0,
                 base_url: str = NOTION_API_URL,
                 notion_version: str = NOTION_VERSION):
        """Initialize client.

        Args:
            auth: Integration token sent as a bearer token
            request_timeout: Total timeout for a single request (seconds)
            base_url: API root, overridable for tests
            notion_version: Value of the ``Notion-Version`` header
        """
        self.auth = auth
        self.request_timeout = request_timeout
        self.base_url = base_url.rstrip("/")
        self.notion_version = notion_version
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            timeout = aiohttp.ClientTimeout(total=self.request_timeout)
            self.session = aiohttp.ClientSession(
                timeout=timeout,
                headers={
                    "Authorization": f"Bearer {self.auth}",
                    "Notion-Version": self.notion_version,
                    "Content-Type": "application/json",
                }
            )
        return self.session

    async def close(self):
        """Close the HTTP session."""
        if self.session:
            await self.session.close()
            self.session = None

    async def _request(self,
                       method: str,
                       path: str,
                       params: Optional[Dict[str, Any]] = None,
                       json_body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        session = await self._ensure_session()
        url = f"{self.base_url}{path}"

        async with session.request(method, url, params=params, json=json_body) as response:
            payload = await response.json(content_type=None)
            if response.status >= 400:
                payload = payload if isinstance(payload, dict) else {}
                raise NotionAPIError(
                    response.status,
                    payload.get("code", "unknown"),
                    payload.get("message", response.reason or "")
                )
            return payload

    async def query_database(self,
                             database_id: str,
                             filter: Optional[Dict[str, Any]] = None,
                             page_size: Optional[int] = None,
                             start_cursor: Optional[str] = None) -> Dict[str, Any]:
        """Query a database; returns the raw Notion list response."""
        body: Dict[str, Any] = {}
        if filter is not None:
            body["filter"] = filter
        if page_size is not None:
            body["page_size"] = page_size
        if start_cursor is not None:
            body["start_cursor"] = start_cursor

        logger.debug(f"Querying Notion database {database_id} (page_size={page_size})")
        return await self._request("POST", f"/databases/{database_id}/query", json_body=body)

    async def list_block_children(self, block_id: str, page_size: int = 100) -> List[Dict[str, Any]]:
        """Return the first ``page_size`` child blocks of a page or block."""
        response = await self._request(
            "GET",
            f"/blocks/{block_id}/children",
            params={"page_size": page_size}
        )
        return response.get("results", [])
