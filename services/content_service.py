"""Notion content access with an in-memory FAQ snapshot.

The FAQ collection is held as an immutable tuple that a background task
replaces wholesale every ``refresh_interval`` seconds. Readers always get
either the previous or the new snapshot, never a partially built one, and a
failed refresh leaves the previous snapshot in place.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Tuple

from config.settings import ServiceConfig
from observability.prometheus_metrics import (
    record_cache_refresh,
    record_collection_error,
    record_search_metrics,
)
from .extraction import calculate_relevance, extract_title, join_blocks
from .notion_client import NotionClient
from .shared.models import Document, DocumentKind

logger = logging.getLogger(__name__)

SEARCH_PAGE_SIZE = 10
BLOCK_PAGE_SIZE = 100


class ContentService:
    """Search, FAQ snapshot and template access over three Notion databases."""

    def __init__(self, config: ServiceConfig, client: Optional[NotionClient] = None):
        self.config = config
        self.client = client or NotionClient(
            auth=config.notion_api_key,
            request_timeout=config.notion_timeout
        )
        self.database_ids: Dict[DocumentKind, str] = {
            DocumentKind(kind): database_id for kind, database_id in config.database_ids.items()
        }

        self.cache_duration = config.cache_duration
        self.refresh_interval = config.refresh_interval

        self._faq_cache: Optional[Tuple[Document, ...]] = None
        self._faq_cache_expiry: float = 0.0
        self._populate_lock = asyncio.Lock()
        self._refresh_task: Optional[asyncio.Task] = None

    # Lifecycle

    async def start(self) -> None:
        """Warm the FAQ cache once, then start the background refresh."""
        logger.info("Warming up Notion cache...")
        await self.refresh_cache()
        logger.info(f"Cache warmed up with {len(self._faq_cache or ())} FAQs")
        self.start_auto_refresh()

    def start_auto_refresh(self) -> None:
        """Start the periodic refresh task, replacing any running one."""
        self.stop_auto_refresh()

        async def refresh_loop():
            while True:
                await asyncio.sleep(self.refresh_interval)
                logger.info("Auto-refreshing Notion cache...")
                await self.refresh_cache()
                logger.info(f"Cache refreshed with {len(self._faq_cache or ())} FAQs")

        self._refresh_task = asyncio.get_running_loop().create_task(refresh_loop())
        logger.info(f"Auto-refresh enabled (every {self.refresh_interval:g}s)")

    def stop_auto_refresh(self) -> None:
        """Cancel the refresh task. Safe to call any number of times."""
        if self._refresh_task is not None:
            self._refresh_task.cancel()
            self._refresh_task = None
            logger.info("Auto-refresh stopped")

    @property
    def auto_refresh_running(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    async def close(self) -> None:
        """Stop refreshing and release the Notion HTTP session."""
        self.stop_auto_refresh()
        await self.client.close()

    async def refresh_cache(self) -> None:
        """Re-fetch the FAQ snapshot; on any error keep the current one."""
        try:
            await self._fetch_all_faqs()
        except Exception as e:
            logger.error(f"Error refreshing cache: {e}")
            record_cache_refresh(None, error=str(e))
        else:
            record_cache_refresh(len(self._faq_cache or ()))

    def cache_status(self) -> Dict[str, Any]:
        """Describe the current snapshot for health reporting."""
        populated = self._faq_cache is not None
        return {
            "populated": populated,
            "size": len(self._faq_cache or ()),
            "expires_at": self._faq_cache_expiry if populated else None,
            "stale": (not populated) or time.time() > self._faq_cache_expiry,
            "auto_refresh": self.auto_refresh_running,
        }

    # Search

    async def search_content(self, query: str) -> List[Document]:
        """Search the three collections concurrently and rank the merged hits."""
        start_time = time.time()
        try:
            faq_results, template_results, knowledge_results = await asyncio.gather(
                self.search_database(DocumentKind.FAQ, query),
                self.search_database(DocumentKind.TEMPLATE, query),
                self.search_database(DocumentKind.KNOWLEDGE, query),
            )
        except Exception as e:
            logger.error(f"Error searching Notion content: {e}")
            record_search_metrics(time.time() - start_time, 0, error=str(e))
            raise

        results = [*faq_results, *template_results, *knowledge_results]
        # sorted() is stable, so equal scores keep collection order
        results = sorted(results, key=lambda doc: doc.relevance_score or 0, reverse=True)

        record_search_metrics(time.time() - start_time, len(results))
        return results

    async def search_database(self, kind: DocumentKind, query: str) -> List[Document]:
        """Title-contains search in one collection.

        An unconfigured collection or a Notion failure yields an empty list.
        """
        database_id = self.database_ids.get(kind)
        if not database_id:
            logger.warning(f"Database ID not configured for type: {kind.value}")
            return []

        try:
            response = await self.client.query_database(
                database_id,
                filter={
                    "or": [
                        {"property": "Name", "title": {"contains": query}},
                    ]
                },
                page_size=SEARCH_PAGE_SIZE
            )
            documents = await self._pages_to_documents(response.get("results", []), kind)
        except Exception as e:
            logger.error(f"Error searching {kind.value} database: {e}")
            record_collection_error(kind.value)
            return []

        return [
            doc.model_copy(update={"relevance_score": calculate_relevance(query, doc.title, doc.body)})
            for doc in documents
        ]

    # FAQs and templates

    async def get_all_faqs(self) -> List[Document]:
        """Return the FAQ snapshot, populating it first if it never was."""
        snapshot = self._faq_cache
        if snapshot is not None:
            return list(snapshot)

        async with self._populate_lock:
            if self._faq_cache is None:
                try:
                    await self._fetch_all_faqs()
                except Exception as e:
                    logger.error(f"Error fetching FAQs: {e}")
                    # A refresh may have landed while this fetch was failing
                    if self._faq_cache is None:
                        self._faq_cache = ()
        return list(self._faq_cache or ())

    async def get_random_template(self) -> Optional[Document]:
        """Return the first template Notion hands back, if any.

        Not a uniform sample: this is whatever an unfiltered single-page query
        returns first.
        """
        database_id = self.database_ids.get(DocumentKind.TEMPLATE)
        if not database_id:
            return None

        try:
            response = await self.client.query_database(database_id, page_size=1)
            documents = await self._pages_to_documents(response.get("results", [])[:1], DocumentKind.TEMPLATE)
        except Exception as e:
            logger.error(f"Error getting random template: {e}")
            return None

        return documents[0] if documents else None

    async def _fetch_all_faqs(self) -> None:
        """Fetch every FAQ page and swap in a new snapshot. Raises on Notion errors."""
        database_id = self.database_ids.get(DocumentKind.FAQ)
        if not database_id:
            self._faq_cache = ()
            self._faq_cache_expiry = time.time() + self.cache_duration
            return

        pages: List[Dict[str, Any]] = []
        start_cursor: Optional[str] = None
        while True:
            response = await self.client.query_database(database_id, start_cursor=start_cursor)
            pages.extend(response.get("results", []))
            start_cursor = response.get("next_cursor")
            if not response.get("has_more") or not start_cursor:
                break

        documents = await self._pages_to_documents(pages, DocumentKind.FAQ)

        self._faq_cache = tuple(documents)
        self._faq_cache_expiry = time.time() + self.cache_duration

    # Page helpers

    async def _pages_to_documents(self, pages: List[Dict[str, Any]], kind: DocumentKind) -> List[Document]:
        pages = [page for page in pages if "properties" in page]
        bodies = await asyncio.gather(*(self._extract_page_content(page["id"]) for page in pages))
        return [
            Document(kind=kind, title=extract_title(page["properties"]), body=body)
            for page, body in zip(pages, bodies)
        ]

    async def _extract_page_content(self, page_id: str) -> str:
        """Plain text of a page's blocks; empty when they cannot be read."""
        try:
            blocks = await self.client.list_block_children(page_id, page_size=BLOCK_PAGE_SIZE)
        except Exception as e:
            logger.error(f"Error extracting page content: {e}")
            return ""
        return join_blocks(blocks)
