import os
import sys

import pytest

# Make the top-level packages importable when running from a checkout
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from config.settings import ServiceConfig
from services.notion_client import NotionAPIError


def make_page(page_id, title, prop="Name"):
    """Notion page object with a single title property."""
    return {
        "object": "page",
        "id": page_id,
        "properties": {prop: {"type": "title", "title": [{"plain_text": title}]}},
    }


def make_paragraph(text):
    return {"type": "paragraph", "paragraph": {"rich_text": [{"plain_text": text}]}}


class FakeNotionClient:
    """In-memory stand-in for NotionClient."""

    def __init__(self):
        self.databases = {}
        self.blocks = {}
        self.failing_databases = set()
        self.failing_pages = set()
        self.queries = []
        self.closed = False

    def add_page(self, database_id, page_id, title, *paragraphs, prop="Name"):
        self.databases.setdefault(database_id, []).append(make_page(page_id, title, prop))
        self.blocks[page_id] = [make_paragraph(text) for text in paragraphs]

    async def query_database(self, database_id, filter=None, page_size=None, start_cursor=None):
        self.queries.append({
            "database_id": database_id,
            "filter": filter,
            "page_size": page_size,
            "start_cursor": start_cursor,
        })
        if database_id in self.failing_databases:
            raise NotionAPIError(503, "service_unavailable", "Notion is down")

        pages = list(self.databases.get(database_id, []))
        if filter is not None:
            needle = filter["or"][0]["title"]["contains"]
            pages = [page for page in pages if needle in page["properties"]["Name"]["title"][0]["plain_text"]]

        start = int(start_cursor or 0)
        size = page_size or 100
        has_more = start + size < len(pages)
        return {
            "object": "list",
            "results": pages[start:start + size],
            "has_more": has_more,
            "next_cursor": str(start + size) if has_more else None,
        }

    async def list_block_children(self, block_id, page_size=100):
        if block_id in self.failing_pages:
            raise NotionAPIError(404, "object_not_found", "Could not find block")
        return self.blocks.get(block_id, [])[:page_size]

    async def close(self):
        self.closed = True


@pytest.fixture
def service_config():
    return ServiceConfig(
        notion_api_key="secret_test",
        faq_database_id="faq-db",
        templates_database_id="template-db",
        knowledge_database_id="knowledge-db",
    )


@pytest.fixture
def fake_notion():
    return FakeNotionClient()
