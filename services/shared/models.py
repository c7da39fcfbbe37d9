"""Shared document models for Notion-backed content."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any
from pydantic import BaseModel, ConfigDict, Field

UNTITLED = "Untitled"


class DocumentKind(str, Enum):
    """Collection a document was read from."""
    FAQ = "faq"
    TEMPLATE = "template"
    KNOWLEDGE = "knowledge"


class Document(BaseModel):
    """One Notion page with its resolved title and plain-text body.

    Serialized with the wire names the chat front-end reads:
    ``type``, ``title``, ``content`` and ``relevance``.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True, use_enum_values=False)

    kind: DocumentKind = Field(alias="type")
    title: str = UNTITLED
    body: str = Field(default="", alias="content")
    relevance_score: Optional[int] = Field(default=None, alias="relevance")

    def to_dict(self) -> Dict[str, Any]:
        """Dump using wire names, leaving out an unset relevance."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def source(self) -> Dict[str, str]:
        """Short reference shown next to a composed concept."""
        return {"type": self.kind.value, "title": self.title}


@dataclass(frozen=True)
class ScoredDocument:
    """A document ranked against user keywords during concept composition."""
    document: Document
    score: int
