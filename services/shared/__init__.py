"""Shared models used across services."""

from .models import Document, DocumentKind, ScoredDocument, UNTITLED

__all__ = ["Document", "DocumentKind", "ScoredDocument", "UNTITLED"]
