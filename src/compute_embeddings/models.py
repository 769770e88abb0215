"""Data models for compute_embeddings pipeline stage."""

from dataclasses import dataclass
from typing import Optional

from ingest_items.models import ContentItem


@dataclass
class EmbeddedItem:
    """Item with its embedded text and vector (None when unavailable)."""
    item: ContentItem
    embedded_text: str
    embedding: Optional[list[float]]
    embedding_model: str
