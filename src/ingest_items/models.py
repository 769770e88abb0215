"""Data models for ingest_items pipeline stage."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class ContentItem:
    """Canonical government-action record handed to the scoring core."""
    title: str = ""
    url: str = ""
    summary: str = ""
    published_at: Optional[datetime] = None
    agency: Optional[str] = None
    type: Optional[str] = None
    note: Optional[str] = None
    is_error: bool = False
    is_warning: bool = False

    @property
    def is_valid(self) -> bool:
        """Items flagged as fetch errors or warnings carry no content."""
        return not (self.is_error or self.is_warning)

    @property
    def match_text(self) -> str:
        """Text searched for keywords: title and summary only."""
        return f"{self.title} {self.summary}".strip()
