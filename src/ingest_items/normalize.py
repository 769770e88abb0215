"""Normalize heterogeneous upstream payloads into ContentItem records."""

import logging
import re
from typing import Any, Iterable, Optional

from common.dates import parse_datetime
from common.utils import first_present, get_value
from ingest_items.models import ContentItem

logger = logging.getLogger(__name__)


def clean_text(text: Optional[str]) -> Optional[str]:
    """Clean text by stripping HTML, fixing escapes, and collapsing whitespace."""
    if not text:
        return None
    # Strip HTML tags (keep text content)
    text = re.sub(r"<[^>]+>", " ", text)
    # Remove escaped quotes
    text = text.replace('\\"', '"')
    # Collapse whitespace
    text = re.sub(r"\s+", " ", text).strip()
    return text if text else None


def _text_value(value: Any) -> Optional[str]:
    """Plain string from a value that may be a string or a {"_": text} node."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return _text_value(value.get("_") or value.get("text"))
    return str(value)


def _link_value(value: Any) -> Optional[str]:
    """URL from a string, a {"href": ...} node, or a list of either."""
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, dict):
        return _link_value(value.get("href") or value.get("_"))
    if isinstance(value, (list, tuple)):
        for entry in value:
            link = _link_value(entry)
            if link:
                return link
    return None


def _agency_value(value: Any) -> Optional[str]:
    """Agency name from a string or a list of agency names/objects."""
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, dict):
        return _agency_value(value.get("name") or value.get("raw_name"))
    if isinstance(value, (list, tuple)):
        names = [name for name in (_agency_value(v) for v in value) if name]
        return ", ".join(names) or None
    return str(value)


def normalize_item(raw: Any) -> ContentItem:
    """Normalize one raw payload (dict or object) into a ContentItem.

    Unparseable dates are logged and dropped rather than failing the item.
    """
    title = clean_text(_text_value(get_value(raw, "title"))) or ""
    url = _link_value(first_present(raw, "url", "link", "html_url", "id")) or ""

    raw_date = first_present(raw, "published_at", "pubDate", "publication_date", "published", "date", "updated")
    try:
        published_at = parse_datetime(raw_date)
    except (TypeError, ValueError):
        logger.warning("Unparseable date %r for item: %s", raw_date, url or title)
        published_at = None

    return ContentItem(
        title=title,
        url=url,
        summary=clean_text(_text_value(first_present(raw, "summary", "description", "abstract"))) or "",
        published_at=published_at,
        agency=_agency_value(first_present(raw, "agency", "agencies")),
        type=_text_value(get_value(raw, "type")),
        note=_text_value(get_value(raw, "note")),
        is_error=bool(first_present(raw, "is_error", "isError")),
        is_warning=bool(first_present(raw, "is_warning", "isWarning")),
    )


def normalize_items(raw_items: Iterable[Any]) -> list[ContentItem]:
    """Normalize a batch of raw payloads, dropping items with neither title nor url."""
    results = []
    for raw in raw_items or []:
        item = normalize_item(raw)
        if not item.title and not item.url:
            logger.warning("Skipping item with no title or url")
            continue
        results.append(item)
    logger.info("Normalized %d items", len(results))
    return results
