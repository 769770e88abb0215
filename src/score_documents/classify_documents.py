"""Document classification by source type, title and issuing source."""

from ingest_items.models import ContentItem
from score_documents.models import DocumentClass
from score_documents.scoring_config import CLASS_MULTIPLIERS

# Federal Register document type -> class
SOURCE_TYPE_CLASSES: dict[str, DocumentClass] = {
    "Presidential Document": DocumentClass.EXECUTIVE_ORDER,
    "Rule": DocumentClass.FINAL_RULE,
    "Proposed Rule": DocumentClass.PROPOSED_RULE,
    "Notice": DocumentClass.NOTICE,
}

TITLE_CLASS_PATTERNS: list[tuple[str, DocumentClass]] = [
    ("executive order", DocumentClass.EXECUTIVE_ORDER),
    ("presidential memorandum", DocumentClass.PRESIDENTIAL_MEMORANDUM),
]

# Matched against agency or url, first hit wins
SOURCE_CLASS_PATTERNS: list[tuple[str, DocumentClass]] = [
    ("supreme court", DocumentClass.COURT_OPINION),
    ("scotus", DocumentClass.COURT_OPINION),
    ("gao", DocumentClass.REPORT),
    ("government accountability", DocumentClass.REPORT),
    ("inspector general", DocumentClass.REPORT),
    ("cbo", DocumentClass.REPORT),
    ("congressional research", DocumentClass.REPORT),
    ("department of defense", DocumentClass.PRESS_RELEASE),
    ("dod", DocumentClass.PRESS_RELEASE),
    ("white house", DocumentClass.PRESS_RELEASE),
]


def classify_document(item: ContentItem) -> DocumentClass:
    """Assign a document class: source type code, then title, then agency/url."""
    if item.type and item.type in SOURCE_TYPE_CLASSES:
        return SOURCE_TYPE_CLASSES[item.type]

    title = (item.title or "").lower()
    for pattern, document_class in TITLE_CLASS_PATTERNS:
        if pattern in title:
            return document_class

    agency = (item.agency or "").lower()
    url = (item.url or "").lower()
    for pattern, document_class in SOURCE_CLASS_PATTERNS:
        if pattern in agency or pattern in url:
            return document_class

    return DocumentClass.UNKNOWN


def class_multiplier(document_class: DocumentClass) -> float:
    return CLASS_MULTIPLIERS.get(document_class, 1.0)
