"""Core document scoring logic."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Sequence

from sqlalchemy.exc import SQLAlchemyError

from common.dates import get_week_of
from common.db import document_scores, documents, get_session, is_db_available, upsert_row
from common.serialization import serialize_dataclass
from ingest_items.models import ContentItem
from keyword_rules.load_rules import get_rule_config
from keyword_rules.models import Category, RuleConfig
from score_documents.classify_documents import class_multiplier, classify_document
from score_documents.match_keywords import match_text
from score_documents.models import DocumentScore, Tier
from score_documents.scoring_config import compute_severity_score

logger = logging.getLogger(__name__)


def _category_key(category: Category | str) -> str:
    return category.value if isinstance(category, Category) else str(category)


def score_document(
    item: ContentItem,
    category: Category | str,
    rules: RuleConfig | None = None,
    scored_at: datetime | None = None,
) -> DocumentScore:
    """Score a single item against one category's keyword rules.

    Unknown categories produce a zero score rather than an error.
    """
    rules = rules or get_rule_config()
    scored_at = scored_at or datetime.now(timezone.utc)

    document_class = classify_document(item)
    multiplier = class_multiplier(document_class)

    matches, suppressed = match_text(
        item.match_text,
        rules.rules_for(category),
        rules.negation_patterns,
    )

    counts = {tier: sum(1 for m in matches if m.tier is tier) for tier in Tier}
    severity_score = compute_severity_score(counts[Tier.CAPTURE], counts[Tier.DRIFT], counts[Tier.WARNING])

    return DocumentScore(
        url=item.url or "",
        category=_category_key(category),
        severity_score=severity_score,
        final_score=severity_score * multiplier,
        capture_count=counts[Tier.CAPTURE],
        drift_count=counts[Tier.DRIFT],
        warning_count=counts[Tier.WARNING],
        suppressed_count=len(suppressed),
        document_class=document_class,
        class_multiplier=multiplier,
        is_high_authority=rules.is_high_authority(item.agency),
        matches=matches,
        suppressed=suppressed,
        scored_at=scored_at,
        week_of=get_week_of(item.published_at or scored_at),
        title=item.title or "(untitled)",
        published_at=item.published_at,
    )


def score_document_batch(
    items: Iterable[ContentItem],
    category: Category | str,
    rules: RuleConfig | None = None,
) -> list[DocumentScore]:
    """Score every valid item; error and warning placeholders are skipped."""
    rules = rules or get_rule_config()
    scored_at = datetime.now(timezone.utc)
    scores = [
        score_document(item, category, rules, scored_at)
        for item in items
        if item.is_valid
    ]
    logger.info("Scored %d documents for %s", len(scores), _category_key(category))
    return scores


def _score_row(score: DocumentScore) -> dict:
    return {
        "url": score.url,
        "category": score.category,
        "title": score.title,
        "severity_score": score.severity_score,
        "final_score": score.final_score,
        "capture_count": score.capture_count,
        "drift_count": score.drift_count,
        "warning_count": score.warning_count,
        "suppressed_count": score.suppressed_count,
        "document_class": score.document_class.value,
        "class_multiplier": score.class_multiplier,
        "is_high_authority": score.is_high_authority,
        "matches": [serialize_dataclass(m) for m in score.matches],
        "suppressed": [serialize_dataclass(s) for s in score.suppressed],
        "published_at": score.published_at,
        "scored_at": score.scored_at,
        "week_of": score.week_of.isoformat(),
    }


def store_document_scores(scores: Sequence[DocumentScore]) -> int:
    """Upsert document scores keyed by (url, category).

    Scores without a url are skipped. Returns the number stored; 0 without a
    database.
    """
    if not is_db_available():
        logger.warning("DATABASE_URL not set, skipping storage of %d document scores", len(scores))
        return 0

    valid_scores = [s for s in scores if s.url]
    if not valid_scores:
        return 0

    stored = 0
    with get_session() as session:
        for score in valid_scores:
            try:
                upsert_row(session, document_scores, ("url", "category"), _score_row(score))
                session.commit()
                stored += 1
            except SQLAlchemyError as e:
                session.rollback()
                logger.error("Failed to store score for %s: %s", score.url, e)

    logger.info("Stored %d of %d document scores", stored, len(valid_scores))
    return stored


def store_documents(
    items: Sequence[ContentItem],
    category: Category | str,
    embeddings: Sequence[list[float] | None] | None = None,
    embedding_model: str | None = None,
) -> int:
    """Upsert items for a category, with optional embedding vectors.

    A None embedding never overwrites a stored one.
    """
    if not is_db_available():
        logger.warning("DATABASE_URL not set, skipping storage of %d documents", len(items))
        return 0

    if embeddings is not None and len(embeddings) != len(items):
        raise ValueError(f"Got {len(embeddings)} embeddings for {len(items)} items")

    category_key = _category_key(category)
    stored = 0
    with get_session() as session:
        for index, item in enumerate(items):
            if not item.url or not item.is_valid:
                continue
            row = {
                "url": item.url,
                "category": category_key,
                "title": item.title,
                "summary": item.summary,
                "agency": item.agency,
                "published_at": item.published_at,
            }
            embedding = embeddings[index] if embeddings is not None else None
            if embedding is not None:
                row["embedding"] = list(embedding)
                row["embedding_model"] = embedding_model
            try:
                upsert_row(session, documents, ("url", "category"), row)
                session.commit()
                stored += 1
            except SQLAlchemyError as e:
                session.rollback()
                logger.error("Failed to store document %s: %s", item.url, e)

    logger.info("Stored %d documents for %s", stored, category_key)
    return stored
