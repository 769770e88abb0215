"""Optional embedding provider for semantic drift.

Embeddings are a side channel: if the model cannot be loaded or encoding
fails, every vector is None and the keyword pipeline carries on.
"""

import logging
import os
import re
from functools import lru_cache
from typing import Sequence

from dotenv import load_dotenv
from sentence_transformers import SentenceTransformer

from compute_embeddings.models import EmbeddedItem
from ingest_items.models import ContentItem
from keyword_rules.models import Category
from score_documents.score_documents import store_documents

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "all-MiniLM-L6-v2"
EMBEDDING_MODEL_ENV = "EMBEDDING_MODEL"


def get_model_name() -> str:
    return os.environ.get(EMBEDDING_MODEL_ENV, DEFAULT_MODEL)


def _split_sentences(text: str) -> list[str]:
    """Split text into sentences with a simple punctuation heuristic."""
    if not text:
        return []
    matches = re.findall(r"[^.!?]+[.!?]+|[^.!?]+$", text)
    return [m.strip() for m in matches if m.strip()]


def build_text_to_embed(item: ContentItem, word_limit: int | None = None) -> str:
    """Title and summary, truncated to whole sentences within word_limit."""
    combined = " ".join(part for part in (item.title, item.summary) if part)

    if word_limit:
        selected = []
        word_count = 0
        for sentence in _split_sentences(combined):
            words = sentence.split()
            if word_count + len(words) > word_limit:
                break
            selected.append(sentence)
            word_count += len(words)
        combined = " ".join(selected)

    return combined


@lru_cache(maxsize=4)
def _load_encoder(model: str) -> SentenceTransformer | None:
    logger.info("Loading model: %s", model)
    try:
        return SentenceTransformer(model)
    except (OSError, ValueError, RuntimeError) as e:
        logger.warning("Embedding model %s unavailable, semantic drift disabled: %s", model, e)
        return None


def embed_texts(texts: Sequence[str], model: str | None = None, batch_size: int = 32) -> list[list[float] | None]:
    """Encode texts; returns one None per text when embeddings are unavailable.

    Empty texts get a None vector.
    """
    if not texts:
        return []
    model = model or get_model_name()
    encoder = _load_encoder(model)
    if encoder is None:
        return [None] * len(texts)

    indexed = [(i, t) for i, t in enumerate(texts) if t and t.strip()]
    results: list[list[float] | None] = [None] * len(texts)
    if not indexed:
        return results

    logger.info("Computing embeddings for %d texts (batch_size=%d)", len(indexed), batch_size)
    try:
        vectors = encoder.encode(
            [t for _, t in indexed],
            batch_size=batch_size,
            show_progress_bar=False,
            convert_to_numpy=True,
        )
    except (RuntimeError, ValueError) as e:
        logger.warning("Embedding failed for %d texts: %s", len(indexed), e)
        return results

    for (index, _), vector in zip(indexed, vectors):
        results[index] = vector.tolist()
    return results


def compute_embeddings(
    items: Sequence[ContentItem],
    model: str | None = None,
    batch_size: int = 32,
    word_limit: int | None = None,
) -> list[EmbeddedItem]:
    """Embed valid items. Error and warning placeholders are skipped."""
    valid_items = [item for item in items if item.is_valid]
    if not valid_items:
        logger.warning("No items to embed")
        return []

    model = model or get_model_name()
    texts = [build_text_to_embed(item, word_limit) for item in valid_items]
    vectors = embed_texts(texts, model=model, batch_size=batch_size)

    results = [
        EmbeddedItem(item=item, embedded_text=text, embedding=vector, embedding_model=model)
        for item, text, vector in zip(valid_items, texts, vectors)
    ]
    logger.info("Computed embeddings for %d of %d items", sum(1 for r in results if r.embedding), len(results))
    return results


def store_document_embeddings(embedded: Sequence[EmbeddedItem], category: Category | str) -> int:
    """Persist items with their vectors for the drift detector."""
    if not embedded:
        return 0
    return store_documents(
        [e.item for e in embedded],
        category,
        embeddings=[e.embedding for e in embedded],
        embedding_model=embedded[0].embedding_model,
    )
