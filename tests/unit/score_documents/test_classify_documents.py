"""Tests for score_documents.classify_documents module."""

import pytest

from ingest_items.models import ContentItem
from score_documents.classify_documents import class_multiplier, classify_document
from score_documents.models import DocumentClass


class TestClassifyDocument:
    @pytest.mark.parametrize(
        "source_type,expected",
        [
            ("Presidential Document", DocumentClass.EXECUTIVE_ORDER),
            ("Rule", DocumentClass.FINAL_RULE),
            ("Proposed Rule", DocumentClass.PROPOSED_RULE),
            ("Notice", DocumentClass.NOTICE),
        ],
    )
    def test_source_type(self, source_type, expected) -> None:
        assert classify_document(ContentItem(title="Anything", type=source_type)) is expected

    def test_source_type_beats_title(self) -> None:
        item = ContentItem(title="Notice about an executive order", type="Notice")
        assert classify_document(item) is DocumentClass.NOTICE

    def test_title_patterns(self) -> None:
        assert classify_document(ContentItem(title="Executive Order 14000")) is DocumentClass.EXECUTIVE_ORDER
        assert (
            classify_document(ContentItem(title="Presidential Memorandum on hiring"))
            is DocumentClass.PRESIDENTIAL_MEMORANDUM
        )

    def test_agency_patterns(self) -> None:
        assert classify_document(ContentItem(title="Decision", agency="Supreme Court")) is DocumentClass.COURT_OPINION
        assert (
            classify_document(ContentItem(title="Audit", agency="Office of Inspector General"))
            is DocumentClass.REPORT
        )
        assert classify_document(ContentItem(title="Statement", agency="White House")) is DocumentClass.PRESS_RELEASE

    def test_url_pattern(self) -> None:
        item = ContentItem(title="B-337137", url="https://www.gao.gov/products/b-337137")
        assert classify_document(item) is DocumentClass.REPORT

    def test_unknown(self) -> None:
        assert classify_document(ContentItem(title="Weekly update")) is DocumentClass.UNKNOWN


class TestClassMultiplier:
    def test_known_classes(self) -> None:
        assert class_multiplier(DocumentClass.EXECUTIVE_ORDER) == 1.5
        assert class_multiplier(DocumentClass.UNKNOWN) == 1.0
