"""Tests for score_documents.score_documents module."""

from datetime import date, datetime, timezone

import pytest
from sqlalchemy import select

from common.db import document_scores, documents, get_session
from ingest_items.models import ContentItem
from score_documents.models import DocumentClass, Tier
from score_documents.score_documents import (
    score_document,
    score_document_batch,
    store_document_scores,
    store_documents,
)

SCORED_AT = datetime(2025, 1, 24, 12, 0, tzinfo=timezone.utc)

TRUE_POSITIVES = [
    (
        "igs",
        "President Removes Five Inspectors General in Late Friday Announcement",
        "The administration fired five inspectors general across major departments, "
        "marking the largest mass ig removal in modern history.",
        "mass ig removal",
        Tier.CAPTURE,
    ),
    (
        "courts",
        "Administration Defies Court Order on Deportations",
        "Despite a federal injunction, the administration defied court order and continued "
        "deportation flights, prompting calls for contempt proceedings.",
        "defied court order",
        Tier.CAPTURE,
    ),
    (
        "civilService",
        "Schedule F Executive Order Signed, Reclassifying Thousands of Federal Workers",
        "The President signed an executive order reinstating Schedule F, which would convert "
        "career civil servants to at-will employees.",
        "schedule f",
        Tier.CAPTURE,
    ),
    (
        "fiscal",
        "GAO: Administration Violated Impoundment Control Act",
        "The Government Accountability Office issued a formal decision finding that the "
        "administration violated impoundment control act by withholding congressionally "
        "appropriated funds.",
        "violated impoundment control act",
        Tier.CAPTURE,
    ),
    (
        "military",
        "Reports: White House Drafting Insurrection Act Invocation",
        "Multiple sources confirm the administration is preparing to invoke the insurrection "
        "act invoked in response to ongoing protests.",
        "insurrection act invoked",
        Tier.CAPTURE,
    ),
    (
        "mediaFreedom",
        "White House Revokes Press Credentials for Multiple Outlets",
        "Several news organizations had their press credentials revoked after publishing "
        "critical coverage of the administration.",
        "press credentials revoked",
        Tier.DRIFT,
    ),
    (
        "elections",
        "State Orders Massive Voter Roll Purge Weeks Before Election",
        "The Secretary of State ordered a voter roll purge targeting hundreds of thousands of "
        "registrations just weeks before the general election.",
        "voter roll purge",
        Tier.DRIFT,
    ),
    (
        "rulemaking",
        "Administration Orders Regulatory Freeze Across All Agencies",
        "A sweeping regulatory freeze directive was issued requiring all agencies to halt "
        "pending rulemakings.",
        "regulatory freeze",
        Tier.DRIFT,
    ),
    (
        "infoAvailability",
        "Climate Data Portal Taken Offline Without Notice",
        "The EPA website removed its public climate data portal, with no notice provided. "
        "Data previously accessible has been purged.",
        "website removed",
        Tier.CAPTURE,
    ),
    (
        "indices",
        "Freedom House Issues Democracy Downgrade for United States",
        "Freedom House downgraded the US in its annual report, citing erosion of judicial "
        "independence and press freedom as factors in the democracy downgrade.",
        "democracy downgrade",
        Tier.CAPTURE,
    ),
]

FALSE_POSITIVES = [
    (
        "courts",
        "FDR and the 1937 Court-Packing Plan: Lessons for Today",
        "A historical analysis of Roosevelt's failed attempt at court packing and its "
        "long-term consequences for judicial independence.",
        "court packing",
    ),
    (
        "fiscal",
        "GAO Review Finds No Evidence of Impoundment Violation",
        "The Government Accountability Office found no evidence of illegal impoundment in the "
        "latest quarterly review of executive spending.",
        "impoundment",
    ),
    (
        "fiscal",
        "Bipartisan Deal Averts Impoundment Crisis",
        "Congressional leaders reached a bipartisan agreement to release frozen funds, "
        "avoiding a prolonged impoundment standoff.",
        "impoundment",
    ),
    (
        "courts",
        "Contempt of Court Charge Dismissed in Federal Case",
        "A federal judge dismissed the contempt of court citation after finding the defendant "
        "had substantially complied with the original order.",
        "contempt of court",
    ),
    (
        "military",
        "Annual Military Training Exercise at Fort Liberty",
        "The Department of Defense announced a routine training exercise involving domestic "
        "military deployment of reserve units for annual readiness drills.",
        "domestic military deployment",
    ),
    (
        "igs",
        "Senate Confirms New Inspector General for Commerce Department",
        "The Senate confirmed the nomination, ending a prolonged ig vacancy at the Department "
        "of Commerce. The new IG was sworn in today.",
        "ig vacancy",
    ),
    (
        "fiscal",
        "Court Blocked Impoundment of Education Funds",
        "A federal court ruled against the administration's attempt to withhold education "
        "funding, rejecting the impoundment as unauthorized.",
        "impoundment",
    ),
    (
        "military",
        "National Guard Activated for Hurricane Relief",
        "The governor activated the National Guard to assist with hurricane disaster relief "
        "operations across the affected coastal counties.",
        "national guard activated",
    ),
]


def _schedule_f_item(**overrides) -> ContentItem:
    values = {
        "title": "Schedule F executive order reinstated",
        "url": "https://www.federalregister.gov/d/2025-01234",
        "published_at": datetime(2025, 1, 22, tzinfo=timezone.utc),
        "agency": "Executive Office of the President",
        "type": "Presidential Document",
    }
    values.update(overrides)
    return ContentItem(**values)


class TestScoreDocument:
    def test_schedule_f_executive_order(self) -> None:
        score = score_document(_schedule_f_item(), "civilService", scored_at=SCORED_AT)

        assert score.capture_count == 1
        assert score.drift_count == 0
        assert score.warning_count == 0
        assert score.severity_score == pytest.approx(4.0)
        assert score.document_class is DocumentClass.EXECUTIVE_ORDER
        assert score.class_multiplier == 1.5
        assert score.final_score == pytest.approx(6.0)
        assert score.week_of == date(2025, 1, 20)
        assert score.is_high_authority is False
        assert score.scored_at == SCORED_AT

    def test_counts_match_active_matches(self) -> None:
        item = _schedule_f_item(summary="A reorganization and hiring freeze follow the reclassification.")
        score = score_document(item, "civilService", scored_at=SCORED_AT)
        for tier in Tier:
            assert score.count_for(tier) == sum(1 for m in score.matches if m.tier is tier)
        assert score.suppressed_count == len(score.suppressed)

    def test_no_matches_scores_zero(self) -> None:
        score = score_document(ContentItem(title="Routine notice", url="https://a.gov/1"), "fiscal")
        assert score.severity_score == 0.0
        assert score.final_score == 0.0
        assert score.matches == []

    def test_unknown_category_scores_zero(self) -> None:
        score = score_document(_schedule_f_item(), "weather")
        assert score.severity_score == 0.0
        assert score.category == "weather"

    def test_high_authority_from_agency(self) -> None:
        item = ContentItem(title="Decision on withholding", agency="Government Accountability Office")
        assert score_document(item, "fiscal").is_high_authority is True

    def test_week_falls_back_to_scored_at(self) -> None:
        score = score_document(ContentItem(title="Undated"), "fiscal", scored_at=SCORED_AT)
        assert score.week_of == date(2025, 1, 20)
        assert score.title == "Undated"

    def test_untitled(self) -> None:
        assert score_document(ContentItem(url="https://a.gov/x"), "fiscal").title == "(untitled)"

    @pytest.mark.parametrize("category,title,summary,keyword,tier", TRUE_POSITIVES)
    def test_true_positive(self, category, title, summary, keyword, tier) -> None:
        score = score_document(ContentItem(title=title, summary=summary), category)
        assert (keyword, tier) in [(m.keyword, m.tier) for m in score.matches]
        assert score.severity_score > 0

    @pytest.mark.parametrize("category,title,summary,keyword", FALSE_POSITIVES)
    def test_false_positive_suppressed(self, category, title, summary, keyword) -> None:
        score = score_document(ContentItem(title=title, summary=summary), category)
        assert keyword not in [m.keyword for m in score.matches]


class TestScoreDocumentBatch:
    def test_skips_error_and_warning_items(self) -> None:
        items = [
            _schedule_f_item(),
            ContentItem(title="Error fetching feed", is_error=True),
            ContentItem(title="Feed returned no items", is_warning=True),
        ]
        scores = score_document_batch(items, "civilService")
        assert len(scores) == 1

    def test_shares_scored_at(self) -> None:
        items = [_schedule_f_item(), _schedule_f_item(url="https://a.gov/2")]
        scores = score_document_batch(items, "civilService")
        assert scores[0].scored_at == scores[1].scored_at


class TestStoreDocumentScores:
    def test_without_database_returns_zero(self) -> None:
        score = score_document(_schedule_f_item(), "civilService")
        assert store_document_scores([score]) == 0

    def test_upserts_by_url_and_category(self, sqlite_db) -> None:
        score = score_document(_schedule_f_item(), "civilService", scored_at=SCORED_AT)
        assert store_document_scores([score]) == 1
        assert store_document_scores([score]) == 1

        with get_session() as session:
            rows = session.execute(select(document_scores)).mappings().all()
        assert len(rows) == 1
        assert rows[0]["week_of"] == "2025-01-20"
        assert rows[0]["document_class"] == "executive_order"
        assert rows[0]["matches"][0]["keyword"] == "schedule f"
        assert rows[0]["matches"][0]["tier"] == "capture"

    def test_skips_scores_without_url(self, sqlite_db) -> None:
        score = score_document(_schedule_f_item(url=""), "civilService")
        assert store_document_scores([score]) == 0


class TestStoreDocuments:
    def test_without_database_returns_zero(self) -> None:
        assert store_documents([_schedule_f_item()], "civilService") == 0

    def test_mismatched_embeddings_raise(self, sqlite_db) -> None:
        with pytest.raises(ValueError):
            store_documents([_schedule_f_item()], "civilService", embeddings=[])

    def test_missing_embedding_keeps_stored_vector(self, sqlite_db) -> None:
        item = _schedule_f_item()
        assert store_documents([item], "civilService", embeddings=[[0.1, 0.2]], embedding_model="m") == 1
        assert store_documents([item], "civilService", embeddings=[None]) == 1

        with get_session() as session:
            rows = session.execute(select(documents)).mappings().all()
        assert len(rows) == 1
        assert rows[0]["embedding"] == [0.1, 0.2]
        assert rows[0]["embedding_model"] == "m"

    def test_skips_invalid_items(self, sqlite_db) -> None:
        items = [ContentItem(title="Error", url="https://a.gov/e", is_error=True)]
        assert store_documents(items, "civilService") == 0
