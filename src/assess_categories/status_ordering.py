"""Ordering of status levels and reconciliation with a secondary assessment."""

from assess_categories.models import DowngradeDecision, StatusLevel

STATUS_ORDER: list[StatusLevel] = [
    StatusLevel.STABLE,
    StatusLevel.WARNING,
    StatusLevel.DRIFT,
    StatusLevel.CAPTURE,
]

# Minimum confidence to accept a one-level downgrade without review
AUTO_ACCEPT_CONFIDENCE = 0.7


def status_index(status: StatusLevel | str) -> int:
    """0 for Stable up to 3 for Capture."""
    return STATUS_ORDER.index(StatusLevel(status))


def status_distance(a: StatusLevel | str, b: StatusLevel | str) -> int:
    return abs(status_index(a) - status_index(b))


def is_downgrade(ceiling: StatusLevel | str, recommended: StatusLevel | str) -> bool:
    """True if recommended is strictly less severe than ceiling."""
    return status_index(recommended) < status_index(ceiling)


def clamp_to_ceiling(ceiling: StatusLevel | str, recommended: StatusLevel | str) -> StatusLevel:
    """recommended, but never more severe than ceiling."""
    if status_index(recommended) > status_index(ceiling):
        return StatusLevel(ceiling)
    return StatusLevel(recommended)


def resolve_downgrade(
    keyword_status: StatusLevel | str,
    recommended: StatusLevel | str,
    confidence: float,
) -> DowngradeDecision:
    """Decide whether a secondary assessment may lower the keyword status.

    The secondary status is clamped to the keyword status first, so it can
    never raise the level. A one-level drop at confidence >= 0.7 is accepted;
    anything larger, or less confident, keeps the keyword status and is
    flagged for review.
    """
    keyword_status = StatusLevel(keyword_status)
    clamped = clamp_to_ceiling(keyword_status, recommended)
    distance = status_distance(keyword_status, clamped)

    if distance == 0:
        return DowngradeDecision(
            final_status=keyword_status,
            downgrade_applied=False,
            flag_for_review=False,
            reason=f"Secondary assessment agrees with keyword assessment: {keyword_status.value}",
        )

    if distance == 1 and confidence >= AUTO_ACCEPT_CONFIDENCE:
        return DowngradeDecision(
            final_status=clamped,
            downgrade_applied=True,
            flag_for_review=False,
            reason=f"Secondary assessment recommends {clamped.value} (1 level down, confidence {confidence:.2f}): auto-accepted",
        )

    if distance >= 2:
        reason = f"Secondary assessment recommends {clamped.value} ({distance} levels down): flagged for review"
    else:
        reason = (
            f"Secondary assessment recommends {clamped.value} "
            f"(confidence {confidence:.2f} < {AUTO_ACCEPT_CONFIDENCE}): flagged for review"
        )
    return DowngradeDecision(
        final_status=keyword_status,
        downgrade_applied=False,
        flag_for_review=True,
        reason=reason,
    )
