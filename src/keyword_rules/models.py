"""Data models for the keyword rule configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class Category(str, Enum):
    """Monitored categories."""

    CIVIL_SERVICE = "civilService"
    FISCAL = "fiscal"
    IGS = "igs"
    HATCH = "hatch"
    COURTS = "courts"
    MILITARY = "military"
    RULEMAKING = "rulemaking"
    INDICES = "indices"
    INFO_AVAILABILITY = "infoAvailability"
    ELECTIONS = "elections"
    MEDIA_FREEDOM = "mediaFreedom"

    @classmethod
    def parse(cls, value: "Category | str") -> "Category | None":
        """Return the matching category, or None for unknown keys."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


class Tier(str, Enum):
    """Keyword severity tier, most severe first."""

    CAPTURE = "capture"
    DRIFT = "drift"
    WARNING = "warning"

    def downweighted(self) -> "Tier":
        """One level down. Warning stays warning."""
        if self is Tier.CAPTURE:
            return Tier.DRIFT
        return Tier.WARNING


@dataclass(frozen=True)
class SuppressionRule:
    """Co-occurrence rule for a single keyword."""

    keyword: str
    suppress_if_any: tuple[str, ...] = ()
    downweight_if_any: tuple[str, ...] = ()


@dataclass(frozen=True)
class VolumeThreshold:
    """Item counts that signal unusual activity when no keyword fires."""

    warning: int
    drift: int
    capture: int


@dataclass(frozen=True)
class KeywordRuleSet:
    """Tiered keywords and suppression rules for one category."""

    capture: tuple[str, ...] = ()
    drift: tuple[str, ...] = ()
    warning: tuple[str, ...] = ()
    suppression_rules: tuple[SuppressionRule, ...] = ()
    volume_threshold: VolumeThreshold | None = None

    def keywords_for(self, tier: Tier) -> tuple[str, ...]:
        return getattr(self, tier.value)

    def tiered_keywords(self) -> list[tuple[Tier, str]]:
        """All (tier, keyword) pairs, capture tier first."""
        return [(tier, keyword) for tier in Tier for keyword in self.keywords_for(tier)]

    def rules_for_keyword(self, keyword: str) -> list[SuppressionRule]:
        lowered = keyword.lower()
        return [rule for rule in self.suppression_rules if rule.keyword.lower() == lowered]


@dataclass(frozen=True)
class BaselineConfig:
    """A named historical period used as the reference for normal behavior."""

    id: str
    label: str
    start: date
    end: date


@dataclass(frozen=True)
class RuleConfig:
    """Read-only rule configuration keyed by validated category."""

    categories: Mapping[Category, KeywordRuleSet] = field(
        default_factory=lambda: MappingProxyType({})
    )
    negation_patterns: tuple[str, ...] = ()
    high_authority_agencies: tuple[str, ...] = ()
    baselines: tuple[BaselineConfig, ...] = ()

    def rules_for(self, category: Category | str) -> KeywordRuleSet | None:
        parsed = Category.parse(category)
        if parsed is None:
            return None
        return self.categories.get(parsed)

    def is_high_authority(self, agency: str | None) -> bool:
        """Structural authority check against the agency field only."""
        if not agency:
            return False
        lowered = agency.lower()
        return any(source in lowered for source in self.high_authority_agencies)

    def get_baseline_config(self, baseline_id: str) -> BaselineConfig | None:
        return next((b for b in self.baselines if b.id == baseline_id), None)

    @property
    def default_baseline_id(self) -> str | None:
        return self.baselines[0].id if self.baselines else None
