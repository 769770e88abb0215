"""YAML loader for the keyword rule configuration."""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from types import MappingProxyType

from common.config import ConfigSingleton, find_config_path, load_yaml
from keyword_rules.models import (
    BaselineConfig,
    Category,
    KeywordRuleSet,
    RuleConfig,
    SuppressionRule,
    Tier,
    VolumeThreshold,
)

logger = logging.getLogger(__name__)

# Config directory relative to this file
CONFIG_DIR = Path(__file__).parent / "configs"
CONFIG_ENV_VAR = "DRIFT_RULES_CONFIG"


def load_rule_config(config_name: str | None = None) -> RuleConfig:
    """Load and validate the rule configuration.

    Args:
        config_name: Name of config file (without .yaml extension).
                    If None, uses DRIFT_RULES_CONFIG env var or "prod".

    Returns:
        Loaded RuleConfig object

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If the config contents are invalid
    """
    config_path = find_config_path(config_name, CONFIG_DIR, env_var=CONFIG_ENV_VAR)
    config = parse_rule_config(load_yaml(config_path))
    logger.info("Loaded keyword rules for %d categories from %s", len(config.categories), config_path.name)
    return config


def parse_rule_config(data: dict) -> RuleConfig:
    """Parse config dictionary into a RuleConfig object."""
    categories: dict[Category, KeywordRuleSet] = {}
    for key, value in (data.get("categories") or {}).items():
        category = Category.parse(key)
        if category is None:
            raise ValueError(f"Unknown category in rule config: {key}")
        categories[category] = _parse_rule_set(key, value or {})

    return RuleConfig(
        categories=MappingProxyType(categories),
        negation_patterns=_parse_phrases("negation_patterns", data.get("negation_patterns")),
        high_authority_agencies=_parse_phrases(
            "high_authority_agencies", data.get("high_authority_agencies")
        ),
        baselines=tuple(_parse_baseline(b) for b in data.get("baselines") or []),
    )


def _parse_phrases(label: str, values) -> tuple[str, ...]:
    if values is None:
        return ()
    if not isinstance(values, list):
        raise ValueError(f"{label} must be a list, got {type(values).__name__}")
    phrases = []
    for value in values:
        phrase = str(value).strip().lower()
        if not phrase:
            raise ValueError(f"Empty phrase in {label}")
        phrases.append(phrase)
    return tuple(phrases)


def _parse_rule_set(category: str, data: dict) -> KeywordRuleSet:
    keywords = data.get("keywords") or {}
    unknown = set(keywords) - {tier.value for tier in Tier}
    if unknown:
        raise ValueError(f"Unknown keyword tier(s) for {category}: {sorted(unknown)}")

    return KeywordRuleSet(
        capture=_parse_phrases(f"{category}.capture", keywords.get("capture")),
        drift=_parse_phrases(f"{category}.drift", keywords.get("drift")),
        warning=_parse_phrases(f"{category}.warning", keywords.get("warning")),
        suppression_rules=tuple(
            _parse_suppression_rule(category, r) for r in data.get("suppression_rules") or []
        ),
        volume_threshold=_parse_volume_threshold(category, data.get("volume_threshold")),
    )


def _parse_suppression_rule(category: str, data: dict) -> SuppressionRule:
    keyword = str(data.get("keyword") or "").strip().lower()
    if not keyword:
        raise ValueError(f"Suppression rule without keyword in {category}")
    return SuppressionRule(
        keyword=keyword,
        suppress_if_any=_parse_phrases(f"{category}.{keyword}.suppress_if_any", data.get("suppress_if_any")),
        downweight_if_any=_parse_phrases(
            f"{category}.{keyword}.downweight_if_any", data.get("downweight_if_any")
        ),
    )


def _parse_volume_threshold(category: str, data: dict | None) -> VolumeThreshold | None:
    if data is None:
        return None
    try:
        threshold = VolumeThreshold(
            warning=int(data["warning"]),
            drift=int(data["drift"]),
            capture=int(data["capture"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"Invalid volume_threshold for {category}: {data}") from exc
    if not 0 < threshold.warning <= threshold.drift <= threshold.capture:
        raise ValueError(
            f"volume_threshold for {category} must satisfy 0 < warning <= drift <= capture"
        )
    return threshold


def _parse_date(value, label: str) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise ValueError(f"Invalid {label} date: {value}. Must be YYYY-MM-DD") from exc


def _parse_baseline(data: dict) -> BaselineConfig:
    baseline_id = data.get("id")
    if not baseline_id:
        raise ValueError("Baseline without id")
    start = _parse_date(data.get("start"), f"{baseline_id}.start")
    end = _parse_date(data.get("end"), f"{baseline_id}.end")
    if end <= start:
        raise ValueError(f"Baseline {baseline_id} ends before it starts")
    return BaselineConfig(id=baseline_id, label=data.get("label", baseline_id), start=start, end=end)


_manager: ConfigSingleton[RuleConfig] = ConfigSingleton(load_rule_config)
get_rule_config = _manager.get
set_rule_config = _manager.set
reset_rule_config = _manager.reset
