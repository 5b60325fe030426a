"""Escalation rule table and heuristic phrase lists.

Rules are operator-editable data. The built-in table below is used unless
``ESCALATION_RULES_PATH`` points at a JSON document of the form::

    [
        {"categories": ["crisis"], "keywords": ["..."], "phrases": ["..."], "level": "high"}
    ]

Declaration order matters: when two rules reach the same confidence the one
declared first wins.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from lunavo.core.enums import EscalationLevel


class RuleConfigError(ValueError):
    """Raised when an escalation rule document cannot be parsed."""


@dataclass(frozen=True)
class EscalationRule:
    """Keyword/phrase pattern mapped to an escalation level.

    An empty ``categories`` tuple means the rule applies to every category.
    """

    keywords: tuple[str, ...]
    phrases: tuple[str, ...]
    level: EscalationLevel
    categories: tuple[str, ...] = ()

    def applies_to(self, category: str | None) -> bool:
        return not self.categories or category in self.categories

    @property
    def max_weight(self) -> int:
        return len(self.keywords) + len(self.phrases) * 2


@dataclass(frozen=True)
class EscalationHeuristics:
    """Fixed phrase lists checked independently of the rule table."""

    crisis_indicators: tuple[str, ...]
    urgent_patterns: tuple[str, ...]
    intensity_words: tuple[str, ...]
    intensity_threshold: int = 3


DEFAULT_ESCALATION_RULES: tuple[EscalationRule, ...] = (
    EscalationRule(
        keywords=(
            "suicide", "kill myself", "end my life", "want to die", "not worth living",
            "better off dead", "suicidal", "ending it", "no point",
        ),
        phrases=(
            "going to kill myself", "planning to end my life", "thinking about suicide",
            "want to commit suicide", "suicide is the only way",
        ),
        level=EscalationLevel.CRITICAL,
        categories=("crisis", "mental-health"),
    ),
    EscalationRule(
        keywords=("self harm", "cutting", "hurting myself", "self injury", "burning myself"),
        phrases=("want to hurt myself", "going to cut myself", "thinking of self harm"),
        level=EscalationLevel.HIGH,
        categories=("crisis", "mental-health"),
    ),
    EscalationRule(
        keywords=("abuse", "raped", "assaulted", "violence", "threatened", "harassed"),
        phrases=(
            "being abused", "someone hurt me", "afraid for my safety", "being threatened",
        ),
        level=EscalationLevel.HIGH,
        categories=("crisis", "social", "relationships"),
    ),
    EscalationRule(
        keywords=("overdose", "too much", "can't stop", "addicted", "withdrawal"),
        phrases=("took too many pills", "overdosed on", "can't control my use"),
        level=EscalationLevel.HIGH,
        categories=("substance-abuse", "crisis"),
    ),
    EscalationRule(
        keywords=(
            "hiv positive", "tested positive", "stis", "std", "unsafe sex", "unprotected",
            "pregnancy scare", "unwanted pregnancy",
        ),
        phrases=(
            "tested positive for hiv", "might have hiv", "had unprotected sex",
            "worried about pregnancy", "think i have an sti",
        ),
        level=EscalationLevel.MEDIUM,
        categories=("stis-hiv", "sexual-health", "crisis"),
    ),
    EscalationRule(
        keywords=(
            "family problems", "family stress", "home issues", "family health",
            "parent sick", "family crisis",
        ),
        phrases=(
            "family is causing stress", "problems at home", "family member is sick",
            "home situation is bad",
        ),
        level=EscalationLevel.LOW,
        categories=("family-home", "mental-health"),
    ),
    # Acute distress shows up in every category (exam panic, breakups), so no filter.
    EscalationRule(
        keywords=(
            "hopeless", "helpless", "can't cope", "breaking down", "losing control",
            "panic attack",
        ),
        phrases=(
            "completely hopeless", "can't handle this anymore", "having a breakdown",
            "losing my mind",
        ),
        level=EscalationLevel.MEDIUM,
    ),
    EscalationRule(
        keywords=("depressed", "anxious", "stressed", "overwhelmed", "exhausted"),
        phrases=("feeling very depressed", "extreme anxiety", "completely overwhelmed"),
        level=EscalationLevel.LOW,
        categories=("mental-health", "academic"),
    ),
)

DEFAULT_HEURISTICS = EscalationHeuristics(
    crisis_indicators=(
        "suicide", "kill myself", "end it all", "want to die", "no point living",
        "better off dead",
    ),
    urgent_patterns=(
        "need help now", "urgent help", "immediate help", "can't cope", "breaking down",
        "can't handle",
    ),
    intensity_words=(
        "extremely", "terrible", "awful", "horrible", "devastated", "overwhelmed",
    ),
)


def _string_tuple(entry: Mapping[str, Any], key: str, index: int) -> tuple[str, ...]:
    value = entry.get(key, [])
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise RuleConfigError(f"Rule {index}: '{key}' must be a list of strings")
    return tuple(item.lower() for item in value)


def rules_from_data(data: Iterable[Mapping[str, Any]]) -> tuple[EscalationRule, ...]:
    """Build an ordered rule tuple from decoded JSON data.

    Raises:
        RuleConfigError: If an entry is missing fields or names an unknown level.
    """
    rules: list[EscalationRule] = []
    for index, entry in enumerate(data):
        if not isinstance(entry, Mapping):
            raise RuleConfigError(f"Rule {index}: expected an object")
        try:
            level = EscalationLevel(entry.get("level"))
        except ValueError as err:
            raise RuleConfigError(f"Rule {index}: unknown level {entry.get('level')!r}") from err
        keywords = _string_tuple(entry, "keywords", index)
        phrases = _string_tuple(entry, "phrases", index)
        if not keywords and not phrases:
            raise RuleConfigError(f"Rule {index}: needs at least one keyword or phrase")
        rules.append(
            EscalationRule(
                keywords=keywords,
                phrases=phrases,
                level=level,
                categories=tuple(_string_tuple(entry, "categories", index)),
            )
        )
    return tuple(rules)


def load_escalation_rules(path: str | Path | None = None) -> tuple[EscalationRule, ...]:
    """Return the rule table from ``path`` or the built-in defaults.

    Raises:
        RuleConfigError: If the file cannot be read or decoded.
    """
    if path is None:
        return DEFAULT_ESCALATION_RULES

    try:
        raw = Path(path).read_text(encoding="utf-8")
        data = json.loads(raw)
    except (OSError, json.JSONDecodeError) as err:
        raise RuleConfigError(f"Cannot load escalation rules from {path}: {err}") from err

    if not isinstance(data, list):
        raise RuleConfigError("Escalation rule document must be a JSON list")
    return rules_from_data(data)
