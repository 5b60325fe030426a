"""Escalation level detection for forum posts.

Combines a configurable keyword/phrase rule table with a few fixed
heuristics (crisis phrases, urgent help requests, emotional intensity).
Classification is pure: it never raises on malformed text and never touches
storage.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from lunavo.core.enums import EscalationLevel
from lunavo.core.escalation_rules import (
    DEFAULT_ESCALATION_RULES,
    DEFAULT_HEURISTICS,
    EscalationHeuristics,
    EscalationRule,
)
from lunavo.db.time import as_utc, utcnow
from lunavo.services.ports import PostLike
from lunavo.services.text_signals import combined_text

LEVEL_SCORES: dict[EscalationLevel, int] = {
    EscalationLevel.CRITICAL: 100,
    EscalationLevel.HIGH: 75,
    EscalationLevel.MEDIUM: 50,
    EscalationLevel.LOW: 25,
    EscalationLevel.NONE: 0,
}
MAX_AGE_BONUS = 20.0
AGE_BONUS_PER_HOUR = 2.0
CRISIS_CATEGORY = "crisis"
MAX_REASON_TERMS = 5


@dataclass(frozen=True)
class EscalationResult:
    level: EscalationLevel
    reason: str
    confidence: float

    @property
    def escalated(self) -> bool:
        return self.level != EscalationLevel.NONE


NO_ESCALATION = EscalationResult(level=EscalationLevel.NONE, reason="", confidence=0.0)


class EscalationClassifier:
    """Classify posts into escalation levels using an ordered rule table."""

    def __init__(
        self,
        rules: Sequence[EscalationRule] = DEFAULT_ESCALATION_RULES,
        heuristics: EscalationHeuristics = DEFAULT_HEURISTICS,
        confidence_threshold: float = 0.5,
        report_threshold: int = 3,
    ) -> None:
        self.rules = tuple(rules)
        self.heuristics = heuristics
        self.confidence_threshold = confidence_threshold
        self.report_threshold = report_threshold

    def _match_rules(self, text: str, category: str | None) -> EscalationResult:
        best = NO_ESCALATION
        for rule in self.rules:
            if not rule.applies_to(category) or rule.max_weight == 0:
                continue

            keyword_hits = [keyword for keyword in rule.keywords if keyword.lower() in text]
            phrase_hits = [phrase for phrase in rule.phrases if phrase.lower() in text]
            weighted = len(keyword_hits) + len(phrase_hits) * 2
            if weighted == 0:
                continue

            confidence = min(max(weighted / rule.max_weight, 0.0), 1.0)
            # Strictly greater: on a tie the earlier rule keeps precedence.
            if confidence > best.confidence:
                terms = ", ".join(f'"{term}"' for term in (phrase_hits + keyword_hits)[:MAX_REASON_TERMS])
                best = EscalationResult(
                    level=rule.level,
                    reason=f"Detected {rule.level.value} risk indicators: {terms}",
                    confidence=confidence,
                )
        return best

    def _match_heuristics(self, text: str, category: str | None) -> EscalationResult:
        heuristics = self.heuristics

        if any(indicator in text for indicator in heuristics.crisis_indicators):
            return EscalationResult(
                level=EscalationLevel.CRITICAL,
                reason="Crisis indicators detected - immediate intervention required",
                confidence=0.9,
            )

        if any(pattern in text for pattern in heuristics.urgent_patterns):
            return EscalationResult(
                level=EscalationLevel.HIGH,
                reason="Urgent help request detected",
                confidence=0.7,
            )

        intensity = sum(1 for word in set(heuristics.intensity_words) if word in text)
        if intensity >= heuristics.intensity_threshold:
            return EscalationResult(
                level=EscalationLevel.HIGH,
                reason="High emotional intensity detected",
                confidence=0.6,
            )

        if category == CRISIS_CATEGORY:
            return EscalationResult(
                level=EscalationLevel.HIGH,
                reason="Post in crisis category",
                confidence=0.8,
            )

        return NO_ESCALATION

    def classify(self, post: PostLike) -> EscalationResult:
        """Return the escalation level, reason and confidence for ``post``."""
        category = getattr(post, "category", None)
        text = combined_text(getattr(post, "title", ""), getattr(post, "content", ""))

        result = self._match_rules(text, category)
        heuristic = self._match_heuristics(text, category)
        if heuristic.escalated and heuristic.confidence > result.confidence:
            result = heuristic
        return result

    def should_escalate(self, post: PostLike) -> bool:
        """Decide whether a post needs a human responder."""
        detection = self.classify(post)
        if detection.escalated and detection.confidence >= self.confidence_threshold:
            return True
        if getattr(post, "category", None) == CRISIS_CATEGORY:
            return True
        return (getattr(post, "reported_count", 0) or 0) >= self.report_threshold


def priority_score(
    level: EscalationLevel | str,
    detected_at: datetime,
    now: datetime | None = None,
) -> float:
    """Rank an escalation for a responder queue; higher is more urgent.

    The level's base score gets up to 20 extra points as the escalation ages
    (two points per hour), so old severe cases rise to the top.
    """
    try:
        base = LEVEL_SCORES[EscalationLevel(level)]
    except ValueError:
        base = 0

    current = as_utc(now) if now is not None else utcnow()
    age_hours = max((current - as_utc(detected_at)).total_seconds() / 3600, 0.0)
    return base + min(age_hours * AGE_BONUS_PER_HOUR, MAX_AGE_BONUS)
