"""Keyword tables used by the text signal extractor.

Tables are read-only values; extractors receive them at construction so
alternative vocabularies can be injected without touching module state.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class CategoryKeywords:
    """Keyword list and score multiplier for one post category."""

    keywords: tuple[str, ...]
    weight: float = 1.0


@dataclass(frozen=True)
class SentimentLexicon:
    """Word lists for the rule-based sentiment detector."""

    positive: tuple[str, ...]
    negative: tuple[str, ...]
    crisis: tuple[str, ...]


# Insertion order doubles as the tie-break order when two categories score equally.
DEFAULT_CATEGORY_KEYWORDS: Mapping[str, CategoryKeywords] = MappingProxyType({
    "mental-health": CategoryKeywords((
        "anxiety", "depression", "stress", "panic", "overwhelmed", "sad", "lonely",
        "mental health", "therapy", "counseling", "suicidal", "self-harm", "trauma",
        "ptsd", "bipolar", "adhd", "ocd", "eating disorder", "burnout", "exhausted",
    )),
    "relationships": CategoryKeywords((
        "relationship", "breakup", "dating", "friend", "family", "partner", "boyfriend",
        "girlfriend", "conflict", "argument", "communication", "trust", "cheating",
        "loneliness", "social", "isolation", "romance", "marriage", "divorce",
    )),
    "academic": CategoryKeywords((
        "exam", "test", "assignment", "homework", "study", "grades", "gpa", "course",
        "professor", "lecture", "deadline", "project", "essay", "research", "thesis",
        "dissertation", "academic", "university", "college", "school", "failing",
        "dropout", "graduation", "career", "job", "internship",
    )),
    "crisis": CategoryKeywords((
        "suicide", "kill myself", "end it all", "want to die", "no point", "hopeless",
        "emergency", "urgent", "help now", "can't cope", "breaking down", "crisis",
        "self-harm", "cutting", "overdose", "abuse", "violence", "danger", "unsafe",
    ), weight=2.0),
    "substance-abuse": CategoryKeywords((
        "alcohol", "drug", "addiction", "sober", "recovery", "drinking", "smoking",
        "marijuana", "cannabis", "cocaine", "heroin", "opioid", "substance", "abuse",
        "relapse", "detox", "rehab", "alcoholic", "addict",
    )),
    "sexual-health": CategoryKeywords((
        "sex", "sexual", "std", "sti", "contraception", "condom", "pregnancy",
        "abortion", "reproductive", "health", "consent", "assault", "harassment",
        "intimacy", "relationship", "dating", "safe sex",
    )),
})

DEFAULT_SENTIMENT_LEXICON = SentimentLexicon(
    positive=(
        "happy", "glad", "excited", "grateful", "thankful", "proud", "confident",
        "hopeful", "optimistic", "better", "improved", "progress", "success",
        "achievement", "accomplished", "relieved", "peaceful", "calm", "content",
    ),
    negative=(
        "sad", "angry", "frustrated", "disappointed", "worried", "anxious", "scared",
        "afraid", "lonely", "isolated", "hurt", "pain", "suffering", "struggling",
        "difficult", "hard", "tough", "overwhelmed", "exhausted", "tired", "drained",
    ),
    crisis=(
        "suicide", "kill myself", "end it all", "want to die", "hopeless", "no point",
        "can't go on", "give up", "self-harm", "cutting", "overdose", "emergency",
    ),
)

DEFAULT_STOP_WORDS: frozenset[str] = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with",
    "by", "from", "as", "is", "was", "are", "were", "been", "be", "have", "has", "had",
    "do", "does", "did", "will", "would", "could", "should", "may", "might", "must",
    "can", "this", "that", "these", "those", "i", "you", "he", "she", "it", "we", "they",
    "me", "him", "her", "us", "them", "my", "your", "his", "its", "our", "their",
    "what", "which", "who", "whom", "whose", "where", "when", "why", "how", "all", "each",
    "every", "both", "few", "more", "most", "other", "some", "such", "no", "nor", "not",
    "only", "own", "same", "so", "than", "too", "very", "just", "now",
})

DEFAULT_TOPIC_KEYWORDS: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "anxiety": ("anxiety", "anxious", "worry", "panic", "stress"),
    "depression": ("depression", "depressed", "sad", "hopeless", "down"),
    "academic-stress": ("exam", "test", "assignment", "deadline", "grades"),
    "relationships": ("relationship", "friend", "partner", "breakup", "conflict"),
    "self-care": ("self-care", "wellness", "health", "exercise", "sleep"),
})
