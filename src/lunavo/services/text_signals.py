"""Rule-based text signals for forum posts.

Turns a post's title and body into a category guess, a sentiment label and
keyword/topic lists. Everything here is pure and synchronous; malformed or
empty input produces conservative defaults instead of raising.
"""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass, field

from lunavo.core.lexicon import (
    DEFAULT_CATEGORY_KEYWORDS,
    DEFAULT_SENTIMENT_LEXICON,
    DEFAULT_STOP_WORDS,
    DEFAULT_TOPIC_KEYWORDS,
    CategoryKeywords,
    SentimentLexicon,
)

CURRENT_CATEGORY_BOOST = 1.2
NEUTRAL_CONFIDENCE = 0.5
MAX_MATCHED_KEYWORDS = 10
MAX_ALTERNATIVES = 3
MAX_KEYWORDS = 15
MAX_PHRASES = 10
MAX_SUGGESTED_TAGS = 8

_NON_WORD = re.compile(r"[^\w]")
_NON_WORD_OR_SPACE = re.compile(r"[^\w\s]")


@dataclass(frozen=True)
class CategoryScore:
    category: str
    confidence: float


@dataclass(frozen=True)
class Categorization:
    category: str
    confidence: float
    alternatives: list[CategoryScore] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Sentiment:
    sentiment: str
    score: float
    confidence: float
    emotions: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ExtractedKeywords:
    keywords: list[str] = field(default_factory=list)
    important_phrases: list[str] = field(default_factory=list)
    topics: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class PostAnalysis:
    categorization: Categorization
    sentiment: Sentiment
    keywords: ExtractedKeywords
    suggested_tags: list[str]


def combined_text(title: str | None, content: str | None) -> str:
    """Return the lowercase ``title content`` string every detector scans."""
    return f"{title or ''} {content or ''}".lower()


class TextSignalExtractor:
    """Keyword-driven categorization, sentiment and keyword extraction."""

    def __init__(
        self,
        category_keywords: Mapping[str, CategoryKeywords] = DEFAULT_CATEGORY_KEYWORDS,
        sentiment_lexicon: SentimentLexicon = DEFAULT_SENTIMENT_LEXICON,
        stop_words: frozenset[str] = DEFAULT_STOP_WORDS,
        topic_keywords: Mapping[str, tuple[str, ...]] = DEFAULT_TOPIC_KEYWORDS,
    ) -> None:
        if not category_keywords:
            raise ValueError("category_keywords must define at least one category")
        self.category_keywords = category_keywords
        self.sentiment_lexicon = sentiment_lexicon
        self.stop_words = stop_words
        self.topic_keywords = topic_keywords

    def categorize(
        self,
        title: str | None,
        content: str | None,
        current_category: str | None = None,
    ) -> Categorization:
        """Guess the best-fitting category for a post.

        Args:
            title: Post title.
            content: Post body.
            current_category: Category chosen by the author; it gets a small boost
                when the text supports it at all.

        Returns:
            Winning category with its share of the total score, up to three
            alternatives and the winner's keywords found in the text.
        """
        text = combined_text(title, content)

        scores: dict[str, float] = {}
        for category, table in self.category_keywords.items():
            hits = sum(text.count(keyword.lower()) for keyword in table.keywords)
            scores[category] = hits * table.weight

        if current_category and scores.get(current_category, 0) > 0:
            scores[current_category] *= CURRENT_CATEGORY_BOOST

        total = sum(scores.values())
        if total <= 0:
            # Nothing matched: keep the author's choice rather than guessing.
            fallback = current_category or next(iter(self.category_keywords))
            return Categorization(category=fallback, confidence=NEUTRAL_CONFIDENCE)

        # sorted() is stable, so equal scores keep table order.
        ranked = sorted(scores.items(), key=lambda item: item[1], reverse=True)
        winner, winner_score = ranked[0]

        alternatives = [
            CategoryScore(category=category, confidence=min(score / total, 1.0))
            for category, score in ranked[1 : 1 + MAX_ALTERNATIVES]
            if score > 0
        ]
        matched = [
            keyword
            for keyword in self.category_keywords[winner].keywords
            if keyword.lower() in text
        ]

        return Categorization(
            category=winner,
            confidence=min(winner_score / total, 1.0),
            alternatives=alternatives,
            keywords=matched[:MAX_MATCHED_KEYWORDS],
        )

    def detect_sentiment(self, title: str | None, content: str | None) -> Sentiment:
        """Label the post positive, neutral, negative or crisis."""
        text = combined_text(title, content)
        lexicon = self.sentiment_lexicon

        positive = sum(1 for word in lexicon.positive if word in text)
        negative = sum(1 for word in lexicon.negative if word in text)
        crisis = sum(1 for word in lexicon.crisis if word in text)

        emotions: list[str] = []
        if crisis > 0:
            sentiment, score = "crisis", -1.0
            emotions.extend(["crisis", "despair", "hopelessness"])
        elif negative > positive:
            sentiment, score = "negative", -min(negative / 10, 1.0)
            if negative > 5:
                emotions.extend(["distress", "sadness"])
            if "anxious" in text or "worried" in text:
                emotions.append("anxiety")
            if "angry" in text or "frustrated" in text:
                emotions.append("anger")
        elif positive > negative:
            sentiment, score = "positive", min(positive / 10, 1.0)
            if positive > 3:
                emotions.extend(["happiness", "optimism"])
        else:
            sentiment, score = "neutral", 0.0

        total_words = len(text.split())
        matched = positive + negative + crisis
        confidence = min(matched / max(total_words / 20, 1), 1.0)

        return Sentiment(
            sentiment=sentiment,
            score=score,
            confidence=confidence,
            emotions=emotions or ["neutral"],
        )

    def _is_keyword_token(self, token: str) -> bool:
        return len(token) >= 3 and token not in self.stop_words

    def _phrase(self, tokens: list[str]) -> str | None:
        phrase = _NON_WORD_OR_SPACE.sub("", " ".join(tokens))
        words = phrase.split()
        if len(words) != len(tokens):
            return None
        if all(word not in self.stop_words and len(word) >= 2 for word in words):
            return " ".join(words)
        return None

    def extract_keywords(self, title: str | None, content: str | None) -> ExtractedKeywords:
        """Pull frequent words, repeated phrases and known topics out of a post."""
        text = combined_text(title, content)
        raw_tokens = text.split()

        words = [_NON_WORD.sub("", token) for token in raw_tokens]
        frequencies = Counter(word for word in words if self._is_keyword_token(word))
        title_words = {_NON_WORD.sub("", token) for token in (title or "").lower().split()}

        # Counter keeps first-seen order, so frequency ties rank by appearance.
        candidates = [
            (word, count)
            for word, count in frequencies.items()
            if count >= 2 or word in title_words
        ]
        candidates.sort(key=lambda item: item[1], reverse=True)
        keywords = [word for word, _ in candidates[:MAX_KEYWORDS]]

        phrase_counts: Counter[str] = Counter()
        for index in range(len(raw_tokens) - 1):
            for size in (2, 3):
                window = raw_tokens[index : index + size]
                if len(window) < size:
                    continue
                phrase = self._phrase(window)
                if phrase:
                    phrase_counts[phrase] += 1

        repeated = [(phrase, count) for phrase, count in phrase_counts.items() if count >= 2]
        repeated.sort(key=lambda item: item[1], reverse=True)
        important_phrases = [phrase for phrase, _ in repeated[:MAX_PHRASES]]

        topics = [
            topic
            for topic, topic_words in self.topic_keywords.items()
            if any(word in text for word in topic_words)
        ]

        return ExtractedKeywords(
            keywords=keywords,
            important_phrases=important_phrases,
            topics=topics,
        )

    def analyze(
        self,
        title: str | None,
        content: str | None,
        current_category: str | None = None,
    ) -> PostAnalysis:
        """Run every detector and derive suggested tags."""
        categorization = self.categorize(title, content, current_category)
        sentiment = self.detect_sentiment(title, content)
        keywords = self.extract_keywords(title, content)

        suggested_tags = [
            *keywords.keywords[:5],
            *keywords.topics,
            *sentiment.emotions[:2],
        ][:MAX_SUGGESTED_TAGS]

        return PostAnalysis(
            categorization=categorization,
            sentiment=sentiment,
            keywords=keywords,
            suggested_tags=suggested_tags,
        )
