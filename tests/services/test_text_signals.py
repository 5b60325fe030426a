from types import MappingProxyType

import pytest

from lunavo.core.lexicon import CategoryKeywords
from lunavo.services.text_signals import TextSignalExtractor, combined_text


@pytest.fixture
def extractor() -> TextSignalExtractor:
    return TextSignalExtractor()


def test_combined_text_lowercases_and_handles_missing_parts() -> None:
    assert combined_text("Hello", "WORLD") == "hello world"
    assert combined_text(None, "Body") == " body"


def test_categorize_panic_before_exam(extractor: TextSignalExtractor) -> None:
    result = extractor.categorize(
        "Panic before exam",
        "I'm having anxiety and panic attacks, my deadline is tomorrow and I feel hopeless",
        "academic",
    )

    assert result.category in {"mental-health", "academic"}
    assert 0 < result.confidence <= 1
    assert result.keywords


def test_categorize_crisis_keywords_are_weighted(extractor: TextSignalExtractor) -> None:
    result = extractor.categorize("Emergency", "I feel unsafe and in danger")

    assert result.category == "crisis"
    assert result.confidence == pytest.approx(1.0)


def test_categorize_without_matches_keeps_current_category(extractor: TextSignalExtractor) -> None:
    result = extractor.categorize("Hi", "Nothing to see", "relationships")

    assert result.category == "relationships"
    assert result.confidence == 0.5
    assert result.alternatives == []


def test_categorize_without_matches_or_current_uses_first_table_entry(
    extractor: TextSignalExtractor,
) -> None:
    result = extractor.categorize("", "")

    assert result.category == "mental-health"
    assert result.confidence == 0.5


def test_categorize_boosts_authors_choice_when_supported() -> None:
    table = MappingProxyType({
        "alpha": CategoryKeywords(("apple",)),
        "beta": CategoryKeywords(("banana",)),
    })
    extractor = TextSignalExtractor(category_keywords=table)

    result = extractor.categorize("", "apple banana", "beta")

    assert result.category == "beta"
    assert result.confidence == pytest.approx(1.2 / 2.2)
    assert [alt.category for alt in result.alternatives] == ["alpha"]


def test_categorize_ties_follow_table_order() -> None:
    table = MappingProxyType({
        "first": CategoryKeywords(("shared",)),
        "second": CategoryKeywords(("shared",)),
    })
    extractor = TextSignalExtractor(category_keywords=table)

    assert extractor.categorize("", "shared").category == "first"


def test_extractor_requires_categories() -> None:
    with pytest.raises(ValueError):
        TextSignalExtractor(category_keywords=MappingProxyType({}))


def test_detect_sentiment_crisis_wins(extractor: TextSignalExtractor) -> None:
    result = extractor.detect_sentiment("", "I am happy but I want to give up")

    assert result.sentiment == "crisis"
    assert result.score == -1.0
    assert "hopelessness" in result.emotions


def test_detect_sentiment_negative_with_anxiety(extractor: TextSignalExtractor) -> None:
    result = extractor.detect_sentiment("Rough week", "I am anxious and tired and sad")

    assert result.sentiment == "negative"
    assert result.score == pytest.approx(-0.3)
    assert "anxiety" in result.emotions


def test_detect_sentiment_positive(extractor: TextSignalExtractor) -> None:
    result = extractor.detect_sentiment("Update", "Feeling grateful and hopeful")

    assert result.sentiment == "positive"
    assert result.score > 0


def test_detect_sentiment_neutral_on_empty_text(extractor: TextSignalExtractor) -> None:
    result = extractor.detect_sentiment(None, None)

    assert result.sentiment == "neutral"
    assert result.score == 0.0
    assert result.confidence == 0.0
    assert result.emotions == ["neutral"]


def test_extract_keywords_frequency_phrases_and_topics(extractor: TextSignalExtractor) -> None:
    result = extractor.extract_keywords(
        "Exam stress",
        "exam stress is real. exam stress keeps me awake before every deadline",
    )

    assert result.keywords[:2] == ["exam", "stress"]
    assert "exam stress" in result.important_phrases
    assert "anxiety" in result.topics
    assert "academic-stress" in result.topics


def test_extract_keywords_drops_stop_word_phrases(extractor: TextSignalExtractor) -> None:
    result = extractor.extract_keywords("", "in the in the in the")

    assert result.important_phrases == []
    assert result.keywords == []


def test_analyze_suggests_bounded_tags(extractor: TextSignalExtractor) -> None:
    analysis = extractor.analyze(
        "Exam stress",
        "exam stress again, exam stress and worry about my grades and my friend",
    )

    assert 0 < len(analysis.suggested_tags) <= 8
    assert analysis.categorization.category == "academic"
