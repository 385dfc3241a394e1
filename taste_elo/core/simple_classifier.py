"""
Sentiment classification for rank labels without DSPy dependencies.
"""

import re
from typing import Callable, Iterable, Optional, Pattern, Protocol

from .models import Sentiment


class LabelClassifier(Protocol):
    """Anything that can tell whether a rank label is favorable."""

    def classify_sentiment(self, text: str) -> Sentiment:
        ...


POSITIVE_KEYWORDS = (
    "favorite", "favourite", "must", "love", "loved", "top", "best", "great",
    "amazing", "masterpiece", "goat", "recommend", "recommended",
)

NEGATIVE_KEYWORDS = (
    "dropped", "disappointing", "disappointed", "disappointment", "trash",
    "hate", "hated", "worst", "bad", "awful", "garbage", "avoid", "overrated",
    "boring",
)


def _word_pattern(keywords: Iterable[str]) -> Pattern:
    # Whole words only, with an optional plural "s"
    words = "|".join(re.escape(k.lower()) for k in keywords)
    return re.compile(rf"\b(?:{words})s?\b")


class KeywordSentimentClassifier:
    """
    A simple classifier that doesn't depend on DSPy.
    Matches whole words of the label against keyword lists; anything
    unmatched is neutral.
    """

    def __init__(
        self,
        classify_fn: Optional[Callable[[str], Sentiment]] = None,
        positive_keywords: Iterable[str] = POSITIVE_KEYWORDS,
        negative_keywords: Iterable[str] = NEGATIVE_KEYWORDS,
    ):
        """
        Initialize a KeywordSentimentClassifier.

        Args:
            classify_fn: Optional function to use instead of keyword matching
            positive_keywords: Words that mark a label as positive
            negative_keywords: Words that mark a label as negative
        """
        self.classify_fn = classify_fn
        self.positive = _word_pattern(positive_keywords)
        self.negative = _word_pattern(negative_keywords)

    def classify_sentiment(self, text: str) -> Sentiment:
        if self.classify_fn:
            return self.classify_fn(text)

        label = text.lower()
        # Negative first: "Dropped, loved the start" is still a drop
        if self.negative.search(label):
            return Sentiment.NEGATIVE
        if self.positive.search(label):
            return Sentiment.POSITIVE
        return Sentiment.NEUTRAL
