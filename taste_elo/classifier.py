"""
DSPy-based classifier deciding whether a rank label is favorable.
"""

import dspy

from .core.errors import DependencyFailure
from .core.models import Sentiment, coerce_enum


class ClassifyRankSentiment(dspy.Signature):
    """
    Decide whether a ranking tier name describes liked, disliked or unjudged items.

    positive: favorable items (e.g. "Favorites", "Must Watch", "Loved It", "Top Tier").
    negative: unfavorable items (e.g. "Dropped", "Disappointing", "Trash", "Hate It").
    neutral: no judgment (e.g. "Haven't Finished", "Planning to Watch", "On Hold").
    """
    rank_name = dspy.InputField(desc="The name of the ranking tier")

    sentiment = dspy.OutputField(desc="One of: 'positive', 'neutral', 'negative'")
    reasoning = dspy.OutputField(desc="Brief explanation of the choice")


class SentimentClassifier:
    """
    A DSPy-based LabelClassifier.

    Uses whatever LM the caller configured through ``dspy.settings``.
    """

    def __init__(self):
        self.predictor = dspy.Predict(ClassifyRankSentiment)

    def classify_sentiment(self, text: str) -> Sentiment:
        """
        Classify a rank name.

        Args:
            text: The rank name

        Returns:
            The predicted sentiment

        Raises:
            DependencyFailure: If the LM call fails or returns an unknown label
        """
        try:
            result = self.predictor(rank_name=text)
        except Exception as exc:
            raise DependencyFailure(f"Sentiment classification failed: {exc}", value=text) from exc

        raw = str(result.sentiment).strip().strip("'\"").lower()
        try:
            return coerce_enum(Sentiment, raw, "sentiment")
        except ValueError as exc:
            raise DependencyFailure(f"Unrecognized sentiment from LM: {result.sentiment!r}", value=text) from exc
