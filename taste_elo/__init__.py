"""
Taste Elo - pairwise ranking and taste analytics for tier lists.
"""

from .classifier import SentimentClassifier

# Also expose core components for advanced usage
from .core import (
    CustomRankRegistry,
    InMemoryRankStore,
    InMemoryRatingStore,
    KeywordSentimentClassifier,
    Matchmaker,
    TournamentSession,
    analytics,
    expected_score,
    next_pair,
    update_elo,
    update_ratings,
)
from .core.analytics import (
    cohort_alignment_score,
    collection_stats,
    controversial_items,
    metric_delta,
    taste_match,
    tier_distribution,
    tier_score_vector,
    top_tags,
)
from .core.errors import (
    DependencyFailure,
    InsufficientDataError,
    InsufficientItemsError,
    TasteEloError,
    ValidationError,
)
from .core.models import (
    Challenger,
    Contender,
    ContenderSource,
    CustomRank,
    Item,
    Pair,
    RankKind,
    Rating,
    RatingType,
    Sentiment,
    VoteResult,
)

__all__ = [
    "SentimentClassifier",
    "KeywordSentimentClassifier",
    "CustomRankRegistry",
    "InMemoryRankStore",
    "InMemoryRatingStore",
    "Matchmaker",
    "TournamentSession",
    "analytics",
    "expected_score",
    "next_pair",
    "update_elo",
    "update_ratings",
    "cohort_alignment_score",
    "collection_stats",
    "controversial_items",
    "metric_delta",
    "taste_match",
    "tier_distribution",
    "tier_score_vector",
    "top_tags",
    "DependencyFailure",
    "InsufficientDataError",
    "InsufficientItemsError",
    "TasteEloError",
    "ValidationError",
    "Challenger",
    "Contender",
    "ContenderSource",
    "CustomRank",
    "Item",
    "Pair",
    "RankKind",
    "Rating",
    "RatingType",
    "Sentiment",
    "VoteResult",
]
