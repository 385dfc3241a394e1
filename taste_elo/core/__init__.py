"""
Core ranking engine functionality that doesn't depend on DSPy.
"""

from .elo_rating import expected_score, update_elo, update_ratings
from .matchmaker import Matchmaker, TournamentSession, next_pair
from .custom_ranks import CustomRankRegistry, detect_kind
from .simple_classifier import KeywordSentimentClassifier, LabelClassifier
from .store import InMemoryRankStore, InMemoryRatingStore, RankStore, RatingStore
from . import analytics
