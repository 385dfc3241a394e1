"""
Pairwise Elo score updates.
"""

import math
from typing import Tuple

from .constants import DEFAULT_K_FACTOR, ELO_SCALE
from .errors import ValidationError


def expected_score(rating_a: float, rating_b: float) -> float:
    """
    Calculate the expected score for item A against item B.

    Args:
        rating_a: Elo score of item A
        rating_b: Elo score of item B

    Returns:
        Expected score for item A (between 0 and 1)
    """
    return 1.0 / (1.0 + math.pow(10, (rating_b - rating_a) / ELO_SCALE))


def update_elo(rating: float, expected: float, actual: float, k_factor: float = DEFAULT_K_FACTOR) -> float:
    """
    Move a score towards the observed outcome.

    Args:
        rating: Current Elo score
        expected: Expected outcome (between 0 and 1)
        actual: Actual outcome (1 for a win, 0 for a loss)
        k_factor: Maximum change per comparison

    Returns:
        Unrounded new score
    """
    return rating + k_factor * (actual - expected)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    return int(math.floor(value + 0.5))


def update_ratings(
    winner_score: float,
    loser_score: float,
    k_factor: float = DEFAULT_K_FACTOR,
) -> Tuple[int, int]:
    """
    Score a single head-to-head comparison.

    Both new scores are rounded to whole points. The loser never drops
    below zero.

    Args:
        winner_score: Current score of the item that was picked
        loser_score: Current score of the other item
        k_factor: Maximum change per comparison

    Returns:
        Tuple of (new winner score, new loser score)

    Example:
        >>> update_ratings(1200, 1200)
        (1216, 1184)
    """
    if k_factor <= 0:
        raise ValidationError("k_factor must be positive", value=k_factor)

    expected_winner = expected_score(winner_score, loser_score)
    expected_loser = expected_score(loser_score, winner_score)

    new_winner = update_elo(winner_score, expected_winner, 1.0, k_factor)
    new_loser = update_elo(loser_score, expected_loser, 0.0, k_factor)

    return round_half_up(new_winner), max(0, round_half_up(new_loser))
