"""
Session-scoped pair selection and vote recording for tournament ranking.

A tournament shows the user two entries at a time and asks which one is
better. Scores are kept in a session overlay and are only written back to
the store when the caller asks for it.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .constants import DEFAULT_ELO, DEFAULT_K_FACTOR, DISCOVERY_RATE
from .elo_rating import update_ratings
from .errors import InsufficientItemsError, ValidationError
from .models import Challenger, Contender, ContenderSource, Item, Pair, VoteResult

logger = logging.getLogger(__name__)


def _hydrate(item: Item, session_scores: Dict[str, float]) -> Contender:
    return Contender(
        id=item.id,
        name=item.name,
        elo=session_scores.get(item.id, DEFAULT_ELO),
        source=ContenderSource.USER,
        entry=item,
    )


def _seed_challenger(challenger: Challenger) -> Contender:
    return Contender(
        id=challenger.id,
        name=challenger.name,
        elo=DEFAULT_ELO,
        source=ContenderSource.CHALLENGER,
        entry=challenger,
    )


def distinct_entries(
    pool: Iterable[Item],
    challengers: Iterable[Challenger] = (),
) -> Tuple[List[Item], List[Challenger]]:
    """
    Keep the first pool item and the first challenger per id, and drop
    challengers whose id is already in the pool.
    """
    unique: Dict[str, Item] = {}
    for item in pool:
        unique.setdefault(item.id, item)

    seen = set(unique)
    fresh = []
    for challenger in challengers:
        if challenger.id not in seen:
            seen.add(challenger.id)
            fresh.append(challenger)
    return list(unique.values()), fresh


def next_pair(
    pool: Sequence[Item],
    challengers: Sequence[Challenger],
    session_scores: Dict[str, float],
    rng: Optional[random.Random] = None,
    discovery_rate: float = DISCOVERY_RATE,
) -> Pair:
    """
    Pick the next two contenders.

    With probability ``discovery_rate`` (only when there are challengers) a
    random pool item is matched against a random challenger. Otherwise two
    distinct pool items are drawn uniformly.

    Args:
        pool: The user's rateable items
        challengers: Candidates the user does not own yet
        session_scores: Current session score per item id
        rng: Random source, defaults to a fresh ``random.Random``
        discovery_rate: Probability of a discovery round

    Returns:
        The selected pair

    Raises:
        InsufficientItemsError: If the pool has fewer than two distinct ids
    """
    pool, challengers = distinct_entries(pool, challengers)
    if len(pool) < 2:
        raise InsufficientItemsError(
            f"Need at least 2 distinct items to build a pair, got {len(pool)}",
            value=len(pool),
        )

    rng = rng or random.Random()

    if challengers and rng.random() < discovery_rate:
        user_item = pool[rng.randrange(len(pool))]
        challenger = challengers[rng.randrange(len(challengers))]
        return Pair(_hydrate(user_item, session_scores), _seed_challenger(challenger))

    idx1 = rng.randrange(len(pool))
    idx2 = rng.randrange(len(pool))
    while idx1 == idx2:
        idx2 = rng.randrange(len(pool))

    return Pair(_hydrate(pool[idx1], session_scores), _hydrate(pool[idx2], session_scores))


@dataclass
class TournamentSession:
    """
    In-memory state of one ranking session.

    Owned by a single caller; nothing here is synchronized.
    """

    pool: List[Item]
    challengers: List[Challenger] = field(default_factory=list)
    scores: Dict[str, float] = field(default_factory=dict)
    seed_scores: Dict[str, float] = field(default_factory=dict)
    history: List[VoteResult] = field(default_factory=list)
    round_count: int = 0
    ignored_ids: Set[str] = field(default_factory=set)

    @classmethod
    def start(cls, pool: Iterable[Item], challengers: Iterable[Challenger] = ()) -> "TournamentSession":
        unique, fresh = distinct_entries(pool, challengers)
        seeds = {item.id: item.elo_score for item in unique}
        return cls(
            pool=unique,
            challengers=fresh,
            scores=dict(seeds),
            seed_scores=seeds,
        )

    def active_pool(self) -> List[Item]:
        return [item for item in self.pool if item.id not in self.ignored_ids]

    def active_challengers(self) -> List[Challenger]:
        return [c for c in self.challengers if c.id not in self.ignored_ids]


class Matchmaker:
    """
    Drives a tournament: selects pairs, records votes, tracks session scores.
    """

    def __init__(
        self,
        pool: Iterable[Item],
        challengers: Iterable[Challenger] = (),
        k_factor: float = DEFAULT_K_FACTOR,
        discovery_rate: float = DISCOVERY_RATE,
        rng: Optional[random.Random] = None,
    ):
        """
        Start a session and draw the first pair.

        Args:
            pool: The user's rateable items, seeded with their persisted scores
            challengers: Unowned candidates for discovery rounds
            k_factor: K-factor passed to the Elo update
            discovery_rate: Probability of a discovery round
            rng: Random source; pass a seeded ``random.Random`` for repeatable sessions

        Raises:
            ValidationError: If a parameter is out of range
            InsufficientItemsError: If the pool has fewer than two distinct items
        """
        if k_factor <= 0:
            raise ValidationError("k_factor must be positive", value=k_factor)

        if discovery_rate < 0 or discovery_rate > 1:
            raise ValidationError("discovery_rate must be between 0 and 1", value=discovery_rate)

        self.k_factor = k_factor
        self.discovery_rate = discovery_rate
        self.rng = rng or random.Random()
        self.session = TournamentSession.start(pool, challengers)
        self.current_pair: Optional[Pair] = self._draw()

    @property
    def round_count(self) -> int:
        return self.session.round_count

    @property
    def scores(self) -> Dict[str, float]:
        return self.session.scores

    def _draw(self) -> Pair:
        return next_pair(
            self.session.active_pool(),
            self.session.active_challengers(),
            self.session.scores,
            rng=self.rng,
            discovery_rate=self.discovery_rate,
        )

    def record_vote(self, winner_id: str, pair: Optional[Pair] = None) -> VoteResult:
        """
        Score a comparison and move on to the next pair.

        Args:
            winner_id: Id of the contender the user picked
            pair: The pair that was shown, defaults to the current pair

        Returns:
            The winner, the loser and their new scores

        Raises:
            ValidationError: If there is no pair or ``winner_id`` is not in it
        """
        pair = pair or self.current_pair
        if pair is None:
            raise ValidationError("No pair to vote on")

        if winner_id == pair.first.id:
            winner, loser = pair.first, pair.second
        elif winner_id == pair.second.id:
            winner, loser = pair.second, pair.first
        else:
            raise ValidationError(f"{winner_id!r} is not part of the current pair", value=winner_id)

        new_winner_score, new_loser_score = update_ratings(winner.elo, loser.elo, self.k_factor)

        self.session.scores[winner.id] = new_winner_score
        self.session.scores[loser.id] = new_loser_score
        self.session.round_count += 1

        result = VoteResult(winner, loser, new_winner_score, new_loser_score)
        self.session.history.append(result)
        logger.debug(
            "Round %d: %s (%s -> %s) beat %s (%s -> %s)",
            self.session.round_count, winner.id, winner.elo, new_winner_score,
            loser.id, loser.elo, new_loser_score,
        )

        self.current_pair = self._draw()
        return result

    def skip(self) -> Pair:
        """Discard the current pair without scoring it."""
        self.current_pair = self._draw()
        return self.current_pair

    def ignore(self, item_id: str) -> Pair:
        """
        Drop an item or challenger from the rest of the session.

        Raises:
            InsufficientItemsError: If fewer than two pool items remain
        """
        self.session.ignored_ids.add(item_id)
        self.current_pair = self._draw()
        return self.current_pair

    def score_updates(self) -> Dict[str, float]:
        """Session scores of owned items that moved away from their persisted value."""
        return {
            item_id: score
            for item_id, score in self.session.scores.items()
            if item_id in self.session.seed_scores and score != self.session.seed_scores[item_id]
        }

    def flush(self, store) -> int:
        """
        Write changed scores back through ``store.persist_elo_score``.

        Store errors propagate; challengers are never written.

        Returns:
            Number of scores written
        """
        updates = self.score_updates()
        for item_id, score in updates.items():
            store.persist_elo_score(item_id, score)
            self.session.seed_scores[item_id] = score

        logger.debug("Flushed %d session scores", len(updates))
        return len(updates)
