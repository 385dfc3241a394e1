"""
Storage boundaries of the engine and in-memory implementations of them.

The engine never owns persistence. Production callers back these
protocols with their database; the in-memory stores serve tests and
embedded use.
"""

import copy
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Protocol

from .errors import ValidationError
from .models import CustomRank, Item, Rating

logger = logging.getLogger(__name__)


class RatingStore(Protocol):
    """Where items and their ratings live."""

    def get_items_for_user(self, user_id: str, category_id: Optional[str] = None) -> List[Item]:
        ...

    def get_rating(self, item_id: str, user_id: str) -> Optional[Rating]:
        ...

    def replace_rating(self, rating: Rating) -> Rating:
        ...

    def set_item_tier(self, item_id: str, tier: Optional[str]) -> None:
        ...

    def persist_elo_score(self, item_id: str, score: float) -> None:
        ...


class RankStore(Protocol):
    """Where custom ranks live. ``transaction`` must be all-or-nothing per category."""

    def list_ranks(self, category_id: str) -> List[CustomRank]:
        ...

    def get_rank(self, rank_id: str) -> Optional[CustomRank]:
        ...

    def insert_rank(self, rank: CustomRank) -> CustomRank:
        ...

    def save_rank(self, rank: CustomRank) -> CustomRank:
        ...

    def delete_rank(self, rank_id: str) -> None:
        ...

    def transaction(self, category_id: str):
        ...


class InMemoryRatingStore:
    """
    Dictionary-backed RatingStore.

    ``replace_rating`` deletes and inserts under one lock, so readers never
    see two ratings for the same (item, user).
    """

    def __init__(self, items: Optional[List[Item]] = None):
        self.items: Dict[str, Item] = {item.id: item for item in items or []}
        self.ratings: Dict[tuple, Rating] = {}
        self._lock = threading.RLock()

    def add_item(self, item: Item) -> Item:
        with self._lock:
            self.items[item.id] = item
            return item

    def _require_item(self, item_id: str) -> Item:
        item = self.items.get(item_id)
        if item is None:
            raise ValidationError(f"Unknown item: {item_id}", value=item_id)
        return item

    def get_items_for_user(self, user_id: str, category_id: Optional[str] = None) -> List[Item]:
        with self._lock:
            return [
                item for item in self.items.values()
                if item.owner_user_id == user_id and (category_id is None or item.category_id == category_id)
            ]

    def get_rating(self, item_id: str, user_id: str) -> Optional[Rating]:
        with self._lock:
            return self.ratings.get((item_id, user_id))

    def replace_rating(self, rating: Rating) -> Rating:
        with self._lock:
            item = self._require_item(rating.item_id)
            key = (rating.item_id, rating.user_id)

            previous = self.ratings.pop(key, None)
            if previous is not None:
                item.ratings = [r for r in item.ratings if r.id != previous.id]

            self.ratings[key] = rating
            item.ratings.insert(0, rating)
            return rating

    def set_item_tier(self, item_id: str, tier: Optional[str]) -> None:
        with self._lock:
            self._require_item(item_id).tier = tier

    def persist_elo_score(self, item_id: str, score: float) -> None:
        if score < 0:
            raise ValidationError("Elo score must be non-negative", value=score)
        with self._lock:
            self._require_item(item_id).elo_score = score


class InMemoryRankStore:
    """
    Dictionary-backed RankStore with one lock per category.

    ``transaction`` snapshots the category and restores it if the block
    raises.
    """

    def __init__(self):
        self._by_category: Dict[str, Dict[str, CustomRank]] = {}
        self._category_of: Dict[str, str] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, category_id: str) -> threading.RLock:
        with self._locks_guard:
            if category_id not in self._locks:
                self._locks[category_id] = threading.RLock()
            return self._locks[category_id]

    @contextmanager
    def transaction(self, category_id: str) -> Iterator[None]:
        with self._lock_for(category_id):
            snapshot = copy.deepcopy(self._by_category.get(category_id, {}))
            try:
                yield
            except Exception:
                current = self._by_category.get(category_id, {})
                for rank_id in current:
                    if rank_id not in snapshot:
                        self._category_of.pop(rank_id, None)
                self._by_category[category_id] = snapshot
                for rank_id in snapshot:
                    self._category_of[rank_id] = category_id
                logger.info("Rolled back rank changes for category %s", category_id)
                raise

    def list_ranks(self, category_id: str) -> List[CustomRank]:
        with self._lock_for(category_id):
            return list(self._by_category.get(category_id, {}).values())

    def get_rank(self, rank_id: str) -> Optional[CustomRank]:
        category_id = self._category_of.get(rank_id)
        if category_id is None:
            return None
        with self._lock_for(category_id):
            return self._by_category.get(category_id, {}).get(rank_id)

    def insert_rank(self, rank: CustomRank) -> CustomRank:
        with self._lock_for(rank.category_id):
            self._by_category.setdefault(rank.category_id, {})[rank.id] = rank
            self._category_of[rank.id] = rank.category_id
            return rank

    def save_rank(self, rank: CustomRank) -> CustomRank:
        with self._lock_for(rank.category_id):
            if rank.id not in self._by_category.get(rank.category_id, {}):
                raise ValidationError(f"Unknown rank: {rank.id}", value=rank.id)
            self._by_category[rank.category_id][rank.id] = rank
            return rank

    def delete_rank(self, rank_id: str) -> None:
        category_id = self._category_of.get(rank_id)
        if category_id is None:
            raise ValidationError(f"Unknown rank: {rank_id}", value=rank_id)
        with self._lock_for(category_id):
            self._by_category[category_id].pop(rank_id, None)
            self._category_of.pop(rank_id, None)
