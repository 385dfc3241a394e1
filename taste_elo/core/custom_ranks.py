"""
Per-category tier definitions.

Each category starts with the classic S..F ladder the first time a rank is
requested, and users can add their own tiers on top. New tiers are tagged
with a sentiment (so analytics know which tiers mean "liked") and a kind
(bookkeeping lists such as a watchlist are UTILITY and never compared).
"""

import dataclasses
import logging
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from .constants import DEFAULT_TIERS, TIER_COLORS, UTILITY_KEYWORDS
from .errors import ValidationError
from .models import CustomRank, RankKind, Sentiment, coerce_enum
from .simple_classifier import KeywordSentimentClassifier, LabelClassifier
from .store import InMemoryRankStore, RankStore

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "sentiment", "color", "sort_order", "kind")


def detect_kind(name: str) -> RankKind:
    """UTILITY when the name reads like a bookkeeping list, otherwise RANKED."""
    label = name.lower()
    if any(keyword in label for keyword in UTILITY_KEYWORDS):
        return RankKind.UTILITY
    return RankKind.RANKED


def _sorted(ranks: Iterable[CustomRank]) -> List[CustomRank]:
    return sorted(ranks, key=lambda r: (r.sort_order, r.name))


class CustomRankRegistry:
    """
    CRUD and ordering for custom ranks, one category at a time.
    """

    def __init__(self, store: Optional[RankStore] = None, classifier: Optional[LabelClassifier] = None):
        """
        Args:
            store: Where ranks are kept, defaults to an in-memory store
            classifier: Sentiment classifier for new or renamed ranks,
                defaults to keyword matching
        """
        self.store = store if store is not None else InMemoryRankStore()
        self.classifier = classifier if classifier is not None else KeywordSentimentClassifier()

    def classify(self, name: str) -> Sentiment:
        """
        Ask the classifier for a sentiment, falling back to neutral on any failure.
        """
        try:
            return coerce_enum(Sentiment, self.classifier.classify_sentiment(name), "sentiment")
        except Exception as exc:
            logger.warning("Failed to classify sentiment of %r, defaulting to neutral: %s", name, exc)
            return Sentiment.NEUTRAL

    def get_ranks(self, category_id: str) -> List[CustomRank]:
        """Ranks of a category ordered by sort order, then name."""
        return _sorted(self.store.list_ranks(category_id))

    def ranked_ranks(self, category_id: str) -> List[CustomRank]:
        """The comparable tier ladder of a category, UTILITY ranks left out."""
        return [r for r in self.get_ranks(category_id) if r.kind == RankKind.RANKED]

    def _bootstrap_defaults(self, category_id: str) -> None:
        for sort_order, tier in enumerate(DEFAULT_TIERS):
            self.store.insert_rank(CustomRank(
                category_id=category_id,
                name=tier,
                sentiment=Sentiment.NEUTRAL,
                color=TIER_COLORS[tier],
                sort_order=sort_order,
                kind=RankKind.RANKED,
            ))
        logger.info("Created default ranks for category %s", category_id)

    def create_rank(
        self,
        category_id: str,
        name: str,
        sentiment: Union[Sentiment, str, None] = None,
        color: Optional[str] = None,
        sort_order: Optional[int] = None,
        kind: Union[RankKind, str, None] = None,
    ) -> CustomRank:
        """
        Add a rank to a category, creating the default ladder first if the
        category has none.

        Args:
            category_id: Owning category
            name: Rank label
            sentiment: Explicit sentiment; classified from the name when omitted
            color: Display color
            sort_order: Position; defaults to after the last rank
            kind: RANKED or UTILITY; detected from the name when omitted

        Returns:
            The stored rank
        """
        if not name or not name.strip():
            raise ValidationError("Rank name cannot be empty", value=name)

        resolved_sentiment = (
            coerce_enum(Sentiment, sentiment, "sentiment") if sentiment is not None else self.classify(name)
        )
        resolved_kind = coerce_enum(RankKind, kind, "rank kind") if kind is not None else detect_kind(name)

        with self.store.transaction(category_id):
            if not self.store.list_ranks(category_id):
                self._bootstrap_defaults(category_id)

            if sort_order is None:
                existing = self.store.list_ranks(category_id)
                sort_order = max((r.sort_order for r in existing), default=-1) + 1

            return self.store.insert_rank(CustomRank(
                category_id=category_id,
                name=name,
                sentiment=resolved_sentiment,
                color=color,
                sort_order=sort_order,
                kind=resolved_kind,
            ))

    def _require(self, rank_id: str) -> CustomRank:
        rank = self.store.get_rank(rank_id)
        if rank is None:
            raise ValidationError(f"Custom rank not found: {rank_id}", value=rank_id)
        return rank

    def update_rank(self, rank_id: str, **changes: Any) -> CustomRank:
        """
        Change some fields of a rank.

        Renaming without an explicit sentiment re-classifies the new name.

        Raises:
            ValidationError: If the rank does not exist, a field is unknown or the
                new name is blank
        """
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update fields: {sorted(unknown)}", value=sorted(unknown))

        rank = self._require(rank_id)

        name = changes.get("name")
        if name is not None and not name.strip():
            raise ValidationError("Rank name cannot be empty", value=name)
        if name is not None and name != rank.name and changes.get("sentiment") is None:
            changes["sentiment"] = self.classify(name)

        # Drop explicit Nones for fields that can't be empty
        for key in ("name", "sentiment", "sort_order", "kind"):
            if key in changes and changes[key] is None:
                del changes[key]

        with self.store.transaction(rank.category_id):
            updated = dataclasses.replace(rank, **changes)
            return self.store.save_rank(updated)

    def delete_rank(self, rank_id: str) -> CustomRank:
        """Remove a rank. Items keep their label and show up as unranked."""
        rank = self._require(rank_id)
        with self.store.transaction(rank.category_id):
            self.store.delete_rank(rank_id)
        return rank

    def reorder_ranks(
        self,
        category_id: str,
        orders: Iterable[Union[Mapping[str, Any], Tuple[str, int]]],
    ) -> List[CustomRank]:
        """
        Apply new sort orders to several ranks at once.

        Either every change is applied or none is.

        Args:
            category_id: Category whose ranks are reordered
            orders: ``{"id": ..., "sort_order": ...}`` mappings or ``(id, sort_order)`` tuples

        Returns:
            The category's ranks in their new order

        Raises:
            ValidationError: If an entry is malformed or names a rank outside the category
        """
        parsed = []
        for entry in orders:
            if isinstance(entry, Mapping):
                rank_id, sort_order = entry.get("id"), entry.get("sort_order", entry.get("sortOrder"))
            else:
                rank_id, sort_order = entry
            if rank_id is None or not isinstance(sort_order, int):
                raise ValidationError(f"Malformed reorder entry: {entry!r}", value=entry)
            parsed.append((rank_id, sort_order))

        with self.store.transaction(category_id):
            current = {r.id: r for r in self.store.list_ranks(category_id)}
            for rank_id, sort_order in parsed:
                if rank_id not in current:
                    raise ValidationError(
                        f"Rank {rank_id} does not belong to category {category_id}", value=rank_id
                    )
                self.store.save_rank(dataclasses.replace(current[rank_id], sort_order=sort_order))

        logger.info("Reordered %d ranks in category %s", len(parsed), category_id)
        return self.get_ranks(category_id)
