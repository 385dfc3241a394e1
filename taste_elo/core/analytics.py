"""
Taste analytics over rated items.

Every function here is pure: callers load the items (``Item`` instances or
plain mappings with the same field names) and pass them in.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .constants import (
    ALIGNMENT_MAX_DELTA,
    CONTROVERSY_LIMIT,
    CONTROVERSY_THRESHOLD,
    DEFAULT_ELO,
    DEFAULT_TIERS,
    FALLBACK_COLOR,
    MIN_ALIGNMENT_OVERLAP,
    MIN_TASTE_OVERLAP,
    NEUTRAL_TIER_SCORE,
    TASTE_MATCH_MAX_DIFF,
    TIER_COLORS,
    TIER_MIDPOINT,
    TIER_SCORES,
    TIER_STEP_ELO,
    TIER_VALUES,
    TOP_RATED_LIMIT,
    TOP_TAGS_LIMIT,
    UNRANKED,
)
from .elo_rating import round_half_up
from .errors import InsufficientDataError, ValidationError
from .models import RankKind

logger = logging.getLogger(__name__)


@dataclass
class TierBucket:
    tier: str
    count: int
    percentage: int
    color: str


@dataclass
class ControversialItem:
    id: str
    name: str
    tier: str
    elo: float
    expected_elo: float
    diff: float


@dataclass
class MetricBreakdown:
    key: str
    user: float
    cohort: float
    delta: float


@dataclass
class AlignmentResult:
    score: Optional[int]
    metric_breakdown: List[MetricBreakdown] = field(default_factory=list)
    overlapping: int = 0
    message: Optional[str] = None


@dataclass
class MetricDelta:
    current: float
    previous: Optional[float]
    delta: Optional[float]
    period_label: str


@dataclass
class CollectionStats:
    total_rated: int
    tier_data: List[TierBucket]
    top_tags: List[Tuple[str, int]]
    top_rated: List[Any]
    controversial: List[ControversialItem]


def _extract_field(obj: Any, field_name: str, default: Any = None) -> Any:
    """
    Read a field from a dataclass-like object or a mapping.
    """
    try:
        return getattr(obj, field_name)
    except (AttributeError, TypeError):
        try:
            return obj[field_name]
        except (KeyError, TypeError, IndexError):
            return default


def _elo_of(item: Any) -> float:
    elo = _extract_field(item, "elo_score")
    if elo is None:
        elo = _extract_field(item, "eloScore")
    return DEFAULT_ELO if elo is None else elo


def resolve_tier(item: Any) -> str:
    """
    The tier an item sits in: its own tier, then its rank, then its
    most recent rating's tier. Upper-cased; ``"Unranked"`` when none is set.
    """
    tier = _extract_field(item, "tier") or _extract_field(item, "rank")
    if not tier:
        ratings = _extract_field(item, "ratings") or []
        if ratings:
            tier = _extract_field(ratings[0], "tier")
    if not tier:
        return UNRANKED
    return str(tier).upper()


def _ladder(ranks: Optional[Sequence[Any]]) -> List[Tuple[str, str]]:
    if not ranks:
        return [(tier, TIER_COLORS[tier]) for tier in DEFAULT_TIERS]

    ladder = []
    for rank in sorted(ranks, key=lambda r: (_extract_field(r, "sort_order", 0), _extract_field(r, "name"))):
        if _extract_field(rank, "kind", RankKind.RANKED) != RankKind.RANKED:
            continue
        name = str(_extract_field(rank, "name")).upper()
        ladder.append((name, _extract_field(rank, "color") or TIER_COLORS.get(name, FALLBACK_COLOR)))
    return ladder


def tier_distribution(items: Iterable[Any], ranks: Optional[Sequence[Any]] = None) -> List[TierBucket]:
    """
    Count items per tier.

    Unranked items and labels outside the tier ladder are not counted and do
    not take part in the percentages. Each percentage is rounded on its own,
    so they may not add up to exactly 100.

    Args:
        items: Rated items
        ranks: Custom ranks of the category; the S..F ladder is used when omitted

    Returns:
        Non-empty tiers, best tier first
    """
    ladder = _ladder(ranks)
    counts: Dict[str, int] = {tier: 0 for tier, _ in ladder}

    for item in items:
        tier = resolve_tier(item)
        if tier in counts:
            counts[tier] += 1

    total = sum(counts.values())
    if total == 0:
        return []

    return [
        TierBucket(tier, counts[tier], round_half_up(counts[tier] / total * 100), color)
        for tier, color in ladder
        if counts[tier] > 0
    ]


def _tag_name(tag: Any) -> str:
    if isinstance(tag, str):
        return tag
    return _extract_field(tag, "name")


def top_tags(items: Iterable[Any], limit: int = TOP_TAGS_LIMIT) -> List[Tuple[str, int]]:
    """
    Most frequent tags, most frequent first; ties keep the order the tags
    were first seen in.
    """
    if limit < 0:
        raise ValidationError("limit must be non-negative", value=limit)

    counts: Counter = Counter()
    for item in items:
        for tag in _extract_field(item, "tags") or []:
            counts[_tag_name(tag)] += 1
    return counts.most_common(limit)


def controversial_items(items: Iterable[Any]) -> List[ControversialItem]:
    """
    Items whose head-to-head score disagrees with their tier.

    An S item is expected around 1450 and an F item around 950, 100 points
    per tier step. Items more than 150 points away from that are returned,
    biggest gap first, at most five.
    """
    candidates = []
    for item in items:
        tier = resolve_tier(item)
        if tier not in TIER_VALUES:
            continue

        elo = _elo_of(item)
        expected = DEFAULT_ELO + (TIER_VALUES[tier] - TIER_MIDPOINT) * TIER_STEP_ELO
        diff = elo - expected

        if abs(diff) > CONTROVERSY_THRESHOLD:
            candidates.append(ControversialItem(
                id=_extract_field(item, "id"),
                name=_extract_field(item, "name"),
                tier=tier,
                elo=elo,
                expected_elo=expected,
                diff=diff,
            ))

    candidates.sort(key=lambda c: abs(c.diff), reverse=True)
    return candidates[:CONTROVERSY_LIMIT]


def _distance_to_percent(mean_distance: float, max_distance: float) -> int:
    return round_half_up(max(0.0, 100.0 - mean_distance / max_distance * 100.0))


def _require_overlap(count: int, minimum: int, what: str) -> None:
    if count < minimum:
        raise InsufficientDataError(
            f"Need {minimum} {what}, found {count}",
            value=count,
        )


def _rated_catalog_scores(items: Iterable[Any]) -> Dict[str, float]:
    scores = {}
    for item in items:
        catalog_id = _extract_field(item, "catalog_id")
        if catalog_id is None:
            catalog_id = _extract_field(item, "globalItemId")
        elo = _elo_of(item)
        if catalog_id is not None and elo != DEFAULT_ELO:
            scores[catalog_id] = elo
    return scores


def taste_match(user_a_items: Iterable[Any], user_b_items: Iterable[Any]) -> Optional[int]:
    """
    How closely two users agree, 0-100.

    Only catalog entries both users have moved away from the 1200 default
    count. A mean Elo gap of 800 or more is a 0% match.

    Returns:
        The match percentage, or None with fewer than five shared entries
    """
    scores_a = _rated_catalog_scores(user_a_items)
    scores_b = _rated_catalog_scores(user_b_items)
    shared = [key for key in scores_a if key in scores_b]

    try:
        _require_overlap(len(shared), MIN_TASTE_OVERLAP, "shared rated items")
    except InsufficientDataError as exc:
        logger.debug("No taste match: %s", exc)
        return None

    diffs = np.abs(np.array([scores_a[k] for k in shared]) - np.array([scores_b[k] for k in shared]))
    return _distance_to_percent(float(diffs.mean()), TASTE_MATCH_MAX_DIFF)


def tier_score_vector(items: Iterable[Any]) -> Dict[str, int]:
    """
    Map each catalog entry a user has tiered to a 0-100 score
    (S=100 down to D=20, anything else 50).
    """
    vector = {}
    for item in items:
        catalog_id = _extract_field(item, "catalog_id")
        tier = resolve_tier(item)
        if catalog_id is None or tier == UNRANKED:
            continue
        vector[catalog_id] = TIER_SCORES.get(tier, NEUTRAL_TIER_SCORE)
    return vector


def cohort_alignment_score(
    user_vector: Mapping[str, float],
    cohort_vector: Mapping[str, float],
    min_overlap: int = MIN_ALIGNMENT_OVERLAP,
) -> AlignmentResult:
    """
    How closely a user's scores follow a cohort's averages, 0-100.

    Both vectors map the same keys (catalog entries or metrics) to values on
    a 0-100 scale. The cohort side is computed elsewhere.

    Args:
        user_vector: The user's value per key
        cohort_vector: The cohort's average per key
        min_overlap: Shared keys required for a score

    Returns:
        Score and per-key breakdown; score is None when too few keys overlap
    """
    breakdown = [
        MetricBreakdown(key, user_vector[key], cohort_vector[key], user_vector[key] - cohort_vector[key])
        for key in user_vector
        if key in cohort_vector and user_vector[key] is not None and cohort_vector[key] is not None
    ]

    try:
        _require_overlap(len(breakdown), min_overlap, "overlapping items")
    except InsufficientDataError as exc:
        return AlignmentResult(
            score=None,
            metric_breakdown=breakdown,
            overlapping=len(breakdown),
            message=f"Not enough overlap with the cohort: {exc}",
        )

    mean_delta = float(np.mean([abs(m.delta) for m in breakdown]))
    return AlignmentResult(
        score=_distance_to_percent(mean_delta, ALIGNMENT_MAX_DELTA),
        metric_breakdown=breakdown,
        overlapping=len(breakdown),
    )


PERIOD_LABELS = {"week": "this week", "month": "this month"}


def metric_delta(
    snapshots: Sequence[Mapping[str, float]],
    metric: str,
    period: str = "month",
) -> Optional[MetricDelta]:
    """
    Change of one metric between the two most recent snapshots.

    Args:
        snapshots: Metric snapshots, newest first
        metric: Metric name
        period: "week" or "month", used for the label

    Returns:
        The delta, or None without two snapshots or without the metric in the newest one
    """
    if period not in PERIOD_LABELS:
        raise ValidationError(f"Unknown period: {period!r}", value=period)

    if len(snapshots) < 2:
        return None

    current = snapshots[0].get(metric)
    if current is None:
        return None

    previous = snapshots[1].get(metric)
    return MetricDelta(
        current=current,
        previous=previous,
        delta=current - previous if previous is not None else None,
        period_label=PERIOD_LABELS[period],
    )


def _is_top_rated(item: Any) -> bool:
    if resolve_tier(item) == "S":
        return True
    ratings = _extract_field(item, "ratings") or []
    return any(_extract_field(r, "value") == 100 for r in ratings[:1])


def collection_stats(items: Sequence[Any]) -> CollectionStats:
    """Summary of a collection: tier spread, tags, hall of fame, controversies."""
    distribution = tier_distribution(items)
    return CollectionStats(
        total_rated=sum(bucket.count for bucket in distribution),
        tier_data=distribution,
        top_tags=top_tags(items),
        top_rated=[item for item in items if _is_top_rated(item)][:TOP_RATED_LIMIT],
        controversial=controversial_items(items),
    )
