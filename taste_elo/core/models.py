"""
Entities the ranking engine reads and produces.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional, Union

from .constants import DEFAULT_ELO
from .errors import ValidationError


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class RankKind(str, Enum):
    RANKED = "RANKED"
    UTILITY = "UTILITY"


class RatingType(str, Enum):
    NUMERICAL = "NUMERICAL"
    TIER = "TIER"
    HYBRID = "HYBRID"


class ContenderSource(str, Enum):
    USER = "USER"
    CHALLENGER = "CHALLENGER"


def coerce_enum(enum_cls, value: Any, field_name: str):
    """
    Convert a raw value into a member of ``enum_cls``.

    Args:
        enum_cls: Target enumeration
        value: An enum member or its string value (case-insensitive)
        field_name: Name used in the error message

    Returns:
        The matching enum member

    Raises:
        ValidationError: If the value does not name a member
    """
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        for member in enum_cls:
            if member.value.lower() == value.strip().lower():
                return member
    raise ValidationError(f"Invalid {field_name}: {value!r}", value=value)


@dataclass
class Rating:
    """A single user's rating of an item."""

    item_id: str
    user_id: str
    type: RatingType
    value: Optional[float] = None
    tier: Optional[str] = None
    custom_rank: Optional[str] = None
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)

    def __post_init__(self):
        self.type = coerce_enum(RatingType, self.type, "rating type")

        if self.type in (RatingType.NUMERICAL, RatingType.HYBRID):
            if self.value is None:
                raise ValidationError(f"{self.type.value} rating requires a value", value=self.value)
            if self.value < 0 or self.value > 100:
                raise ValidationError("Rating value must be between 0 and 100", value=self.value)

        if self.type in (RatingType.TIER, RatingType.HYBRID) and not self.tier:
            raise ValidationError(f"{self.type.value} rating requires a tier", value=self.tier)


@dataclass
class Item:
    """An entry in a user's collection."""

    id: str
    name: str
    owner_user_id: str
    category_id: str
    elo_score: float = DEFAULT_ELO
    tier: Optional[str] = None
    catalog_id: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    ratings: List[Rating] = field(default_factory=list)
    description: Optional[str] = None
    image: Optional[str] = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def __post_init__(self):
        if self.elo_score is None:
            self.elo_score = DEFAULT_ELO
        if self.elo_score < 0:
            raise ValidationError("Elo score must be non-negative", value=self.elo_score)


@dataclass
class Challenger:
    """A catalog entry the user does not own yet, offered in discovery rounds."""

    id: str
    name: str
    description: Optional[str] = None
    image: Optional[str] = None
    external_id: Optional[str] = None


@dataclass
class CustomRank:
    """A user-defined tier for one category."""

    category_id: str
    name: str
    sentiment: Sentiment = Sentiment.NEUTRAL
    color: Optional[str] = None
    sort_order: int = 0
    kind: RankKind = RankKind.RANKED
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValidationError("Rank name cannot be empty", value=self.name)
        self.sentiment = coerce_enum(Sentiment, self.sentiment, "sentiment")
        self.kind = coerce_enum(RankKind, self.kind, "rank kind")


@dataclass
class Contender:
    """One side of a tournament pair, carrying its current session score."""

    id: str
    name: str
    elo: float
    source: ContenderSource
    entry: Union[Item, Challenger, None] = None

    @property
    def is_challenger(self) -> bool:
        return self.source == ContenderSource.CHALLENGER


@dataclass
class Pair:
    first: Contender
    second: Contender

    def __iter__(self):
        return iter((self.first, self.second))

    @property
    def ids(self):
        return self.first.id, self.second.id

    @property
    def is_discovery(self) -> bool:
        return self.first.is_challenger or self.second.is_challenger


@dataclass
class VoteResult:
    winner: Contender
    loser: Contender
    new_winner_score: float
    new_loser_score: float
