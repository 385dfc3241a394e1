"""
Product constants shared by the ranking engine and the analytics.

These values are fixed by the product; per-instance overrides are passed
as constructor arguments where a component supports them.
"""

from typing import Dict, List, Tuple

# Elo
DEFAULT_ELO = 1200.0
DEFAULT_K_FACTOR = 32.0
ELO_SCALE = 400.0

# Matchmaking
DISCOVERY_RATE = 0.20

# Analytics
CONTROVERSY_THRESHOLD = 150
CONTROVERSY_LIMIT = 5
TIER_STEP_ELO = 100
TIER_MIDPOINT = 3.5
TASTE_MATCH_MAX_DIFF = 800
MIN_TASTE_OVERLAP = 5
MIN_ALIGNMENT_OVERLAP = 3
ALIGNMENT_MAX_DELTA = 100
TOP_TAGS_LIMIT = 5
TOP_RATED_LIMIT = 4

UNRANKED = "Unranked"

DEFAULT_TIERS: List[str] = ["S", "A", "B", "C", "D", "F"]

# Ordinal used for controversy detection (S is best)
TIER_VALUES: Dict[str, int] = {
    "S": 6,
    "A": 5,
    "B": 4,
    "C": 3,
    "D": 2,
    "F": 1,
}

# 0-100 score used when comparing a user against a cohort
TIER_SCORES: Dict[str, int] = {
    "S": 100,
    "A": 80,
    "B": 60,
    "C": 40,
    "D": 20,
}
NEUTRAL_TIER_SCORE = 50

TIER_COLORS: Dict[str, str] = {
    "S": "#f87171",
    "A": "#fb923c",
    "B": "#facc15",
    "C": "#4ade80",
    "D": "#60a5fa",
    "F": "#3b82f6",
    UNRANKED: "#71717a",
}
FALLBACK_COLOR = "#ffffff"

# Rank names containing one of these are bookkeeping lists, not quality tiers
UTILITY_KEYWORDS: Tuple[str, ...] = ("watchlist", "plan to", "dropped", "never seen")
