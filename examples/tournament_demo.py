"""
Run a short simulated tournament and print the resulting analytics.
"""

import random

from taste_elo import (
    Challenger,
    CustomRankRegistry,
    InMemoryRatingStore,
    Item,
    Matchmaker,
    collection_stats,
    update_ratings,
)


def main():
    # Hidden "true" preference used to simulate the user's votes
    taste = {
        "Alien": 95, "Heat": 90, "Arrival": 85, "Cats": 10,
        "Dune": 80, "Speed": 60, "Jaws": 75, "Gigli": 5,
    }
    tiers = {"Alien": "S", "Heat": "A", "Arrival": "A", "Cats": "F", "Dune": "B", "Speed": "C", "Jaws": "B", "Gigli": "S"}

    items = [
        Item(id=name.lower(), name=name, owner_user_id="me", category_id="films", tier=tiers[name], tags=["film"])
        for name in taste
    ]
    store = InMemoryRatingStore(items)
    challengers = [Challenger(id="ext-heat2", name="Heat 2"), Challenger(id="ext-cats2", name="Cats 2")]

    print("Equal scores:", update_ratings(1200, 1200))

    matchmaker = Matchmaker(items, challengers, rng=random.Random(7))
    for _ in range(60):
        first, second = matchmaker.current_pair
        first_taste = taste.get(first.name, 50)
        second_taste = taste.get(second.name, 50)
        matchmaker.record_vote(first.id if first_taste >= second_taste else second.id)

    written = matchmaker.flush(store)
    print(f"\nRounds: {matchmaker.round_count}, scores written: {written}")
    for item in sorted(store.items.values(), key=lambda i: i.elo_score, reverse=True):
        print(f"{item.name:10s} {item.tier}  {item.elo_score:.0f}")

    stats = collection_stats(list(store.items.values()))
    print("\nTier distribution:")
    for bucket in stats.tier_data:
        print(f"  {bucket.tier}: {bucket.count} ({bucket.percentage}%)")

    print("\nControversial:")
    for entry in stats.controversial:
        print(f"  {entry.name}: tier {entry.tier}, elo {entry.elo:.0f}, expected {entry.expected_elo:.0f}")

    registry = CustomRankRegistry()
    registry.create_rank("films", "Favorites")
    registry.create_rank("films", "Plan to Watch")
    print("\nRanks:")
    for rank in registry.get_ranks("films"):
        print(f"  {rank.sort_order}: {rank.name} ({rank.sentiment.value}, {rank.kind.value})")


if __name__ == "__main__":
    main()
