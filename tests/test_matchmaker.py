"""
Tests for pair selection and vote recording.
"""

import random

import pytest
from taste_elo.core.errors import InsufficientItemsError, ValidationError
from taste_elo.core.matchmaker import Matchmaker, TournamentSession, next_pair
from taste_elo.core.models import Challenger, ContenderSource, Item
from taste_elo.core.store import InMemoryRatingStore


class ScriptedRandom:
    """A random source whose first ``random()`` draws come from a script."""

    def __init__(self, draws, seed=0):
        self._rng = random.Random(seed)
        self.draws = list(draws)

    def random(self):
        if self.draws:
            return self.draws.pop(0)
        return self._rng.random()

    def randrange(self, *args):
        return self._rng.randrange(*args)


def make_items(n, elo=1200):
    return [
        Item(id=f"item{i}", name=f"Item {i}", owner_user_id="alice", category_id="movies", elo_score=elo)
        for i in range(n)
    ]


@pytest.fixture
def items():
    return make_items(5)


@pytest.fixture
def challengers():
    return [Challenger(id="ext1", name="Unseen 1"), Challenger(id="ext2", name="Unseen 2")]


def test_next_pair_requires_two_items():
    """A pool with fewer than two items cannot produce a pair."""
    with pytest.raises(InsufficientItemsError):
        next_pair(make_items(1), [], {})

    with pytest.raises(InsufficientItemsError):
        next_pair([], [], {})


def test_insufficient_items_is_a_validation_error():
    """Callers can catch the pool-size failure as a validation error."""
    with pytest.raises(ValidationError):
        next_pair(make_items(1), [], {})


def test_next_pair_never_repeats_an_item(items):
    """Both contenders are always different items."""
    rng = random.Random(42)
    for _ in range(500):
        pair = next_pair(items, [], {}, rng=rng)
        assert pair.first.id != pair.second.id


def test_next_pair_ignores_duplicate_ids():
    """Two pool entries with the same id never meet each other."""
    pool = [
        Item(id="dup", name="First", owner_user_id="u", category_id="c"),
        Item(id="dup", name="Copy", owner_user_id="u", category_id="c"),
        Item(id="x", name="Other", owner_user_id="u", category_id="c"),
    ]
    rng = random.Random(7)
    for _ in range(200):
        pair = next_pair(pool, [], {}, rng=rng)
        assert set(pair.ids) == {"dup", "x"}
        assert "Copy" not in (pair.first.name, pair.second.name)


def test_next_pair_needs_two_distinct_ids():
    """A pool of one id repeated is too small."""
    pool = [Item(id="dup", name="Dup", owner_user_id="u", category_id="c") for _ in range(3)]
    with pytest.raises(InsufficientItemsError):
        next_pair(pool, [], {})


def test_next_pair_skips_challengers_already_owned():
    """A challenger that is already in the pool is never a discovery opponent."""
    pool = make_items(2)
    challengers = [Challenger(id="item0", name="Owned already")]
    rng = random.Random(3)
    for _ in range(200):
        pair = next_pair(pool, challengers, {}, rng=rng, discovery_rate=1.0)
        assert pair.first.id != pair.second.id
        assert not pair.is_discovery


def test_next_pair_two_item_pool():
    """With two items the only possible pair is those two."""
    pool = make_items(2)
    rng = random.Random(7)
    for _ in range(50):
        pair = next_pair(pool, [], {}, rng=rng)
        assert set(pair.ids) == {"item0", "item1"}


def test_next_pair_hydrates_session_scores(items):
    """Contenders carry the session score, not the stored one."""
    scores = {item.id: 1300 for item in items}
    pair = next_pair(items, [], scores, rng=random.Random(1))
    assert pair.first.elo == 1300
    assert pair.second.elo == 1300
    assert pair.first.source == ContenderSource.USER


def test_next_pair_unknown_score_defaults(items):
    """Items missing from the overlay start at 1200."""
    pair = next_pair(items, [], {}, rng=random.Random(1))
    assert pair.first.elo == 1200


def test_discovery_round(items, challengers):
    """A low draw turns the round into a discovery round."""
    scores = {item.id: 1350 for item in items}
    pair = next_pair(items, challengers, scores, rng=ScriptedRandom([0.1]))

    assert pair.is_discovery
    assert pair.first.source == ContenderSource.USER
    assert pair.first.elo == 1350
    assert pair.second.source == ContenderSource.CHALLENGER
    assert pair.second.elo == 1200
    assert pair.second.id in {"ext1", "ext2"}


def test_no_discovery_above_rate(items, challengers):
    """A draw at or above the discovery rate gives a regular round."""
    pair = next_pair(items, challengers, {}, rng=ScriptedRandom([0.2]))
    assert not pair.is_discovery


def test_no_discovery_without_challengers(items):
    """Without challengers every round is a regular round."""
    rng = ScriptedRandom([0.0] * 20)
    for _ in range(20):
        assert not next_pair(items, [], {}, rng=rng).is_discovery


def test_discovery_rate_roughly_twenty_percent(items, challengers):
    """About one round in five is a discovery round."""
    rng = random.Random(1234)
    rounds = 5000
    discovery = sum(next_pair(items, challengers, {}, rng=rng).is_discovery for _ in range(rounds))
    assert 0.17 < discovery / rounds < 0.23


def test_session_deduplicates_pool():
    """Duplicate ids in the pool collapse to the first occurrence."""
    first = Item(id="a", name="First", owner_user_id="u", category_id="c", elo_score=1300)
    duplicate = Item(id="a", name="Duplicate", owner_user_id="u", category_id="c")
    other = Item(id="b", name="Other", owner_user_id="u", category_id="c")

    session = TournamentSession.start([first, duplicate, other])
    assert [item.id for item in session.pool] == ["a", "b"]
    assert session.scores == {"a": 1300, "b": 1200}


def test_matchmaker_starts_with_a_pair(items):
    """A new session has a pair ready."""
    matchmaker = Matchmaker(items, rng=random.Random(3))
    assert matchmaker.current_pair is not None
    assert matchmaker.round_count == 0


def test_matchmaker_rejects_small_pool():
    """A session needs at least two distinct items."""
    with pytest.raises(InsufficientItemsError):
        Matchmaker(make_items(1))


def test_matchmaker_validates_parameters(items):
    """Out of range settings are rejected."""
    with pytest.raises(ValidationError):
        Matchmaker(items, k_factor=0)
    with pytest.raises(ValidationError):
        Matchmaker(items, discovery_rate=1.5)


def test_record_vote(items):
    """Two equal items: winner gains 16, loser drops 16."""
    matchmaker = Matchmaker(items, rng=random.Random(5))
    pair = matchmaker.current_pair
    winner_id, loser_id = pair.first.id, pair.second.id

    result = matchmaker.record_vote(winner_id)

    assert result.winner.id == winner_id
    assert result.loser.id == loser_id
    assert result.new_winner_score == 1216
    assert result.new_loser_score == 1184
    assert matchmaker.scores[winner_id] == 1216
    assert matchmaker.scores[loser_id] == 1184
    assert matchmaker.round_count == 1
    assert matchmaker.session.history == [result]
    assert matchmaker.current_pair is not None


def test_record_vote_for_second_contender(items):
    """The second contender can win too."""
    matchmaker = Matchmaker(items, rng=random.Random(5))
    pair = matchmaker.current_pair

    result = matchmaker.record_vote(pair.second.id)

    assert result.winner.id == pair.second.id
    assert result.loser.id == pair.first.id


def test_record_vote_uses_session_scores(items):
    """Later rounds start from the scores earlier rounds produced."""
    matchmaker = Matchmaker(items, rng=random.Random(11))
    for _ in range(10):
        pair = matchmaker.current_pair
        expected_first = matchmaker.scores[pair.first.id]
        assert pair.first.elo == expected_first
        matchmaker.record_vote(pair.first.id)
    assert matchmaker.round_count == 10


def test_record_vote_with_explicit_pair(items):
    """A caller may pass the pair it showed."""
    matchmaker = Matchmaker(items, rng=random.Random(8))
    shown = matchmaker.current_pair
    matchmaker.skip()

    result = matchmaker.record_vote(shown.first.id, pair=shown)
    assert result.winner.id == shown.first.id


def test_record_vote_rejects_outsider(items):
    """Voting for an item outside the pair is an error and changes nothing."""
    matchmaker = Matchmaker(items, rng=random.Random(5))
    pair = matchmaker.current_pair
    outsider = next(item.id for item in items if item.id not in pair.ids)

    with pytest.raises(ValidationError):
        matchmaker.record_vote(outsider)

    assert matchmaker.round_count == 0
    assert matchmaker.current_pair is pair


def test_skip_does_not_score(items):
    """Skipping draws a new pair without touching scores."""
    matchmaker = Matchmaker(items, rng=random.Random(9))
    before = dict(matchmaker.scores)

    new_pair = matchmaker.skip()

    assert new_pair is matchmaker.current_pair
    assert matchmaker.scores == before
    assert matchmaker.round_count == 0


def test_ignore_removes_item(items):
    """Ignored items never show up again."""
    matchmaker = Matchmaker(items, rng=random.Random(2))
    matchmaker.ignore("item0")

    for _ in range(100):
        assert "item0" not in matchmaker.skip().ids


def test_ignore_until_pool_exhausted():
    """Ignoring down to one item leaves nothing to compare."""
    matchmaker = Matchmaker(make_items(2), rng=random.Random(2))
    with pytest.raises(InsufficientItemsError):
        matchmaker.ignore("item0")


def test_challenger_vote_not_flushed(items, challengers):
    """Challenger scores live in the session but are never written back."""
    matchmaker = Matchmaker(items, challengers, rng=ScriptedRandom([0.05]))
    pair = matchmaker.current_pair
    assert pair.is_discovery

    matchmaker.record_vote(pair.second.id)

    assert matchmaker.scores[pair.second.id] == 1216
    assert pair.second.id not in matchmaker.score_updates()
    assert matchmaker.score_updates() == {pair.first.id: 1184}


def test_flush_writes_changed_scores(items):
    """Flushing persists only moved scores and resets the baseline."""
    store = InMemoryRatingStore(items)
    matchmaker = Matchmaker(items, rng=random.Random(4))
    pair = matchmaker.current_pair
    matchmaker.record_vote(pair.first.id)

    written = matchmaker.flush(store)

    assert written == 2
    assert store.items[pair.first.id].elo_score == 1216
    assert store.items[pair.second.id].elo_score == 1184
    assert matchmaker.score_updates() == {}
    assert matchmaker.flush(store) == 0


def test_flush_propagates_store_errors(items):
    """A failing store surfaces to the caller."""

    class BrokenStore:
        def persist_elo_score(self, item_id, score):
            raise ConnectionError("database unreachable")

    matchmaker = Matchmaker(items, rng=random.Random(4))
    matchmaker.record_vote(matchmaker.current_pair.first.id)

    with pytest.raises(ConnectionError):
        matchmaker.flush(BrokenStore())


def test_seeded_sessions_repeat(items):
    """The same seed gives the same sequence of pairs."""
    first = Matchmaker(items, rng=random.Random(99))
    second = Matchmaker(items, rng=random.Random(99))
    for _ in range(20):
        assert first.current_pair.ids == second.current_pair.ids
        first.record_vote(first.current_pair.first.id)
        second.record_vote(second.current_pair.first.id)
