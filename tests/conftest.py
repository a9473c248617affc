"""
Shared pytest fixtures for bracket engine tests.

Running tests:
    pytest tests/                  - full suite
    pytest tests/ -m "not slow"   - skip the full tournament runs
"""
import pytest
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from tournatrack.models import MatchFormat, generate_players, players_from_names
from tournatrack.state import (
    AdvanceRound,
    SetWinner,
    TournamentStore,
    all_current_round_matches_completed,
    start_tournament,
)


@pytest.fixture
def four_players():
    return players_from_names(['A', 'B', 'C', 'D'])


@pytest.fixture
def eight_players():
    return generate_players(8)


@pytest.fixture
def six_players():
    return generate_players(6)


@pytest.fixture
def race_to_3():
    return MatchFormat(3)


@pytest.fixture
def client():
    """Create a test client backed by a fresh store."""
    import app as app_module
    app_module.store = TournamentStore()
    app_module.app.config['TESTING'] = True
    with app_module.app.test_client() as client:
        yield client


def decide_open_matches(store, pick=None):
    """
    Set a winner for every undecided match that has two players.

    ``pick(match)`` chooses the winner; player1 (the higher seed) by default.
    Matches created along the way (losers round 1, a Grand Finals reset) are
    decided too.
    """
    pick = pick or (lambda m: m.player1)
    while True:
        open_matches = [
            m for m in store.state.matches
            if m.winner is None and m.player1 is not None and m.player2 is not None
        ]
        if not open_matches:
            return
        store.dispatch(SetWinner(open_matches[0].id, pick(open_matches[0])))


def play_out(store, pick=None, max_rounds=20):
    """Decide and advance until the tournament is over."""
    for _ in range(max_rounds):
        if store.state.is_over:
            return store.state
        decide_open_matches(store, pick)
        assert all_current_round_matches_completed(store.state)
        store.dispatch(AdvanceRound())
    raise AssertionError('Tournament did not finish')


@pytest.fixture
def new_store():
    """Factory fixture: new_store(count, type) starts a tournament of generated players."""
    def _make(count, tournament_type='double_elimination', format=None):
        names = [p.name for p in generate_players(count)]
        return start_tournament(names, tournament_type, format)
    return _make
