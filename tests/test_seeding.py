"""
Unit tests for seeding and round-one bracket generation.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from tournatrack.exceptions import ConfigurationError
from tournatrack.models import BracketType, MatchFormat, TournamentType, generate_players, players_from_names
from tournatrack.seeding import (
    build_initial_matches,
    calculate_bracket_size,
    double_elimination_bracket_size,
    get_player_by_seed,
    single_elimination_seed_pairs,
)


def pairing_names(matches):
    return [
        (m.player1.name if m.player1 else None, m.player2.name if m.player2 else None)
        for m in matches
    ]


class TestBracketHelpers:
    """Tests for bracket helper functions."""

    def test_calculate_bracket_size(self):
        assert calculate_bracket_size(2) == 2
        assert calculate_bracket_size(5) == 8
        assert calculate_bracket_size(8) == 8
        assert calculate_bracket_size(9) == 16
        assert calculate_bracket_size(0) == 0

    def test_double_elimination_bracket_size(self):
        assert double_elimination_bracket_size(2) == 8
        assert double_elimination_bracket_size(8) == 8
        assert double_elimination_bracket_size(9) == 16
        assert double_elimination_bracket_size(16) == 16

    def test_double_elimination_bracket_size_too_large(self):
        with pytest.raises(ConfigurationError):
            double_elimination_bracket_size(17)

    def test_get_player_by_seed(self):
        players = generate_players(3)
        assert get_player_by_seed(1, players).name == 'Player 1'
        assert get_player_by_seed(4, players) is None
        assert get_player_by_seed(0, players) is None


class TestSingleElimination:
    """Tests for single elimination round one."""

    def test_four_players_standard_seeding(self, four_players):
        """Seed 1 meets seed 4, seed 2 meets seed 3."""
        matches = build_initial_matches(four_players, TournamentType.SINGLE_ELIMINATION, MatchFormat(1))
        assert pairing_names(matches) == [('A', 'D'), ('B', 'C')]
        assert [m.id for m in matches] == ['se-r1-m1', 'se-r1-m2']
        assert all(m.bracket is BracketType.WINNERS and m.round == 1 for m in matches)

    def test_odd_roster_trailing_bye(self):
        players = players_from_names(['A', 'B', 'C', 'D', 'E'])
        matches = build_initial_matches(players, 'single_elimination', MatchFormat(1))
        assert pairing_names(matches) == [('A', 'D'), ('B', 'C'), ('E', None)]
        assert matches[-1].winner.name == 'E'

    @pytest.mark.parametrize('count', range(2, 17))
    def test_real_match_count(self, count):
        """Every roster gets floor(N/2) real matches and at most one bye."""
        matches = build_initial_matches(generate_players(count), TournamentType.SINGLE_ELIMINATION, MatchFormat(1))
        real = [m for m in matches if not m.is_bye]
        byes = [m for m in matches if m.is_bye]
        assert len(real) == count // 2
        assert len(byes) == count % 2
        seen = [p for m in matches for p in m.players]
        assert len(seen) == count
        assert len(set(seen)) == count

    def test_eight_player_seed_pairs(self):
        assert single_elimination_seed_pairs(8) == [(1, 8), (4, 5), (3, 6), (2, 7)]

    def test_six_player_seed_pairs(self):
        assert single_elimination_seed_pairs(6) == [(1, 6), (2, 5), (3, 4)]

    def test_format_propagated(self, four_players, race_to_3):
        matches = build_initial_matches(four_players, TournamentType.SINGLE_ELIMINATION, race_to_3)
        assert all(m.format == race_to_3 for m in matches)

    def test_input_not_mutated(self, four_players):
        before = list(four_players)
        build_initial_matches(four_players, TournamentType.SINGLE_ELIMINATION, MatchFormat(1))
        assert four_players == before


class TestDoubleElimination:
    """Tests for double elimination round one."""

    def test_eight_players(self, eight_players):
        matches = build_initial_matches(eight_players, TournamentType.DOUBLE_ELIMINATION, MatchFormat(1))
        seeds = [(m.player1.seed, m.player2.seed) for m in matches]
        assert seeds == [(1, 8), (4, 5), (3, 6), (2, 7)]
        assert [m.id for m in matches] == ['wb-r1-m1', 'wb-r1-m2', 'wb-r1-m3', 'wb-r1-m4']

    def test_six_players_top_seeds_get_byes(self, six_players):
        matches = build_initial_matches(six_players, TournamentType.DOUBLE_ELIMINATION, MatchFormat(1))
        byes = [m for m in matches if m.is_bye]
        assert sorted(m.winner.seed for m in byes) == [1, 2]
        assert len([m for m in matches if not m.is_bye]) == 2

    def test_sixteen_players(self):
        matches = build_initial_matches(generate_players(16), TournamentType.DOUBLE_ELIMINATION, MatchFormat(1))
        assert len(matches) == 8
        assert (matches[0].player1.seed, matches[0].player2.seed) == (1, 16)
        assert (matches[-1].player1.seed, matches[-1].player2.seed) == (2, 15)

    def test_twelve_players_uses_sixteen_table(self):
        matches = build_initial_matches(generate_players(12), TournamentType.DOUBLE_ELIMINATION, MatchFormat(1))
        assert len(matches) == 8
        assert len([m for m in matches if m.is_bye]) == 4

    def test_two_players_skip_empty_slots(self):
        """Table entries with two empty seeds produce no match."""
        matches = build_initial_matches(generate_players(2), TournamentType.DOUBLE_ELIMINATION, MatchFormat(1))
        assert [m.id for m in matches] == ['wb-r1-m1', 'wb-r1-m4']
        assert all(m.is_bye for m in matches)

    def test_too_many_players(self):
        with pytest.raises(ConfigurationError):
            build_initial_matches(generate_players(17), TournamentType.DOUBLE_ELIMINATION, MatchFormat(1))


class TestInvalidInput:
    """Tests for rejected setups."""

    @pytest.mark.parametrize('count', [0, 1])
    def test_too_few_players(self, count):
        with pytest.raises(ConfigurationError):
            build_initial_matches(generate_players(count), TournamentType.SINGLE_ELIMINATION, MatchFormat(1))

    def test_unsupported_type(self, four_players):
        with pytest.raises(ConfigurationError):
            build_initial_matches(four_players, TournamentType.ROUND_ROBIN, MatchFormat(1))

    def test_unknown_type_label(self, four_players):
        with pytest.raises(ConfigurationError):
            build_initial_matches(four_players, 'Ladder', MatchFormat(1))
