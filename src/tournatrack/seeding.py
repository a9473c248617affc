"""
Initial bracket generation: seeding and round-one pairings.
"""
import logging
from typing import List, Optional, Tuple

from .exceptions import ConfigurationError
from .models import BracketType, Match, MatchFormat, Player, TournamentType, create_match, make_match_id

logger = logging.getLogger(__name__)

SUPPORTED_DOUBLE_SIZES = (8, 16)

# Round-one seed pairings for double elimination, listed in match order.
DOUBLE_ELIMINATION_SEEDINGS = {
    8: [(1, 8), (4, 5), (3, 6), (2, 7)],
    16: [(1, 16), (8, 9), (5, 12), (4, 13), (3, 14), (6, 11), (7, 10), (2, 15)],
}


SINGLE_ELIMINATION_SEEDINGS = {
    2: [(1, 2)],
    4: [(1, 4), (2, 3)],
    8: DOUBLE_ELIMINATION_SEEDINGS[8],
    16: DOUBLE_ELIMINATION_SEEDINGS[16],
}


def calculate_bracket_size(num_players: int) -> int:
    """Smallest power of two that seats every player."""
    if num_players <= 0:
        return 0
    return 1 << (num_players - 1).bit_length()


def double_elimination_bracket_size(num_players: int) -> int:
    """
    Pick the seeding table for a double elimination roster.

    Rosters up to 8 use the 8 table, rosters up to 16 the 16 table; missing
    seeds become byes.
    """
    for size in SUPPORTED_DOUBLE_SIZES:
        if num_players <= size:
            return size
    raise ConfigurationError(
        f"Unsupported number of players ({num_players}) for double elimination. "
        f"Max {SUPPORTED_DOUBLE_SIZES[-1]} supported."
    )


def get_player_by_seed(seed: int, players: List[Player]) -> Optional[Player]:
    """Return the player holding a 1-indexed seed, or None when the seed is a bye slot."""
    if seed <= 0 or seed > len(players):
        return None
    return players[seed - 1]


def build_initial_matches(players: List[Player], tournament_type, format: MatchFormat) -> List[Match]:
    """
    Create round-one matches of the winners' bracket.

    Args:
        players: Roster ordered by seed (index 0 is seed 1). Not modified.
        tournament_type: Single or double elimination.
        format: Race format shared by every match.

    Returns:
        Round-one matches; byes already carry their winner.
    """
    tournament_type = TournamentType.parse(tournament_type)
    if len(players) < 2:
        logger.warning("Initial matches: fewer than 2 players (%d)", len(players))
        raise ConfigurationError(f"At least 2 players are required, got {len(players)}.")

    if tournament_type is TournamentType.SINGLE_ELIMINATION:
        return _build_single_elimination_matches(players, format)
    elif tournament_type is TournamentType.DOUBLE_ELIMINATION:
        return _build_double_elimination_matches(players, format)
    else:
        raise ConfigurationError(f"{tournament_type.label} brackets are not supported.")


def single_elimination_seed_pairs(num_players: int) -> List[Tuple[int, Optional[int]]]:
    """
    Round-one seed pairs for single elimination.

    Standard bracket sizes use the seeding tables. Any other roster folds the
    seeds (1 vs N, 2 vs N-1, ...) so every player gets a real opponent; with an
    odd roster the trailing seed is left over and gets a bye.
    """
    if num_players in SINGLE_ELIMINATION_SEEDINGS:
        return list(SINGLE_ELIMINATION_SEEDINGS[num_players])

    paired = num_players - num_players % 2
    pairs = [(seed, paired + 1 - seed) for seed in range(1, paired // 2 + 1)]
    if num_players % 2:
        pairs.append((num_players, None))
    return pairs


def _build_single_elimination_matches(players: List[Player], format: MatchFormat) -> List[Match]:
    matches = []
    for match_number, (seed1, seed2) in enumerate(single_elimination_seed_pairs(len(players)), start=1):
        player1 = get_player_by_seed(seed1, players)
        player2 = get_player_by_seed(seed2, players) if seed2 is not None else None
        matches.append(create_match(
            make_match_id(BracketType.WINNERS, 1, match_number, TournamentType.SINGLE_ELIMINATION),
            1,
            match_number,
            player1,
            player2,
            BracketType.WINNERS,
            format=format,
        ))
    return matches


def _build_double_elimination_matches(players: List[Player], format: MatchFormat) -> List[Match]:
    bracket_size = double_elimination_bracket_size(len(players))
    logger.debug("Double elimination: %d players, bracket size %d, %d byes",
                 len(players), bracket_size, bracket_size - len(players))

    matches = []
    for match_number, (seed1, seed2) in enumerate(DOUBLE_ELIMINATION_SEEDINGS[bracket_size], start=1):
        player1 = get_player_by_seed(seed1, players)
        player2 = get_player_by_seed(seed2, players)

        # Two empty seeds make no match at all
        if player1 is None and player2 is None:
            continue

        matches.append(create_match(
            make_match_id(BracketType.WINNERS, 1, match_number),
            1,
            match_number,
            player1,
            player2,
            BracketType.WINNERS,
            format=format,
        ))
    return matches
