"""
Round advancement for the winners' and losers' brackets.

In double elimination:
- Winners Bracket: players that haven't lost yet
- Losers Bracket: players that have lost once
- Losers round 1 is fed by the winners round 1 losers only
- Even losers rounds (2, 4) take in the players dropping from winners rounds 2 and 3
- Losers round 3 only pairs the round 2 survivors

The losers' bracket pairing tables cover 6- and 8-player rosters inside the
8 slot bracket. Rosters of 5 and 7 produce the same player counts per round as
6 and 8 once the round one byes are accounted for, so they share those tables.
"""
import logging
from typing import Dict, List, Optional, Tuple

from .exceptions import ConfigurationError, StateInconsistencyError, UnsupportedBracketError
from .models import BracketType, Match, MatchFormat, Player, TournamentType, create_match, make_match_id
from .seeding import calculate_bracket_size

logger = logging.getLogger(__name__)

# (losers round, roster profile) -> (advancing LB players, dropping WB players)
LOSERS_ROUND_SHAPES: Dict[Tuple[int, int], Tuple[int, int]] = {
    (2, 8): (2, 2),
    (2, 6): (1, 2),
    (3, 8): (2, 0),
    (3, 6): (2, 0),
    (4, 8): (1, 1),
    (4, 6): (1, 1),
}

LOSERS_FINAL_ROUND = 4


ROUND_LABELS = {2: "Final", 4: "Semifinal", 8: "Quarterfinal"}


def round_name(match: Match, num_players: int, tournament_type=TournamentType.DOUBLE_ELIMINATION) -> str:
    """
    Display name of the round a match belongs to.

    Winners rounds are named after how many bracket slots are left in them
    ("Winners Semifinal", "Round of 16"); losers rounds count back from the
    losers final.
    """
    if match.bracket is BracketType.GRAND_FINALS:
        return "Grand Finals Reset" if match.is_grand_finals_reset else "Grand Finals"

    if match.bracket is BracketType.LOSERS:
        if match.round == LOSERS_FINAL_ROUND:
            return "Losers Final"
        if match.round == LOSERS_FINAL_ROUND - 1:
            return "Losers Semifinal"
        return f"Losers Round {match.round}"

    slots_left = calculate_bracket_size(num_players) >> (match.round - 1)
    label = ROUND_LABELS.get(slots_left, f"Round of {slots_left}")
    if TournamentType.parse(tournament_type) is TournamentType.DOUBLE_ELIMINATION:
        return f"Winners {label}"
    return label


def losers_feeder_round(losers_round: int) -> Optional[int]:
    """
    Winners round whose losers drop into the given losers round.

    Losers round 1 takes winners round 1; every even losers round takes the
    next winners round; odd rounds after the first take no droppers.
    """
    if losers_round == 1:
        return 1
    if losers_round % 2 == 0:
        return losers_round // 2 + 1
    return None


def losers_bracket_profile(actual_player_count: int) -> int:
    """Map a roster size to the losers' bracket table it uses (6 or 8)."""
    if 9 <= actual_player_count <= 16:
        logger.warning("Losers bracket: 16-player bracket logic is not implemented (%d players)",
                       actual_player_count)
        raise UnsupportedBracketError(
            f"Losers bracket rounds for a 16-player bracket are not implemented ({actual_player_count} players)."
        )
    if actual_player_count in (7, 8):
        return 8
    if actual_player_count in (5, 6):
        return 6
    logger.error("Losers bracket: unsupported number of actual players: %d", actual_player_count)
    raise ConfigurationError(
        f"Unsupported number of players ({actual_player_count}) for the losers bracket."
    )


def round_winners(matches: List[Match]) -> List[Player]:
    """Winners of the given matches, in match order."""
    ordered = sorted(matches, key=lambda m: m.match_number)
    return [m.winner for m in ordered if m.winner is not None]


def round_losers(matches: List[Match]) -> List[Player]:
    """Losers of the given matches, in match order; byes have no loser."""
    ordered = sorted(matches, key=lambda m: m.match_number)
    return [m.loser for m in ordered if m.loser is not None]


def next_winners_round(completed_round_matches: List[Match], next_round_number: int, format: MatchFormat,
                       tournament_type=TournamentType.DOUBLE_ELIMINATION) -> List[Match]:
    """
    Pair the winners of a finished round into the next winners' bracket round.

    Consecutive winners meet (match 1 winner vs match 2 winner, ...); an odd
    winner out gets a bye. A single remaining winner is the bracket champion
    and produces no match.
    """
    undecided = [m.id for m in completed_round_matches if m.winner is None]
    if undecided:
        logger.warning("Winners round %d requested with undecided matches: %s", next_round_number, undecided)
        raise StateInconsistencyError(
            f"Cannot build winners round {next_round_number}: matches {', '.join(undecided)} have no winner."
        )

    winners = round_winners(completed_round_matches)
    if len(winners) < 2:
        return []

    tournament_type = TournamentType.parse(tournament_type)
    matches = []
    for i in range(0, len(winners), 2):
        player1 = winners[i]
        player2 = winners[i + 1] if i + 1 < len(winners) else None
        match_number = i // 2 + 1
        matches.append(create_match(
            make_match_id(BracketType.WINNERS, next_round_number, match_number, tournament_type),
            next_round_number,
            match_number,
            player1,
            player2,
            BracketType.WINNERS,
            format=format,
        ))
    return matches


def next_losers_round_one(wb_round1_losers: List[Player], existing_match_count: int,
                          format: MatchFormat) -> List[Match]:
    """
    Build losers round 1 from the players who lost in winners round 1.

    Four losers are crossed (first vs last, second vs third) so that players
    from neighbouring winners matches do not meet straight away.
    """
    num_losers = len(wb_round1_losers)
    logger.debug("Losers round 1 from %d losers (existing matches: %d)", num_losers, existing_match_count)

    if num_losers == 0:
        return []
    elif num_losers == 1:
        pairings = [(wb_round1_losers[0], None)]
    elif num_losers == 2:
        pairings = [(wb_round1_losers[0], wb_round1_losers[1])]
    elif num_losers == 3:
        pairings = [(wb_round1_losers[0], wb_round1_losers[1]), (wb_round1_losers[2], None)]
    elif num_losers == 4:
        pairings = [(wb_round1_losers[0], wb_round1_losers[3]), (wb_round1_losers[1], wb_round1_losers[2])]
    else:
        logger.error("Losers round 1: unsupported number of losers (%d)", num_losers)
        raise ConfigurationError(f"Unsupported number of winners round 1 losers ({num_losers}).")

    return _build_losers_matches(pairings, 1, format)


def next_losers_round(advancing_lb_players: List[Player], dropping_wb_players: List[Player],
                      next_round_number: int, actual_player_count: int, existing_match_count: int,
                      format: MatchFormat) -> List[Match]:
    """
    Build losers rounds 2 to 4.

    Args:
        advancing_lb_players: Winners of the previous losers round, in match order.
        dropping_wb_players: Players who just lost in the feeding winners round.
        next_round_number: Losers round to build (2, 3 or 4).
        actual_player_count: Size of the roster, not of the bracket.
        existing_match_count: Number of matches already in the tournament.
        format: Race format for the new matches.

    Returns:
        The new losers' bracket matches.
    """
    profile = losers_bracket_profile(actual_player_count)
    logger.debug(
        "Losers round %d (%d players, existing matches: %d). Advancing: %s. Dropping: %s",
        next_round_number, actual_player_count, existing_match_count,
        [p.name for p in advancing_lb_players], [p.name for p in dropping_wb_players],
    )

    shape = LOSERS_ROUND_SHAPES.get((next_round_number, profile))
    if shape is None:
        logger.warning("Losers round %d is not part of the %d-player bracket", next_round_number, profile)
        raise ConfigurationError(
            f"Unsupported losers round {next_round_number} for the {profile}-player losers bracket."
        )

    expected_advancing, expected_dropping = shape
    if len(advancing_lb_players) != expected_advancing or len(dropping_wb_players) != expected_dropping:
        logger.warning(
            "Losers round %d (%dP): incorrect player counts. Advancing: %d, dropping: %d",
            next_round_number, actual_player_count, len(advancing_lb_players), len(dropping_wb_players),
        )
        raise StateInconsistencyError(
            f"Losers round {next_round_number} for {actual_player_count} players expects "
            f"{expected_advancing} advancing and {expected_dropping} dropping players, got "
            f"{len(advancing_lb_players)} and {len(dropping_wb_players)}."
        )

    if next_round_number == 2 and profile == 8:
        pairings = [
            (advancing_lb_players[0], dropping_wb_players[0]),
            (advancing_lb_players[1], dropping_wb_players[1]),
        ]
    elif next_round_number == 2:
        # The second player dropping from the winners bracket gets a bye into round 3
        pairings = [
            (advancing_lb_players[0], dropping_wb_players[0]),
            (dropping_wb_players[1], None),
        ]
    elif next_round_number == 3:
        pairings = [(advancing_lb_players[0], advancing_lb_players[1])]
    else:
        pairings = [(advancing_lb_players[0], dropping_wb_players[0])]

    matches = _build_losers_matches(pairings, next_round_number, format)
    logger.info(
        "Losers round %d generated: %s", next_round_number,
        [f"{m.player1.name} vs {m.player2.name if m.player2 else 'BYE'}" for m in matches],
    )
    return matches


def _build_losers_matches(pairings, round_number: int, format: MatchFormat) -> List[Match]:
    matches = []
    for match_number, (player1, player2) in enumerate(pairings, start=1):
        matches.append(create_match(
            make_match_id(BracketType.LOSERS, round_number, match_number),
            round_number,
            match_number,
            player1,
            player2,
            BracketType.LOSERS,
            format=format,
        ))
    return matches
