"""
Round completion, bracket champions and the Grand Finals.

Grand Final: Winners bracket champion (player1) vs Losers bracket champion (player2).
Bracket Reset: if the losers bracket champion wins the Grand Final, a second
match between the same two players decides the tournament.
"""
import logging
from typing import List, NamedTuple, Optional, Tuple

from .advancement import LOSERS_FINAL_ROUND
from .exceptions import StateInconsistencyError
from .models import BracketType, Match, MatchFormat, Player, TournamentType, create_match, make_match_id

logger = logging.getLogger(__name__)


class Champions(NamedTuple):
    wb_champion: Optional[Player] = None
    lb_champion: Optional[Player] = None


def _as_bracket(bracket) -> Optional[BracketType]:
    if bracket is None or isinstance(bracket, BracketType):
        return bracket
    return BracketType(bracket)


def matches_in_round(matches: List[Match], round_number: int, bracket=None) -> List[Match]:
    bracket = _as_bracket(bracket)
    return [
        m for m in matches
        if m.round == round_number and (bracket is None or m.bracket is bracket)
    ]


def is_round_complete(matches: List[Match], round_number: int, bracket=None) -> bool:
    """True when the round has at least one match and every match has a winner."""
    round_matches = matches_in_round(matches, round_number, bracket)
    return len(round_matches) > 0 and all(m.winner is not None for m in round_matches)


def highest_round(matches: List[Match], bracket) -> int:
    """Highest round number generated so far in a bracket, 0 if it is empty."""
    bracket = _as_bracket(bracket)
    return max((m.round for m in matches if m.bracket is bracket), default=0)


def bracket_champion(matches: List[Match], bracket, players: Optional[List[Player]] = None) -> Optional[Player]:
    """
    Find the player who has won a bracket.

    The highest round generated in the bracket must hold exactly one match,
    that match must be decided, and nothing may be pending above it. The
    losers bracket only has a champion once its final round is decided.
    """
    bracket = _as_bracket(bracket)
    top_round = highest_round(matches, bracket)
    if top_round == 0:
        return None
    if bracket is BracketType.LOSERS and top_round != LOSERS_FINAL_ROUND:
        return None

    final_matches = matches_in_round(matches, top_round, bracket)
    if len(final_matches) != 1 or final_matches[0].winner is None:
        return None

    winner = final_matches[0].winner
    if players:
        # Prefer the roster entry, it carries the up to date loss count
        winner = next((p for p in players if p == winner), winner)
    return winner


def detect_champions(matches: List[Match], players: Optional[List[Player]] = None) -> Champions:
    """Return the winners' and losers' bracket champions found so far."""
    wb_champion = bracket_champion(matches, BracketType.WINNERS, players)
    lb_champion = bracket_champion(matches, BracketType.LOSERS, players)
    if wb_champion:
        logger.debug("Winners bracket champion: %s", wb_champion.name)
    if lb_champion:
        logger.debug("Losers bracket champion: %s", lb_champion.name)
    return Champions(wb_champion, lb_champion)


def grand_finals_matches(matches: List[Match]) -> Tuple[Optional[Match], Optional[Match]]:
    """Return the first Grand Finals match and its reset, either may be None."""
    first = next((m for m in matches if m.bracket is BracketType.GRAND_FINALS
                  and not m.is_grand_finals_reset), None)
    reset = next((m for m in matches if m.bracket is BracketType.GRAND_FINALS
                  and m.is_grand_finals_reset), None)
    return first, reset


def build_grand_finals(wb_champion: Player, lb_champion: Player, format: MatchFormat) -> Match:
    """Create the first Grand Finals match: winners' champion vs losers' champion."""
    if wb_champion is None or lb_champion is None:
        raise StateInconsistencyError("Grand Finals need both a winners and a losers bracket champion.")
    if wb_champion == lb_champion:
        raise StateInconsistencyError(f"{wb_champion.name} cannot win both brackets.")

    logger.info("Setting up Grand Finals: %s vs %s", wb_champion.name, lb_champion.name)
    return create_match(
        make_match_id(BracketType.GRAND_FINALS, 1, 1),
        1,
        1,
        wb_champion,
        lb_champion,
        BracketType.GRAND_FINALS,
        is_grand_finals_reset=False,
        format=format,
    )


def needs_reset(grand_finals: Optional[Match]) -> bool:
    """True when the losers' bracket entrant won the first Grand Finals match."""
    if grand_finals is None or grand_finals.is_grand_finals_reset or grand_finals.winner is None:
        return False
    return grand_finals.player2 is not None and grand_finals.winner == grand_finals.player2


def build_grand_finals_reset(grand_finals: Match, format: Optional[MatchFormat] = None) -> Match:
    """Create the deciding Grand Finals match between the same two players."""
    if not needs_reset(grand_finals):
        raise StateInconsistencyError(
            "A Grand Finals reset is only played when the losers bracket champion wins the Grand Finals."
        )

    logger.info("Bracket reset: %s vs %s", grand_finals.player1.name, grand_finals.player2.name)
    return create_match(
        make_match_id(BracketType.GRAND_FINALS, 2, 2),
        2,
        1,
        grand_finals.player1,
        grand_finals.player2,
        BracketType.GRAND_FINALS,
        is_grand_finals_reset=True,
        format=format or grand_finals.format,
    )


def tournament_winner(matches: List[Match], tournament_type) -> Optional[Player]:
    """Return the overall winner, or None while the tournament is still running."""
    tournament_type = TournamentType.parse(tournament_type)

    if tournament_type is TournamentType.SINGLE_ELIMINATION:
        return bracket_champion(matches, BracketType.WINNERS)
    elif tournament_type is TournamentType.DOUBLE_ELIMINATION:
        first, reset = grand_finals_matches(matches)
        if first is None or first.winner is None:
            return None
        if not needs_reset(first):
            return first.winner
        if reset is not None and reset.winner is not None:
            return reset.winner
        return None
    else:
        return None


def is_tournament_complete(matches: List[Match], tournament_type) -> bool:
    """
    Single elimination ends when the last round is one decided match; double
    elimination ends when the Grand Finals (or its reset) is decided.
    """
    return tournament_winner(matches, tournament_type) is not None
