"""
Match locking and winner changes.

A result may be edited until the bracket has moved past its round. Changing a
winner before that point removes the unplayed matches that were built from
the old result; matches that were already played are kept and reported back
so the caller can ask for them to be confirmed again.
"""
import logging
from typing import List, NamedTuple, Optional

from .exceptions import MatchLockedError, MatchNotFoundError, StateInconsistencyError
from .models import BracketType, Match, Player

logger = logging.getLogger(__name__)


class WinnerChange(NamedTuple):
    matches: List[Match]
    old_winner: Optional[Player]
    old_loser: Optional[Player]
    new_loser: Optional[Player]
    removed: List[Match]
    needs_confirmation: List[Match]


def is_match_locked(match: Match, state) -> bool:
    """
    Decide whether a match result can still be edited.

    Args:
        match: The match to check.
        state: Anything exposing ``is_over``, ``current_winners_round``,
            ``current_losers_round`` and ``grand_champion``.
    """
    if state.is_over:
        return True
    if match.bracket is BracketType.WINNERS and match.round < state.current_winners_round:
        return True
    if match.bracket is BracketType.LOSERS and match.round < state.current_losers_round:
        return True
    if match.bracket is BracketType.GRAND_FINALS and state.grand_champion is not None:
        return True
    return False


def find_match(matches: List[Match], match_id) -> Match:
    for match in matches:
        if match.id == match_id:
            return match
    logger.error("Match with ID %s not found.", match_id)
    raise MatchNotFoundError(match_id)


def _is_downstream(candidate: Match, target: Match) -> bool:
    if candidate.id == target.id:
        return False
    if target.bracket is BracketType.WINNERS:
        if candidate.bracket is BracketType.WINNERS:
            return candidate.round > target.round
        return True
    if target.bracket is BracketType.LOSERS:
        if candidate.bracket is BracketType.LOSERS:
            return candidate.round > target.round
        return candidate.bracket is BracketType.GRAND_FINALS
    return candidate.is_grand_finals_reset and not target.is_grand_finals_reset


def _was_played(match: Match) -> bool:
    # A bye resolves itself, nobody played it
    return match.winner is not None and not match.is_bye


def plan_winner_change(matches: List[Match], match_id, winner: Player, state=None) -> WinnerChange:
    """
    Work out the match list that results from setting a winner.

    Raises:
        MatchNotFoundError: No match has ``match_id``.
        MatchLockedError: ``state`` is given and the match is locked.
        StateInconsistencyError: ``winner`` is not one of the match players.
    """
    target = find_match(matches, match_id)

    if state is not None and is_match_locked(target, state):
        logger.warning("Rejected result for locked match %s", match_id)
        raise MatchLockedError(match_id)

    if winner is None or not target.involves(winner):
        logger.warning("Rejected winner %s for match %s", winner, match_id)
        raise StateInconsistencyError(f"The winner of match {match_id} must be one of its players.")

    old_winner = target.winner
    old_loser = target.loser
    if old_winner is not None and old_winner == winner:
        logger.debug("%s is already the winner of match %s. No change.", winner.name, match_id)
        return WinnerChange(list(matches), old_winner, old_loser, old_loser, [], [])

    updated = target.replace(winner=winner)
    new_loser = updated.loser

    removed = []
    needs_confirmation = []
    if old_winner is not None:
        logger.info("Changing winner for match %s. Old winner: %s, new winner: %s",
                    match_id, old_winner.name, winner.name)
        for candidate in matches:
            if not _is_downstream(candidate, target):
                continue
            if not (candidate.involves(old_winner) or candidate.involves(old_loser)):
                continue
            if _was_played(candidate):
                logger.warning("Match %s was already played with the old result of %s", candidate.id, match_id)
                needs_confirmation.append(candidate)
            else:
                logger.info("Removing unplayed match %s due to winner change in %s", candidate.id, match_id)
                removed.append(candidate)

    removed_ids = {m.id for m in removed}
    new_matches = [
        updated if m.id == target.id else m
        for m in matches
        if m.id not in removed_ids
    ]
    return WinnerChange(new_matches, old_winner, old_loser, new_loser, removed, needs_confirmation)


def set_winner(matches: List[Match], match_id, winner: Player, state=None) -> List[Match]:
    """Return a new match list with the winner recorded and stale downstream matches removed."""
    return plan_winner_change(matches, match_id, winner, state).matches


def apply_loss_changes(players: List[Player], old_loser: Optional[Player],
                       new_loser: Optional[Player]) -> List[Player]:
    """Move one loss from the old loser (if any) to the new loser (if any)."""
    if old_loser == new_loser:
        return list(players)

    updated = []
    for player in players:
        losses = player.losses
        if old_loser is not None and player == old_loser:
            losses -= 1
        if new_loser is not None and player == new_loser:
            losses += 1
            if losses >= 2:
                logger.info("%s is eliminated with %d losses", player.name, losses)
        updated.append(player.with_losses(losses) if losses != player.losses else player)
    return updated
