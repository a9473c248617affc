"""
Tournament state container.

One ``TournamentState`` value is the single source of truth for a running
tournament. It is never modified in place: ``tournament_reducer`` takes the
current state and an action and returns the next state, and a
``TournamentStore`` holds the current value and swaps it on every dispatch.
"""
import copy
import logging
import uuid
from typing import Callable, List, Optional, Tuple

from .advancement import (
    LOSERS_FINAL_ROUND,
    losers_feeder_round,
    next_losers_round,
    next_losers_round_one,
    next_winners_round,
    round_losers,
    round_name,
    round_winners,
)
from .completion import (
    build_grand_finals,
    build_grand_finals_reset,
    detect_champions,
    grand_finals_matches,
    is_round_complete,
    matches_in_round,
    needs_reset,
    tournament_winner,
)
from .exceptions import ConfigurationError, MatchLockedError, StateInconsistencyError, UnsupportedBracketError
from .locking import apply_loss_changes, find_match, is_match_locked, plan_winner_change
from .models import (
    DEFAULT_FORMAT,
    BracketType,
    Match,
    MatchFormat,
    Player,
    Tournament,
    TournamentType,
    players_from_names,
)
from .scoring import match_decided_by, record_game
from .seeding import build_initial_matches

logger = logging.getLogger(__name__)

# Roster sizes the double elimination losers' bracket can run end to end
DOUBLE_ELIMINATION_PLAYER_RANGE = range(5, 9)


class TournamentState:
    def __init__(self, tournament_id=None, name='', tournament_type=TournamentType.SINGLE_ELIMINATION,
                 format=None, players=None, matches=None, current_round=1, current_winners_round=1,
                 current_losers_round=1, winners_champion=None, losers_champion=None, grand_champion=None,
                 is_initialized=False, is_over=False, needs_confirmation=None):
        self.tournament_id = tournament_id
        self.name = name
        self.tournament_type = tournament_type
        self.format = format or DEFAULT_FORMAT
        self.players = list(players) if players else []
        self.matches = list(matches) if matches else []
        self.current_round = current_round
        self.current_winners_round = current_winners_round
        self.current_losers_round = current_losers_round
        self.winners_champion = winners_champion
        self.losers_champion = losers_champion
        self.grand_champion = grand_champion
        self.is_initialized = is_initialized
        self.is_over = is_over
        # Match ids already played with a result that has since changed
        self.needs_confirmation = list(needs_confirmation) if needs_confirmation else []

    @property
    def tournament(self) -> Tournament:
        return Tournament(self.tournament_id, self.name, list(self.players), list(self.matches))

    def find_player(self, player_id) -> Optional[Player]:
        return next((p for p in self.players if p.id == player_id), None)

    def replace(self, **changes) -> 'TournamentState':
        updated = copy.copy(self)
        for name, value in changes.items():
            if not hasattr(updated, name):
                raise AttributeError(f"TournamentState has no attribute {name!r}")
            setattr(updated, name, value)
        return updated

    def to_dict(self) -> dict:
        return {
            'id': self.tournament_id,
            'name': self.name,
            'tournament_type': self.tournament_type.value,
            'format': self.format.to_dict(),
            'players': [p.to_dict() for p in self.players],
            'matches': [self._match_dict(m) for m in self.matches],
            'current_round': self.current_round,
            'current_winners_round': self.current_winners_round,
            'current_losers_round': self.current_losers_round,
            'winners_champion': self.winners_champion.to_dict() if self.winners_champion else None,
            'losers_champion': self.losers_champion.to_dict() if self.losers_champion else None,
            'grand_champion': self.grand_champion.to_dict() if self.grand_champion else None,
            'is_initialized': self.is_initialized,
            'is_over': self.is_over,
            'needs_confirmation': list(self.needs_confirmation),
        }

    def _match_dict(self, match: Match) -> dict:
        data = match.to_dict()
        data['round_name'] = round_name(match, len(self.players), self.tournament_type)
        return data

    def __repr__(self):
        return (f"TournamentState(name={self.name}, type={self.tournament_type.value}, "
                f"matches={len(self.matches)}, over={self.is_over})")


# --- Actions ---

class InitializeTournament:
    def __init__(self, players, tournament_type, format=None, name='Tournament', tournament_id=None):
        self.players = players
        self.tournament_type = tournament_type
        self.format = format
        self.name = name
        self.tournament_id = tournament_id


class UpdateMatches:
    def __init__(self, matches):
        self.matches = matches


class SetWinner:
    def __init__(self, match_id, winner):
        self.match_id = match_id
        self.winner = winner


class RecordGame:
    def __init__(self, match_id, winner, score1=0, score2=0):
        self.match_id = match_id
        self.winner = winner
        self.score1 = score1
        self.score2 = score2


class AdvanceRound:
    pass


class SetChampions:
    def __init__(self, winners=None, losers=None, grand=None):
        self.winners = winners
        self.losers = losers
        self.grand = grand


def tournament_reducer(state: TournamentState, action) -> TournamentState:
    """Return the state that results from applying ``action`` to ``state``."""
    if isinstance(action, InitializeTournament):
        return initialize_tournament(action.players, action.tournament_type, action.format,
                                     action.name, action.tournament_id)
    elif isinstance(action, UpdateMatches):
        return state.replace(matches=list(action.matches))
    elif isinstance(action, SetWinner):
        return _apply_winner(state, action.match_id, action.winner)
    elif isinstance(action, RecordGame):
        return _apply_game(state, action)
    elif isinstance(action, AdvanceRound):
        return advance_round(state)
    elif isinstance(action, SetChampions):
        return state.replace(
            winners_champion=action.winners or state.winners_champion,
            losers_champion=action.losers or state.losers_champion,
            grand_champion=action.grand or state.grand_champion,
        )
    raise TypeError(f"Unknown tournament action: {type(action).__name__}")


class TournamentStore:
    """Holds the current state; every dispatch replaces it as a whole."""

    def __init__(self, state: Optional[TournamentState] = None):
        self._state = state or TournamentState()
        self._listeners: List[Callable[[TournamentState], None]] = []

    @property
    def state(self) -> TournamentState:
        return self._state

    def subscribe(self, listener: Callable[[TournamentState], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def dispatch(self, action) -> TournamentState:
        new_state = tournament_reducer(self._state, action)
        self._state = new_state
        for listener in list(self._listeners):
            listener(new_state)
        return new_state


# --- Setup ---

def initialize_tournament(players, tournament_type, format=None, name='Tournament',
                          tournament_id=None) -> TournamentState:
    """
    Seed a new tournament and build its first round.

    ``players`` may be Player objects ordered by seed or plain display names.
    """
    tournament_type = TournamentType.parse(tournament_type)
    format = format or DEFAULT_FORMAT
    if players and all(isinstance(p, str) for p in players):
        players = players_from_names(players)
    players = list(players or [])

    if tournament_type is TournamentType.DOUBLE_ELIMINATION:
        _check_double_elimination_roster(len(players))

    matches = build_initial_matches(players, tournament_type, format)
    state = TournamentState(
        tournament_id=tournament_id or str(uuid.uuid4()),
        name=name,
        tournament_type=tournament_type,
        format=format,
        players=players,
        matches=matches,
        is_initialized=True,
    )
    if tournament_type is TournamentType.DOUBLE_ELIMINATION:
        matches, _ = _sync_losers_round_one(state.matches, state)
        state = state.replace(matches=matches)

    logger.info("Tournament %s started: %s, %d players, %s",
                name, tournament_type.label, len(players), format.label)
    return state


def start_tournament(names: List[str], tournament_type, format: Optional[MatchFormat] = None,
                     name='Tournament') -> TournamentStore:
    """Create a store holding a freshly seeded tournament."""
    store = TournamentStore()
    store.dispatch(InitializeTournament(list(names), tournament_type, format, name))
    return store


def _check_double_elimination_roster(num_players: int):
    if num_players in DOUBLE_ELIMINATION_PLAYER_RANGE:
        return
    if 9 <= num_players <= 16:
        logger.warning("Double elimination with %d players: losers bracket not implemented", num_players)
        raise UnsupportedBracketError(
            f"Double elimination for {num_players} players needs the 16-player losers bracket, "
            f"which is not implemented."
        )
    logger.warning("Double elimination with %d players is not supported", num_players)
    raise ConfigurationError(
        f"Double elimination supports {DOUBLE_ELIMINATION_PLAYER_RANGE.start} to "
        f"{DOUBLE_ELIMINATION_PLAYER_RANGE.stop - 1} players, got {num_players}."
    )


# --- Results ---

def _apply_winner(state: TournamentState, match_id, winner: Player) -> TournamentState:
    change = plan_winner_change(state.matches, match_id, winner, state)
    players = apply_loss_changes(state.players, change.old_loser, change.new_loser)
    matches = change.matches
    dropped = []

    if state.tournament_type is TournamentType.DOUBLE_ELIMINATION:
        matches, dropped = _sync_losers_round_one(matches, state)
        matches = _sync_grand_finals_reset(matches)

    needs_confirmation = list(state.needs_confirmation)
    for match in change.needs_confirmation:
        if match.id not in needs_confirmation:
            needs_confirmation.append(match.id)
    for match in dropped:
        # A rebuilt match starts over; its old result no longer counts
        if match.loser is not None:
            players = apply_loss_changes(players, match.loser, None)
        if match.id in needs_confirmation:
            needs_confirmation.remove(match.id)
    if match_id in needs_confirmation:
        needs_confirmation.remove(match_id)

    return state.replace(matches=matches, players=players, needs_confirmation=needs_confirmation)


def _apply_game(state: TournamentState, action: RecordGame) -> TournamentState:
    target = find_match(state.matches, action.match_id)
    if is_match_locked(target, state):
        raise MatchLockedError(action.match_id)

    updated = record_game(target, action.winner, action.score1, action.score2)
    matches = [updated if m.id == updated.id else m for m in state.matches]
    new_state = state.replace(matches=matches)

    decided_by = match_decided_by(updated)
    if decided_by is not None:
        logger.info("%s wins match %s (%s)", decided_by.name, updated.id, updated.format.label)
        new_state = _apply_winner(new_state, updated.id, decided_by)
    return new_state


def _sync_losers_round_one(matches: List[Match], state: TournamentState) -> Tuple[List[Match], List[Match]]:
    """
    Build losers round 1 once every winners round 1 match is decided.

    When a winners round 1 result changes afterwards, only the pairings that
    changed are rebuilt. Matches whose players are unchanged stay as they are,
    played or not. Returns the new match list and the losers round 1 matches
    that were dropped.
    """
    if state.current_losers_round != 1:
        return matches, []
    wb_round_one = matches_in_round(matches, 1, BracketType.WINNERS)
    if not is_round_complete(matches, 1, BracketType.WINNERS):
        return matches, []

    losers = round_losers(wb_round_one)
    existing = matches_in_round(matches, 1, BracketType.LOSERS)
    others = [m for m in matches if not (m.bracket is BracketType.LOSERS and m.round == 1)]
    target = next_losers_round_one(losers, len(others), state.format)

    def pairing(match):
        return frozenset(p.id for p in match.players)

    by_pairing = {pairing(m): m for m in existing}
    merged = [by_pairing.get(pairing(m), m) for m in target]
    dropped = [m for m in existing if all(m is not k for k in merged)]
    if not dropped and len(merged) == len(existing):
        return matches, []

    for match in dropped:
        logger.warning("Rebuilding losers round 1 match %s, its players changed", match.id)
    logger.info("Losers round 1 generated from: %s", [p.name for p in losers])
    return others + merged, dropped


def _sync_grand_finals_reset(matches: List[Match]) -> List[Match]:
    first, reset = grand_finals_matches(matches)
    if reset is None and needs_reset(first):
        return matches + [build_grand_finals_reset(first)]
    return matches


# --- Round advancement ---

def all_current_round_matches_completed(state: TournamentState) -> bool:
    """True when every match of the active round(s) has a result."""
    if state.is_over or not state.is_initialized:
        return False

    matches = state.matches
    if state.tournament_type is TournamentType.SINGLE_ELIMINATION:
        return is_round_complete(matches, state.current_winners_round, BracketType.WINNERS)
    elif state.tournament_type is TournamentType.DOUBLE_ELIMINATION:
        first, reset = grand_finals_matches(matches)
        if first is not None:
            if first.winner is None:
                return False
            return not needs_reset(first) or (reset is not None and reset.winner is not None)

        wb_matches = matches_in_round(matches, state.current_winners_round, BracketType.WINNERS)
        lb_matches = matches_in_round(matches, state.current_losers_round, BracketType.LOSERS)
        wb_completed = all(m.winner is not None for m in wb_matches)
        lb_completed = all(m.winner is not None for m in lb_matches)
        return wb_completed and lb_completed
    else:
        return False


def advance_round(state: TournamentState) -> TournamentState:
    """
    Close the active round(s) and build whatever comes next.

    Raises:
        StateInconsistencyError: The tournament is over, or a match of the
            active round(s) still has no result.
    """
    if not state.is_initialized:
        raise StateInconsistencyError("The tournament has not been initialized.")
    if state.is_over:
        raise StateInconsistencyError("The tournament is over.")
    if not all_current_round_matches_completed(state):
        logger.warning("Cannot advance: the current round(s) have unfinished matches")
        raise StateInconsistencyError("All matches in the current round(s) must be completed.")

    if state.tournament_type is TournamentType.SINGLE_ELIMINATION:
        new_state = _advance_single_elimination(state)
    elif state.tournament_type is TournamentType.DOUBLE_ELIMINATION:
        new_state = _advance_double_elimination(state)
    else:
        raise ConfigurationError(f"{state.tournament_type.label} brackets are not supported.")

    return new_state.replace(current_round=state.current_round + 1, needs_confirmation=[])


def _roster_entry(state: TournamentState, player: Player) -> Player:
    return state.find_player(player.id) or player


def _advance_single_elimination(state: TournamentState) -> TournamentState:
    current_round = state.current_winners_round
    completed = matches_in_round(state.matches, current_round, BracketType.WINNERS)
    new_matches = next_winners_round(completed, current_round + 1, state.format,
                                     TournamentType.SINGLE_ELIMINATION)

    if new_matches:
        logger.info("SE: advanced to round %d: %s", current_round + 1, [m.id for m in new_matches])
        return state.replace(matches=state.matches + new_matches, current_winners_round=current_round + 1)

    champion = _roster_entry(state, round_winners(completed)[0])
    logger.info("SE tournament over. Winner: %s", champion.name)
    return state.replace(
        winners_champion=champion,
        grand_champion=champion,
        is_over=True,
        current_winners_round=current_round + 1,
    )


def _advance_double_elimination(state: TournamentState) -> TournamentState:
    logger.debug("DE: advancing. WB R%d, LB R%d", state.current_winners_round, state.current_losers_round)

    first, _ = grand_finals_matches(state.matches)
    if first is not None:
        winner = tournament_winner(state.matches, TournamentType.DOUBLE_ELIMINATION)
        champion = _roster_entry(state, winner)
        logger.info("DE tournament over. Winner: %s", champion.name)
        return state.replace(grand_champion=champion, is_over=True)

    matches, _ = _sync_losers_round_one(list(state.matches), state)
    fmt = state.format
    wb_round = state.current_winners_round
    lb_round = state.current_losers_round
    wb_champion = state.winners_champion
    lb_champion = state.losers_champion
    advanced = False

    # Winners bracket
    if wb_champion is None and is_round_complete(matches, wb_round, BracketType.WINNERS):
        completed = matches_in_round(matches, wb_round, BracketType.WINNERS)
        new_wb = next_winners_round(completed, wb_round + 1, fmt)
        if new_wb:
            matches = matches + new_wb
            logger.info("DE: generated WB R%d matches", wb_round + 1)
        else:
            wb_champion = detect_champions(matches, state.players).wb_champion
            logger.info("DE: Winners' Bracket Champion: %s", wb_champion.name)
        wb_round += 1
        advanced = True

    # Losers bracket
    if lb_champion is None and is_round_complete(matches, lb_round, BracketType.LOSERS):
        if lb_round == LOSERS_FINAL_ROUND:
            lb_champion = detect_champions(matches, state.players).lb_champion
            logger.info("DE: Losers' Bracket Champion: %s", lb_champion.name)
            lb_round += 1
            advanced = True
        else:
            next_lb = lb_round + 1
            feeder = losers_feeder_round(next_lb)
            if feeder is None or is_round_complete(matches, feeder, BracketType.WINNERS):
                advancing = round_winners(matches_in_round(matches, lb_round, BracketType.LOSERS))
                dropping = []
                if feeder is not None:
                    dropping = round_losers(matches_in_round(matches, feeder, BracketType.WINNERS))
                new_lb = next_losers_round(advancing, dropping, next_lb, len(state.players), len(matches), fmt)
                matches = matches + new_lb
                lb_round = next_lb
                advanced = True
            else:
                logger.debug("DE: LB R%d waits for WB R%d to finish", next_lb, feeder)

    # Grand Finals
    first, _ = grand_finals_matches(matches)
    if wb_champion and lb_champion and first is None:
        matches = matches + [build_grand_finals(wb_champion, lb_champion, fmt)]
        advanced = True

    if not advanced:
        logger.warning("DE: all current round matches completed, but nothing to advance")
        raise StateInconsistencyError("No round can be advanced from the current state.")

    return state.replace(
        matches=matches,
        current_winners_round=wb_round,
        current_losers_round=lb_round,
        winners_champion=wb_champion,
        losers_champion=lb_champion,
    )
