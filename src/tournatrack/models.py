"""
Data model shared by the bracket engine.

Players, match formats, games and matches are plain objects. Matches are never
edited in place by the engine: every change goes through ``Match.replace`` so
that a new match list can be swapped in as a whole.
"""
import copy
import re
from enum import Enum
from typing import List, Optional

from .exceptions import ConfigurationError


class BracketType(Enum):
    WINNERS = 'winners'
    LOSERS = 'losers'
    GRAND_FINALS = 'grandFinals'


class TournamentType(Enum):
    SINGLE_ELIMINATION = 'single_elimination'
    DOUBLE_ELIMINATION = 'double_elimination'
    # Labels only, there is no bracket logic behind these two.
    ROUND_ROBIN = 'round_robin'
    SWISS = 'swiss'

    @property
    def is_supported(self) -> bool:
        return self in (TournamentType.SINGLE_ELIMINATION, TournamentType.DOUBLE_ELIMINATION)

    @property
    def label(self) -> str:
        return _TYPE_LABELS[self]

    @classmethod
    def parse(cls, text) -> 'TournamentType':
        """
        Resolve a tournament type from an enum value or a display label.

        Display labels may carry a size suffix ("Single Knockout 8",
        "Double Elimination-6"); the suffix is dropped and the remaining
        family name must match the catalog exactly.
        """
        if isinstance(text, cls):
            return text
        if not isinstance(text, str) or not text.strip():
            raise ConfigurationError(f"Unknown tournament type: {text!r}")

        normalized = text.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member

        family = re.sub(r'[\s\-]*\d+$', '', normalized).replace('_', ' ')
        try:
            return _TYPE_ALIASES[family]
        except KeyError:
            raise ConfigurationError(f"Unknown tournament type: {text!r}") from None


_TYPE_LABELS = {
    TournamentType.SINGLE_ELIMINATION: 'Single Elimination',
    TournamentType.DOUBLE_ELIMINATION: 'Double Elimination',
    TournamentType.ROUND_ROBIN: 'Round Robin',
    TournamentType.SWISS: 'Swiss System',
}

_TYPE_ALIASES = {
    'single elimination': TournamentType.SINGLE_ELIMINATION,
    'single knockout': TournamentType.SINGLE_ELIMINATION,
    'knockout': TournamentType.SINGLE_ELIMINATION,
    'double elimination': TournamentType.DOUBLE_ELIMINATION,
    'round robin': TournamentType.ROUND_ROBIN,
    'swiss system': TournamentType.SWISS,
    'swiss': TournamentType.SWISS,
}


class Player:
    def __init__(self, id, name, seed, losses=0):
        self.id = id
        self.name = name
        self.seed = seed
        self.losses = losses

    def __eq__(self, other):
        if not isinstance(other, Player):
            return NotImplemented
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)

    def with_losses(self, losses) -> 'Player':
        return Player(self.id, self.name, self.seed, max(0, losses))

    def to_dict(self) -> dict:
        return {'id': self.id, 'name': self.name, 'seed': self.seed, 'losses': self.losses}

    def __repr__(self):
        return f"Player(id={self.id}, name={self.name}, seed={self.seed}, losses={self.losses})"


class MatchFormat:
    """Race format: the first player to win ``games_needed_to_win`` games takes the match."""

    def __init__(self, games_needed_to_win, label=None):
        if not isinstance(games_needed_to_win, int) or games_needed_to_win < 1:
            raise ConfigurationError(
                f"games_needed_to_win must be a positive integer, got {games_needed_to_win!r}"
            )
        self._games_needed_to_win = games_needed_to_win
        self._label = label or f"Race to {games_needed_to_win}"

    @property
    def games_needed_to_win(self):
        return self._games_needed_to_win

    @property
    def label(self):
        return self._label

    def __eq__(self, other):
        if not isinstance(other, MatchFormat):
            return NotImplemented
        return self.games_needed_to_win == other.games_needed_to_win

    def __hash__(self):
        return hash(self.games_needed_to_win)

    def to_dict(self) -> dict:
        return {'type': 'raceTo', 'games_needed_to_win': self.games_needed_to_win, 'label': self.label}

    def __repr__(self):
        return f"MatchFormat(games_needed_to_win={self.games_needed_to_win}, label={self.label})"


DEFAULT_FORMAT = MatchFormat(1)

# Formats offered when a tournament is set up
MATCH_FORMATS = [MatchFormat(n) for n in (3, 4, 5, 6)]


class Game:
    def __init__(self, id, winner=None, score1=0, score2=0):
        self.id = id
        self.winner = winner
        self.score1 = score1
        self.score2 = score2

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'winner': self.winner.to_dict() if self.winner else None,
            'score1': self.score1,
            'score2': self.score2,
        }

    def __repr__(self):
        return f"Game(id={self.id}, winner={self.winner}, score1={self.score1}, score2={self.score2})"


class Match:
    def __init__(self, id, round, match_number, player1=None, player2=None, winner=None,
                 bracket=BracketType.WINNERS, is_grand_finals_reset=False, format=None, games=None):
        self.id = id
        self.round = round
        self.match_number = match_number
        self.player1 = player1
        self.player2 = player2
        self.winner = winner
        self.bracket = bracket
        self.is_grand_finals_reset = is_grand_finals_reset
        self.format = format or DEFAULT_FORMAT
        self.games = list(games) if games else []

    @property
    def is_bye(self) -> bool:
        return (self.player1 is None) != (self.player2 is None)

    @property
    def is_decided(self) -> bool:
        return self.winner is not None

    @property
    def players(self) -> List[Player]:
        return [p for p in (self.player1, self.player2) if p is not None]

    @property
    def loser(self) -> Optional[Player]:
        """The player who lost the match; byes and undecided matches have none."""
        if self.winner is None or self.player1 is None or self.player2 is None:
            return None
        return self.player2 if self.winner == self.player1 else self.player1

    def involves(self, player) -> bool:
        return player is not None and player in self.players

    def replace(self, **changes) -> 'Match':
        """Return a copy of this match with the given attributes changed."""
        updated = copy.copy(self)
        updated.games = list(self.games)
        for name, value in changes.items():
            if not hasattr(updated, name):
                raise AttributeError(f"Match has no attribute {name!r}")
            setattr(updated, name, value)
        return updated

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'round': self.round,
            'match_number': self.match_number,
            'player1': self.player1.to_dict() if self.player1 else None,
            'player2': self.player2.to_dict() if self.player2 else None,
            'winner': self.winner.to_dict() if self.winner else None,
            'bracket': self.bracket.value,
            'is_grand_finals_reset': self.is_grand_finals_reset,
            'is_bye': self.is_bye,
            'format': self.format.to_dict(),
            'games': [g.to_dict() for g in self.games],
        }

    def __repr__(self):
        p1 = self.player1.name if self.player1 else 'BYE'
        p2 = self.player2.name if self.player2 else 'BYE'
        return f"Match(id={self.id}, {p1} vs {p2}, winner={self.winner.name if self.winner else None})"


def create_match(id, round, match_number, player1, player2, bracket,
                 is_grand_finals_reset=False, format=None) -> Match:
    """Create a match; a lone player1 wins the bye on the spot."""
    winner = player1 if player2 is None and player1 is not None else None
    return Match(
        id=id,
        round=round,
        match_number=match_number,
        player1=player1,
        player2=player2,
        winner=winner,
        bracket=bracket,
        is_grand_finals_reset=is_grand_finals_reset,
        format=format,
    )


def make_match_id(bracket: BracketType, round_number: int, match_number: int,
                  tournament_type: TournamentType = TournamentType.DOUBLE_ELIMINATION) -> str:
    """Build a match id that encodes bracket, round and position, e.g. ``lb-r2-m1``."""
    if bracket is BracketType.GRAND_FINALS:
        return f"gf-{match_number}"
    if bracket is BracketType.LOSERS:
        prefix = 'lb'
    elif tournament_type is TournamentType.SINGLE_ELIMINATION:
        prefix = 'se'
    else:
        prefix = 'wb'
    return f"{prefix}-r{round_number}-m{match_number}"


class Tournament:
    def __init__(self, id, name, players=None, matches=None):
        self.id = id
        self.name = name
        self.players = players if players else []
        self.matches = matches if matches else []

    def find_match(self, match_id) -> Optional[Match]:
        return next((m for m in self.matches if m.id == match_id), None)

    def find_player(self, player_id) -> Optional[Player]:
        return next((p for p in self.players if p.id == player_id), None)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'players': [p.to_dict() for p in self.players],
            'matches': [m.to_dict() for m in self.matches],
        }

    def __repr__(self):
        return f"Tournament(id={self.id}, name={self.name}, players={len(self.players)}, matches={len(self.matches)})"


def players_from_names(names: List[str]) -> List[Player]:
    """Build a seeded roster: list position is the seed, ids are ``player-N``."""
    players = []
    for index, name in enumerate(names):
        players.append(Player(id=f"player-{index + 1}", name=name, seed=index + 1))
    return players


def generate_players(count: int) -> List[Player]:
    """Build a placeholder roster named ``Player 1`` .. ``Player N``."""
    return players_from_names([f"Player {i + 1}" for i in range(count)])
