"""
Tournament setup files and logging configuration.

A setup file is YAML:

    name: Friday Night 8-Ball
    type: Double Elimination
    games_needed_to_win: 3
    players:
      - Alice
      - Bob
"""
import logging
import os

import yaml

from .exceptions import ConfigurationError
from .models import DEFAULT_FORMAT, MatchFormat, TournamentType

LOG_LEVEL_ENV = 'TOURNATRACK_LOG_LEVEL'
LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'


class TournamentConfig:
    def __init__(self, name, tournament_type, players, format=None):
        self.name = name
        self.tournament_type = tournament_type
        self.players = players
        self.format = format or DEFAULT_FORMAT

    def __repr__(self):
        return (f"TournamentConfig(name={self.name}, type={self.tournament_type.value}, "
                f"players={len(self.players)}, format={self.format.label})")


def parse_tournament_config(data) -> TournamentConfig:
    """Validate the mapping read from a setup file."""
    if not isinstance(data, dict):
        raise ConfigurationError("Tournament setup must be a mapping.")

    players = data.get('players') or []
    if not isinstance(players, list) or not all(isinstance(p, str) and p.strip() for p in players):
        raise ConfigurationError("'players' must be a list of non-empty names.")
    players = [p.strip() for p in players]
    if len(set(players)) != len(players):
        raise ConfigurationError("Player names must be unique.")

    tournament_type = TournamentType.parse(data.get('type', TournamentType.SINGLE_ELIMINATION.value))
    if not tournament_type.is_supported:
        raise ConfigurationError(f"{tournament_type.label} brackets are not supported.")

    games = data.get('games_needed_to_win')
    format = MatchFormat(games) if games is not None else DEFAULT_FORMAT

    return TournamentConfig(
        name=str(data.get('name') or 'Tournament'),
        tournament_type=tournament_type,
        players=players,
        format=format,
    )


def load_tournament_config(file_path) -> TournamentConfig:
    if not os.path.exists(file_path):
        raise ConfigurationError(f"Tournament setup file not found: {file_path}")
    with open(file_path, 'r', encoding='utf-8') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse {file_path}: {e}") from e
    return parse_tournament_config(data or {})


def configure_logging(level=None):
    """
    Set up root logging for the command line and the web adapter.

    The level falls back to the TOURNATRACK_LOG_LEVEL environment variable,
    then to INFO.
    """
    level = level or os.environ.get(LOG_LEVEL_ENV, 'INFO')
    if isinstance(level, str):
        numeric = logging.getLevelName(level.upper())
        if not isinstance(numeric, int):
            raise ConfigurationError(f"Unknown log level: {level}")
        level = numeric
    logging.basicConfig(level=level, format=LOG_FORMAT)
    return level
