"""
Errors raised by the bracket engine.

None of these are transient: they report a logic or integrity problem with the
request, and the operation that raised them has produced nothing and changed
nothing.
"""


class TournamentError(Exception):
    """Base class for every bracket engine error."""


class ConfigurationError(TournamentError, ValueError):
    """Unsupported player count, bracket size or tournament type."""


class UnsupportedBracketError(ConfigurationError):
    """A bracket size the losers' bracket logic does not handle yet (16 players)."""


class StateInconsistencyError(TournamentError, ValueError):
    """The inputs do not match what the current stage of the bracket expects."""


class MatchNotFoundError(TournamentError, LookupError):
    """A match id that does not exist in the tournament."""

    def __init__(self, match_id):
        super().__init__(f"Match with ID {match_id} not found.")
        self.match_id = match_id


class MatchLockedError(TournamentError):
    """The match result can no longer be edited."""

    def __init__(self, match_id):
        super().__init__(
            f"Match {match_id} is locked: subsequent rounds may depend on it or have already been processed."
        )
        self.match_id = match_id
