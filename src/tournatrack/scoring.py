"""
Game results inside a match and per-player statistics.
"""
from typing import Dict, List, Optional

from .exceptions import StateInconsistencyError
from .models import Game, Match, Player


def games_won(match: Match, player: Player) -> int:
    return sum(1 for g in match.games if g.winner is not None and g.winner == player)


def match_decided_by(match: Match) -> Optional[Player]:
    """Return the player who has reached the race target, if any."""
    target = match.format.games_needed_to_win
    for player in match.players:
        if games_won(match, player) >= target:
            return player
    return None


def record_game(match: Match, winner: Player, score1=0, score2=0) -> Match:
    """
    Append one game to a match.

    The match winner is not set here; callers check ``match_decided_by`` and
    record the match result through the locking rules.
    """
    if match.player1 is None or match.player2 is None:
        raise StateInconsistencyError(f"Match {match.id} is a bye, no games are played.")
    if match.winner is not None:
        raise StateInconsistencyError(f"Match {match.id} already has a winner.")
    if not match.involves(winner):
        raise StateInconsistencyError(f"The winner of a game in match {match.id} must be one of its players.")

    game = Game(f"{match.id}-g{len(match.games) + 1}", winner, score1, score2)
    return match.replace(games=match.games + [game])


def player_stats(players: List[Player], matches: List[Match]) -> List[Dict]:
    """
    Wins, losses and win rate per player over decided matches.

    Byes are not counted. Sorted by win rate, best first, ties by seed.
    """
    stats = []
    for player in players:
        played = [
            m for m in matches
            if m.winner is not None and not m.is_bye and m.involves(player)
        ]
        wins = sum(1 for m in played if m.winner == player)
        losses = len(played) - wins
        stats.append({
            'id': player.id,
            'name': player.name,
            'seed': player.seed,
            'matches': len(played),
            'wins': wins,
            'losses': losses,
            'win_rate': round(wins / len(played) * 100) if played else 0,
        })

    stats.sort(key=lambda s: (-s['win_rate'], s['seed']))
    return stats
