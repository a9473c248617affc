"""
Flask web application for Tournatrack.

A thin JSON adapter over one in-memory tournament store. Nothing is persisted;
restarting the process starts with no tournament.
"""
import os

from flask import Flask, request, jsonify

from tournatrack.config import configure_logging
from tournatrack.exceptions import (
    MatchLockedError,
    MatchNotFoundError,
    StateInconsistencyError,
    TournamentError,
)
from tournatrack.models import MATCH_FORMATS, MatchFormat, TournamentType
from tournatrack.scoring import player_stats
from tournatrack.state import (
    AdvanceRound,
    InitializeTournament,
    RecordGame,
    SetWinner,
    TournamentStore,
    all_current_round_matches_completed,
)

app = Flask(__name__)

store = TournamentStore()


def _error_status(error: TournamentError) -> int:
    """HTTP status for an engine error."""
    if isinstance(error, MatchNotFoundError):
        return 404
    if isinstance(error, MatchLockedError):
        return 409
    return 400


def _error_response(error: TournamentError):
    status = _error_status(error)
    app.logger.warning(f'{type(error).__name__}: {error}')
    return jsonify({'success': False, 'error': str(error)}), status


def _state_response(state):
    data = state.to_dict()
    data['can_advance'] = all_current_round_matches_completed(state)
    return jsonify({'success': True, 'tournament': data})


def _require_tournament():
    if not store.state.is_initialized:
        raise StateInconsistencyError('No tournament has been started.')
    return store.state


def _player_from_request(state, key):
    data = request.get_json(silent=True) or {}
    player_id = data.get(key)
    if not player_id:
        raise StateInconsistencyError(f'Missing {key}')
    player = state.find_player(player_id)
    if player is None:
        raise StateInconsistencyError(f'Player {player_id} is not in this tournament.')
    return player, data


@app.route('/api/tournament', methods=['POST'])
def api_start_tournament():
    """Start a new tournament, replacing the current one."""
    data = request.get_json(silent=True) or {}
    players = data.get('players') or []
    if not isinstance(players, list) or not all(isinstance(p, str) and p.strip() for p in players):
        return jsonify({'success': False, 'error': 'players must be a list of names'}), 400

    try:
        tournament_type = TournamentType.parse(data.get('type', TournamentType.SINGLE_ELIMINATION.value))
        games = data.get('games_needed_to_win')
        format = MatchFormat(games) if games is not None else None
        state = store.dispatch(InitializeTournament(
            [p.strip() for p in players],
            tournament_type,
            format,
            data.get('name') or 'Tournament',
        ))
    except TournamentError as e:
        return _error_response(e)

    app.logger.info(f'Started {state.tournament_type.label} "{state.name}" with {len(state.players)} players')
    return _state_response(state), 201


@app.route('/api/tournament', methods=['GET'])
def api_get_tournament():
    try:
        state = _require_tournament()
    except StateInconsistencyError as e:
        return jsonify({'success': False, 'error': str(e)}), 404
    return _state_response(state)


@app.route('/api/matches/<match_id>/winner', methods=['POST'])
def api_set_winner(match_id):
    """Record (or change) the winner of a match."""
    try:
        state = _require_tournament()
        winner, _ = _player_from_request(state, 'player_id')
        state = store.dispatch(SetWinner(match_id, winner))
    except TournamentError as e:
        return _error_response(e)
    return _state_response(state)


@app.route('/api/matches/<match_id>/games', methods=['POST'])
def api_record_game(match_id):
    """Record one game of a race; the match is decided once the race target is hit."""
    try:
        state = _require_tournament()
        winner, data = _player_from_request(state, 'winner_id')
        state = store.dispatch(RecordGame(
            match_id,
            winner,
            data.get('score1', 0),
            data.get('score2', 0),
        ))
    except TournamentError as e:
        return _error_response(e)
    return _state_response(state)


@app.route('/api/advance', methods=['POST'])
def api_advance_round():
    try:
        _require_tournament()
        state = store.dispatch(AdvanceRound())
    except TournamentError as e:
        return _error_response(e)
    return _state_response(state)


@app.route('/api/stats', methods=['GET'])
def api_stats():
    try:
        state = _require_tournament()
    except StateInconsistencyError as e:
        return jsonify({'success': False, 'error': str(e)}), 404
    return jsonify({'success': True, 'stats': player_stats(state.players, state.matches)})


@app.route('/api/formats', methods=['GET'])
def api_formats():
    """Match formats and tournament types offered at setup."""
    return jsonify({
        'formats': [f.to_dict() for f in MATCH_FORMATS],
        'tournament_types': [
            {'value': t.value, 'label': t.label, 'supported': t.is_supported}
            for t in TournamentType
        ],
    })


if __name__ == '__main__':
    configure_logging()
    app.run(debug=os.environ.get('FLASK_DEBUG') == '1', port=5000)
