"""
Tests for the Flask JSON adapter.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))


EIGHT = ['Alice', 'Bob', 'Carol', 'Dave', 'Erin', 'Frank', 'Grace', 'Heidi']


def start(client, players=None, tournament_type='double_elimination', **extra):
    body = {'players': players or EIGHT, 'type': tournament_type}
    body.update(extra)
    return client.post('/api/tournament', json=body)


def find_match(tournament, match_id):
    return next(m for m in tournament['matches'] if m['id'] == match_id)


class TestStartTournament:
    """Tests for POST /api/tournament."""

    def test_start(self, client):
        response = start(client, name='Friday Cup', games_needed_to_win=3)
        assert response.status_code == 201
        data = response.get_json()
        assert data['success'] is True
        assert data['tournament']['name'] == 'Friday Cup'
        assert len(data['tournament']['matches']) == 4
        assert data['tournament']['format']['games_needed_to_win'] == 3
        assert data['tournament']['can_advance'] is False
        assert find_match(data['tournament'], 'wb-r1-m1')['round_name'] == 'Winners Quarterfinal'

    def test_missing_players(self, client):
        response = client.post('/api/tournament', json={'type': 'single_elimination'})
        assert response.status_code == 400

    def test_unknown_type(self, client):
        response = start(client, tournament_type='Ladder')
        assert response.status_code == 400
        assert 'Unknown tournament type' in response.get_json()['error']

    def test_unsupported_roster(self, client):
        response = start(client, players=EIGHT[:4])
        assert response.status_code == 400


class TestGetTournament:
    """Tests for GET /api/tournament."""

    def test_no_tournament(self, client):
        assert client.get('/api/tournament').status_code == 404

    def test_current_state(self, client):
        start(client, tournament_type='single_elimination', players=['A', 'B', 'C', 'D'])
        data = client.get('/api/tournament').get_json()
        assert [m['id'] for m in data['tournament']['matches']] == ['se-r1-m1', 'se-r1-m2']


class TestResults:
    """Tests for recording results and advancing."""

    def test_set_winner_and_advance(self, client):
        start(client, tournament_type='single_elimination', players=['A', 'B', 'C', 'D'])
        client.post('/api/matches/se-r1-m1/winner', json={'player_id': 'player-1'})
        response = client.post('/api/matches/se-r1-m2/winner', json={'player_id': 'player-2'})
        assert response.status_code == 200
        assert response.get_json()['tournament']['can_advance'] is True

        response = client.post('/api/advance')
        assert response.status_code == 200
        final = find_match(response.get_json()['tournament'], 'se-r2-m1')
        assert (final['player1']['name'], final['player2']['name']) == ('A', 'B')

    def test_unknown_match(self, client):
        start(client)
        response = client.post('/api/matches/wb-r9-m9/winner', json={'player_id': 'player-1'})
        assert response.status_code == 404

    def test_unknown_player(self, client):
        start(client)
        response = client.post('/api/matches/wb-r1-m1/winner', json={'player_id': 'player-99'})
        assert response.status_code == 400

    def test_winner_not_in_match(self, client):
        start(client)
        response = client.post('/api/matches/wb-r1-m1/winner', json={'player_id': 'player-2'})
        assert response.status_code == 400

    def test_locked_match(self, client):
        start(client, tournament_type='single_elimination', players=['A', 'B', 'C', 'D'])
        client.post('/api/matches/se-r1-m1/winner', json={'player_id': 'player-1'})
        client.post('/api/matches/se-r1-m2/winner', json={'player_id': 'player-2'})
        client.post('/api/advance')
        response = client.post('/api/matches/se-r1-m1/winner', json={'player_id': 'player-4'})
        assert response.status_code == 409

    def test_advance_too_early(self, client):
        start(client)
        response = client.post('/api/advance')
        assert response.status_code == 400
        assert response.get_json()['success'] is False

    def test_record_games(self, client):
        start(client, games_needed_to_win=2)
        client.post('/api/matches/wb-r1-m1/games', json={'winner_id': 'player-8', 'score1': 3, 'score2': 8})
        response = client.post('/api/matches/wb-r1-m1/games', json={'winner_id': 'player-8'})
        assert response.status_code == 200
        match = find_match(response.get_json()['tournament'], 'wb-r1-m1')
        assert match['winner']['id'] == 'player-8'
        assert len(match['games']) == 2

    def test_missing_winner_id(self, client):
        start(client)
        response = client.post('/api/matches/wb-r1-m1/games', json={})
        assert response.status_code == 400


class TestStatsAndFormats:
    """Tests for GET /api/stats and GET /api/formats."""

    def test_stats(self, client):
        start(client)
        client.post('/api/matches/wb-r1-m1/winner', json={'player_id': 'player-1'})
        stats = client.get('/api/stats').get_json()['stats']
        assert stats[0]['name'] == 'Alice'
        assert stats[0]['win_rate'] == 100

    def test_stats_without_tournament(self, client):
        assert client.get('/api/stats').status_code == 404

    def test_formats(self, client):
        data = client.get('/api/formats').get_json()
        assert [f['games_needed_to_win'] for f in data['formats']] == [3, 4, 5, 6]
        supported = {t['value'] for t in data['tournament_types'] if t['supported']}
        assert supported == {'single_elimination', 'double_elimination'}
