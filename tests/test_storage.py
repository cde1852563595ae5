"""
Tests for SQLite tournament storage.
"""

import tempfile

import pytest

from playbook.bracket import generate_bracket
from playbook.errors import NotFoundError, PlayBookError
from playbook.models import Match, MatchStatus, Slot
from playbook.storage import PLAYOFFS, ROUND_ROBIN, TournamentRepository, TournamentStorage


@pytest.fixture
def temp_storage():
    """Create a temporary storage for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield TournamentStorage(tmpdir)


@pytest.fixture
def tournament(temp_storage):
    return temp_storage.create_tournament('Spring League', game='basketball', k_factor=24)


class TestTournaments:
    """Tests for tournament records."""

    def test_create_and_load(self, temp_storage, tournament):
        loaded = temp_storage.get_tournament(tournament.id)
        assert loaded.name == 'Spring League'
        assert loaded.game == 'basketball'
        assert loaded.k_factor == 24
        assert loaded.created_at

    def test_explicit_id(self, temp_storage):
        t = temp_storage.create_tournament('Cup', tournament_id='cup')
        assert t.id == 'cup'
        assert temp_storage.get_tournament('cup').k_factor == 32

    def test_missing(self, temp_storage):
        assert temp_storage.get_tournament('nope') is None
        with pytest.raises(NotFoundError):
            temp_storage.require_tournament('nope')

    def test_list_tournaments(self, temp_storage):
        """Test listing tournaments."""
        t1 = temp_storage.create_tournament('One')
        temp_storage.create_tournament('Two')
        temp_storage.add_team(t1.id, 'Falcons')

        listed = temp_storage.list_tournaments()
        assert len(listed) == 2
        counts = {row['name']: row['team_count'] for row in listed}
        assert counts == {'One': 1, 'Two': 0}

    def test_reopen_keeps_data(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            first = TournamentStorage(tmpdir)
            t = first.create_tournament('Persisted')
            second = TournamentStorage(tmpdir)
            assert second.get_tournament(t.id).name == 'Persisted'


class TestTeams:
    """Tests for team records."""

    def test_add_and_get(self, temp_storage, tournament):
        team = temp_storage.add_team(tournament.id, 'Falcons', elo_rating=1300)
        loaded = temp_storage.get_team(team.id)
        assert loaded.name == 'Falcons'
        assert loaded.elo_rating == 1300
        assert (loaded.wins, loaded.losses) == (0, 0)

    def test_add_to_missing_tournament(self, temp_storage):
        with pytest.raises(NotFoundError):
            temp_storage.add_team('nope', 'Falcons')

    def test_get_teams_in_insertion_order(self, temp_storage, tournament):
        for name in ['c', 'a', 'b']:
            temp_storage.add_team(tournament.id, name)
        assert [t.name for t in temp_storage.get_teams(tournament.id)] == ['c', 'a', 'b']

    def test_saved_record_is_reloaded(self, temp_storage, tournament):
        winner = temp_storage.add_team(tournament.id, 'winner', elo_rating=1000)
        low = temp_storage.add_team(tournament.id, 'low', elo_rating=1100)

        m = Match(round_name='Round 1', team1_id=winner.id, team2_id=low.id,
                  team1_score=1, team2_score=0, status=MatchStatus.COMPLETED)
        stored = temp_storage.insert_matches(tournament.id, [m])[0]
        temp_storage.save_result(stored, [winner.model_copy(update={'wins': 1})])

        teams = {t.name: t for t in temp_storage.get_teams(tournament.id)}
        assert teams['winner'].wins == 1
        assert teams['low'].wins == 0


class TestMatches:
    """Tests for match records."""

    def test_insert_assigns_ids(self, temp_storage, tournament):
        stored = temp_storage.insert_matches(tournament.id, [
            Match(round_name='Round 1', team1_id='a', team2_id='b'),
            Match(round_name='Round 1', team1_id='c', team2_id='d'),
        ])
        assert all(m.id for m in stored)
        assert all(m.tournament_id == tournament.id for m in stored)
        assert len({m.id for m in stored}) == 2

    def test_bracket_round_trip(self, temp_storage, tournament):
        bracket = generate_bracket(list('ABCDEFGH'), size=8)
        temp_storage.insert_matches(tournament.id, bracket)

        loaded = temp_storage.get_matches(tournament.id)
        assert [m.id for m in loaded] == [m.id for m in bracket]
        by_id = {m.id: m for m in loaded}
        for original in bracket:
            m = by_id[original.id]
            assert m.next_match_id == original.next_match_id
            assert m.winner_advances_to_slot == original.winner_advances_to_slot
            assert (m.team1_id, m.team2_id) == (original.team1_id, original.team2_id)
            assert m.status == MatchStatus.PENDING
            assert m.is_finalized is False

    def test_stage_filter(self, temp_storage, tournament):
        temp_storage.insert_matches(tournament.id, [
            Match(round_name='Round 1', team1_id='a', team2_id='b'),
        ])
        temp_storage.insert_matches(tournament.id, generate_bracket(list('ABCD'), size=4))

        assert len(temp_storage.get_matches(tournament.id, ROUND_ROBIN)) == 1
        assert len(temp_storage.get_matches(tournament.id, PLAYOFFS)) == 3

    def test_replace_only_touches_stage(self, temp_storage, tournament):
        temp_storage.insert_matches(tournament.id, [
            Match(round_name='Round 1', team1_id='a', team2_id='b'),
        ])
        temp_storage.insert_matches(tournament.id, generate_bracket(list('ABCD'), size=4))

        temp_storage.replace_matches(tournament.id, ROUND_ROBIN, [
            Match(round_name='Round 1', team1_id='c', team2_id='d'),
            Match(round_name='Round 2', team1_id='a', team2_id='c'),
        ])
        assert len(temp_storage.get_matches(tournament.id, ROUND_ROBIN)) == 2
        assert len(temp_storage.get_matches(tournament.id, PLAYOFFS)) == 3

    def test_delete_matches(self, temp_storage, tournament):
        temp_storage.insert_matches(tournament.id, generate_bracket(list('ABCD'), size=4))
        assert temp_storage.delete_matches(tournament.id, PLAYOFFS) == 3
        assert temp_storage.get_matches(tournament.id) == []

    def test_save_result_transaction(self, temp_storage, tournament):
        """Match, teams and advanced match are written together."""
        a = temp_storage.add_team(tournament.id, 'A')
        b = temp_storage.add_team(tournament.id, 'B')
        final = Match(id='f', round_name='Finals')
        semi = Match(id='s', round_name='Semifinals', team1_id=a.id, team2_id=b.id,
                     next_match_id='f', winner_advances_to_slot=Slot.TEAM1)
        temp_storage.insert_matches(tournament.id, [final, semi])

        done = temp_storage.get_match('s').model_copy(update={
            'team1_score': 2, 'team2_score': 1, 'status': MatchStatus.COMPLETED,
            'elo_delta_team1': 16, 'elo_delta_team2': -16,
        })
        advanced = temp_storage.get_match('f').model_copy(update={'team1_id': a.id})
        temp_storage.save_result(
            done,
            [a.model_copy(update={'elo_rating': 1216, 'wins': 1}),
             b.model_copy(update={'elo_rating': 1184, 'losses': 1})],
            advanced
        )

        assert temp_storage.get_match('s').status == MatchStatus.COMPLETED
        assert temp_storage.get_match('s').elo_delta_team1 == 16
        assert temp_storage.get_match('f').team1_id == a.id
        assert temp_storage.get_team(a.id).elo_rating == 1216
        assert temp_storage.get_team(b.id).losses == 1

    def test_save_result_rolls_back_on_error(self, temp_storage, tournament):
        a = temp_storage.add_team(tournament.id, 'A')
        b = temp_storage.add_team(tournament.id, 'B')
        stored = temp_storage.insert_matches(tournament.id, [
            Match(round_name='Round 1', team1_id=a.id, team2_id=b.id),
        ])[0]
        done = stored.model_copy(update={
            'team1_score': 2, 'team2_score': 1, 'status': MatchStatus.COMPLETED,
        })
        ghost = a.model_copy(update={'id': 'ghost'})

        with pytest.raises(NotFoundError):
            temp_storage.save_result(done, [ghost])

        assert temp_storage.get_match(stored.id).status == MatchStatus.PENDING

    def test_save_match_unknown(self, temp_storage):
        with pytest.raises(NotFoundError):
            temp_storage.save_match(Match(id='nope', round_name='Finals'))

    def test_replace_rejects_other_stage(self, temp_storage, tournament):
        """Playoff matches cannot be slipped in under the round-robin stage."""
        temp_storage.insert_matches(tournament.id, [
            Match(round_name='Round 1', team1_id='a', team2_id='b'),
        ])

        with pytest.raises(PlayBookError):
            temp_storage.replace_matches(
                tournament.id, ROUND_ROBIN, generate_bracket(list('ABCD'), size=4)
            )

        assert len(temp_storage.get_matches(tournament.id, ROUND_ROBIN)) == 1
        assert temp_storage.get_matches(tournament.id, PLAYOFFS) == []

    def test_replace_rejects_unknown_stage(self, temp_storage, tournament):
        with pytest.raises(PlayBookError):
            temp_storage.replace_matches(tournament.id, 'groups', [])


def test_storage_is_a_tournament_repository(temp_storage):
    assert isinstance(temp_storage, TournamentRepository)
