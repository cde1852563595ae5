"""
Integration tests for the tournament service.
"""

import tempfile
from itertools import combinations

import pytest

from playbook.errors import (
    DownstreamMatchPlayedError,
    InsufficientParticipants,
    MatchFinalizedError,
    MatchNotReadyError,
    NotFoundError,
    PlayBookError,
    UnsupportedBracketSize,
)
from playbook.models import MatchStatus
from playbook.service import TournamentConfig, TournamentService
from playbook.storage import PLAYOFFS, ROUND_ROBIN, TournamentStorage


@pytest.fixture
def service():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield TournamentService(config=TournamentConfig(data_dir=tmpdir))


def _add_teams(service, tournament_id, names):
    return [service.add_team(tournament_id, name) for name in names]


class TestSchedule:
    """Tests for round-robin schedule generation."""

    def test_generate_schedule(self, service):
        t = service.create_tournament('League')
        teams = _add_teams(service, t.id, ['a', 'b', 'c', 'd'])

        matches = service.generate_schedule(t.id)

        assert len(matches) == 6
        ids = [team.id for team in teams]
        pairs = {frozenset((m.team1_id, m.team2_id)) for m in matches}
        assert pairs == {frozenset(p) for p in combinations(ids, 2)}
        assert all(m.status == MatchStatus.PENDING for m in matches)

    def test_regenerate_replaces(self, service):
        t = service.create_tournament('League')
        _add_teams(service, t.id, ['a', 'b', 'c'])
        service.generate_schedule(t.id)
        service.add_team(t.id, 'd')

        service.generate_schedule(t.id)
        assert len(service.storage.get_matches(t.id, ROUND_ROBIN)) == 6

    def test_requires_two_teams(self, service):
        t = service.create_tournament('League')
        service.add_team(t.id, 'solo')
        with pytest.raises(PlayBookError):
            service.generate_schedule(t.id)
        assert service.matches(t.id) == []

    def test_unknown_tournament(self, service):
        with pytest.raises(NotFoundError):
            service.generate_schedule('nope')

    def test_names_required(self, service):
        with pytest.raises(PlayBookError):
            service.create_tournament('')
        t = service.create_tournament('League')
        with pytest.raises(PlayBookError):
            service.add_team(t.id, '')


class TestLogResult:
    """Tests for logging results through the service."""

    def test_log_updates_teams(self, service):
        t = service.create_tournament('League', k_factor=32)
        a, b = _add_teams(service, t.id, ['a', 'b'])
        match = service.generate_schedule(t.id)[0]

        outcome = service.log_result(match.id, 3, 1)

        winner = service.storage.get_team(outcome.winner_id)
        loser = service.storage.get_team(outcome.loser_id)
        assert (winner.wins, winner.elo_rating) == (1, 1216)
        assert (loser.losses, loser.elo_rating) == (1, 1184)
        assert service.storage.get_match(match.id).status == MatchStatus.COMPLETED

    def test_tournament_k_factor(self, service):
        t = service.create_tournament('League', k_factor=10)
        _add_teams(service, t.id, ['a', 'b'])
        match = service.generate_schedule(t.id)[0]
        outcome = service.log_result(match.id, 1, 0)
        assert outcome.elo.delta_a == 5

    def test_config_defaults(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            service = TournamentService(
                config=TournamentConfig(k_factor=20, initial_rating=1500, data_dir=tmpdir)
            )
            t = service.create_tournament('League')
            team = service.add_team(t.id, 'a')
            assert t.k_factor == 20
            assert team.elo_rating == 1500

    def test_edit_then_finalize(self, service):
        t = service.create_tournament('League')
        _add_teams(service, t.id, ['a', 'b'])
        match = service.generate_schedule(t.id)[0]

        service.log_result(match.id, 3, 1)
        service.log_result(match.id, 0, 2)
        service.finalize(match.id)

        standings = service.standings(t.id)
        assert [(s.wins, s.losses) for s in standings] == [(1, 0), (0, 1)]
        assert standings[0].id == match.team2_id

        with pytest.raises(MatchFinalizedError):
            service.log_result(match.id, 5, 0)
        assert service.storage.get_team(match.team2_id).wins == 1

    def test_finalize_unplayed(self, service):
        t = service.create_tournament('League')
        _add_teams(service, t.id, ['a', 'b'])
        match = service.generate_schedule(t.id)[0]
        with pytest.raises(MatchNotReadyError):
            service.finalize(match.id)

    def test_unknown_match(self, service):
        with pytest.raises(NotFoundError):
            service.log_result('nope', 1, 0)


class TestPlayoffs:
    """Tests for playoff generation and progression."""

    def _league(self, service, n=8):
        t = service.create_tournament('League')
        teams = [service.add_team(t.id, f"team{i}", elo_rating=1000 + 10 * i) for i in range(n)]
        return t, teams

    def test_seeded_from_standings(self, service):
        """With no wins, seeds follow rating; the top seed meets the eighth."""
        t, teams = self._league(service)
        matches = service.generate_playoffs(t.id, size=8)

        assert len(matches) == 7
        by_rating = sorted(teams, key=lambda team: -team.elo_rating)
        qf1 = [m for m in matches if m.round_name == "Quarterfinals 1"][0]
        assert (qf1.team1_id, qf1.team2_id) == (by_rating[0].id, by_rating[7].id)

    def test_insufficient_teams(self, service):
        t, _ = self._league(service, n=6)
        with pytest.raises(InsufficientParticipants):
            service.generate_playoffs(t.id, size=8)
        assert service.storage.get_matches(t.id, PLAYOFFS) == []

    def test_unsupported_size(self, service):
        t, _ = self._league(service)
        with pytest.raises(UnsupportedBracketSize):
            service.generate_playoffs(t.id, size=6)

    def test_failed_regeneration_keeps_old_bracket(self, service):
        t, _ = self._league(service, n=4)
        service.generate_playoffs(t.id, size=4)
        with pytest.raises(InsufficientParticipants):
            service.generate_playoffs(t.id, size=8)
        assert len(service.storage.get_matches(t.id, PLAYOFFS)) == 3

    def test_default_size_from_config(self, service):
        t, _ = self._league(service)
        assert len(service.generate_playoffs(t.id)) == 7

    def test_play_through_bracket(self, service):
        """Team1 wins every match: the top seed ends up champion."""
        t, teams = self._league(service, n=4)
        service.generate_playoffs(t.id, size=4)

        for round_name in ("Semifinals", "Finals"):
            for match in service.storage.get_matches(t.id, PLAYOFFS):
                if match.round_name == round_name:
                    service.log_result(match.id, 2, 1)

        root = service.bracket(t.id)
        top_seed = max(teams, key=lambda team: team.elo_rating)
        assert root.match.round_name == "Finals"
        assert root.match.winner_id == top_seed.id
        assert all(node.match.status == MatchStatus.COMPLETED for node in root.walk())

    def test_edit_semifinal_after_final_played(self, service):
        """Flipping a semifinal winner after the final is refused and nothing changes."""
        t, _ = self._league(service, n=4)
        service.generate_playoffs(t.id, size=4)
        for round_name in ("Semifinals", "Finals"):
            for match in service.storage.get_matches(t.id, PLAYOFFS):
                if match.round_name == round_name:
                    service.log_result(match.id, 2, 0)

        final, semi = service.storage.get_matches(t.id, PLAYOFFS)[:2]
        assert semi.round_name == "Semifinals"
        before = {team.id: (team.wins, team.losses, team.elo_rating)
                  for team in service.standings(t.id)}

        with pytest.raises(DownstreamMatchPlayedError):
            service.log_result(semi.id, 0, 2)

        assert service.storage.get_match(semi.id).winner_id == semi.team1_id
        assert service.storage.get_match(final.id) == final
        after = {team.id: (team.wins, team.losses, team.elo_rating)
                 for team in service.standings(t.id)}
        assert after == before

    def test_score_edit_with_same_winner_after_final(self, service):
        t, _ = self._league(service, n=4)
        service.generate_playoffs(t.id, size=4)
        for round_name in ("Semifinals", "Finals"):
            for match in service.storage.get_matches(t.id, PLAYOFFS):
                if match.round_name == round_name:
                    service.log_result(match.id, 2, 0)

        final, semi = service.storage.get_matches(t.id, PLAYOFFS)[:2]
        service.log_result(semi.id, 5, 1)

        assert service.storage.get_match(semi.id).team1_score == 5
        assert service.storage.get_match(final.id) == final

    def test_final_not_ready_until_semis_played(self, service):
        t, _ = self._league(service, n=4)
        matches = service.generate_playoffs(t.id, size=4)
        with pytest.raises(MatchNotReadyError):
            service.log_result(matches[0].id, 1, 0)

    def test_schedule_regeneration_keeps_playoffs(self, service):
        t, _ = self._league(service, n=4)
        service.generate_playoffs(t.id, size=4)
        service.generate_schedule(t.id)
        assert len(service.storage.get_matches(t.id, PLAYOFFS)) == 3
        assert len(service.storage.get_matches(t.id, ROUND_ROBIN)) == 6

    def test_bracket_none_before_playoffs(self, service):
        t, _ = self._league(service, n=4)
        service.generate_schedule(t.id)
        assert service.bracket(t.id) is None


def test_service_with_explicit_storage():
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = TournamentStorage(tmpdir)
        service = TournamentService(storage=storage)
        t = service.create_tournament('League')
        assert storage.get_tournament(t.id) is not None
