"""
Tournament service that ties scheduling, rating and brackets to storage.

The core functions stay pure; this layer loads a consistent snapshot from
storage, calls them, and writes the results back in one transaction.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from playbook.bracket import generate_bracket, validate_bracket_size
from playbook.display import format_match_line
from playbook.errors import InsufficientParticipants, NotFoundError, PlayBookError
from playbook.models import DEFAULT_K_FACTOR, DEFAULT_RATING, Match, Team, Tournament
from playbook.render import BracketNode, render_bracket
from playbook.results import ResultOutcome, advance_winner, apply_result, finalize_match
from playbook.scheduler import generate_round_robin, num_rounds
from playbook.standings import rank_teams, seed_order
from playbook.storage import PLAYOFFS, ROUND_ROBIN, TournamentRepository, TournamentStorage


@dataclass
class TournamentConfig:
    """Defaults applied when a call does not say otherwise."""
    k_factor: int = DEFAULT_K_FACTOR
    initial_rating: int = DEFAULT_RATING
    bracket_size: int = 8
    data_dir: str = "data"


class TournamentService:
    """
    Runs tournament operations against a storage backend.

    Usage:
        service = TournamentService(config=TournamentConfig(data_dir="data"))
        tournament = service.create_tournament("Spring League")
        service.generate_schedule(tournament.id)
    """

    def __init__(
        self,
        storage: Optional[TournamentRepository] = None,
        config: Optional[TournamentConfig] = None,
        verbose: bool = False
    ):
        """
        Initialize the tournament service.

        Args:
            storage: Optional storage backend (SQLite TournamentStorage if None)
            config: Optional configuration (defaults if None)
            verbose: Print what each operation changed
        """
        self.config = config or TournamentConfig()
        self.storage = storage or TournamentStorage(self.config.data_dir)
        self.verbose = verbose

    def _log(self, message: str) -> None:
        if self.verbose:
            print(message)

    def _require_match(self, match_id: str) -> Match:
        match = self.storage.get_match(match_id)
        if match is None:
            raise NotFoundError(f"Match {match_id} not found")
        return match

    def _require_team(self, team_id: str) -> Team:
        team = self.storage.get_team(team_id)
        if team is None:
            raise NotFoundError(f"Team {team_id} not found")
        return team

    def create_tournament(
        self,
        name: str,
        game: Optional[str] = None,
        k_factor: Optional[int] = None
    ) -> Tournament:
        if not name:
            raise PlayBookError("Tournament name is required")
        k = self.config.k_factor if k_factor is None else k_factor
        tournament = self.storage.create_tournament(name, game=game, k_factor=k)
        self._log(f"Created tournament {tournament.name} ({tournament.id}), K={k}")
        return tournament

    def add_team(
        self,
        tournament_id: str,
        name: str,
        elo_rating: Optional[int] = None,
        logo_url: Optional[str] = None
    ) -> Team:
        if not name:
            raise PlayBookError("Team name is required")
        rating = self.config.initial_rating if elo_rating is None else elo_rating
        team = self.storage.add_team(tournament_id, name, elo_rating=rating, logo_url=logo_url)
        self._log(f"Added team {team.name} ({team.id}), Elo {team.elo_rating}")
        return team

    def generate_schedule(self, tournament_id: str) -> List[Match]:
        """
        Replace the tournament's round-robin matches with a fresh schedule.

        Raises:
            PlayBookError: If fewer than 2 teams are registered
        """
        self.storage.require_tournament(tournament_id)
        teams = self.storage.get_teams(tournament_id)
        if len(teams) < 2:
            raise PlayBookError("At least 2 teams are required to generate a schedule")

        pairings = generate_round_robin([t.id for t in teams])
        matches = [
            Match(
                tournament_id=tournament_id,
                round_name=p.round_name,
                team1_id=p.team1_id,
                team2_id=p.team2_id
            )
            for p in pairings
        ]
        stored = self.storage.replace_matches(tournament_id, ROUND_ROBIN, matches)

        self._log(f"Generated {len(stored)} matches over "
                  f"{num_rounds(len(teams))} rounds for {len(teams)} teams")
        return stored

    def generate_playoffs(self, tournament_id: str, size: Optional[int] = None) -> List[Match]:
        """
        Replace the tournament's playoff bracket, seeded from the standings.

        Raises:
            UnsupportedBracketSize: If size is not 4, 8 or 16
            InsufficientParticipants: If fewer teams than ``size``
        """
        size = size or self.config.bracket_size
        validate_bracket_size(size)
        self.storage.require_tournament(tournament_id)

        seeds = seed_order(self.storage.get_teams(tournament_id), size)
        if len(seeds) < size:
            raise InsufficientParticipants(size, len(seeds))

        bracket = generate_bracket(seeds, size=size, tournament_id=tournament_id)
        stored = self.storage.replace_matches(tournament_id, PLAYOFFS, bracket)

        self._log(f"Generated {size}-team bracket ({len(stored)} matches)")
        return stored

    def log_result(self, match_id: str, team1_score: int, team2_score: int) -> ResultOutcome:
        """
        Log (or edit) a match result, update ratings and advance the winner.

        Raises:
            MatchFinalizedError: If the match is finalized
            MatchNotReadyError: If the match is missing a team
            DownstreamMatchPlayedError: If the edit changes a winner who
                already played the next match
            DrawNotSupportedError: If the scores are equal
        """
        match = self._require_match(match_id)
        tournament = self.storage.require_tournament(match.tournament_id)
        if match.team1_id is None or match.team2_id is None:
            # Let apply_result raise the not-ready error
            team1 = team2 = None
        else:
            team1 = self._require_team(match.team1_id)
            team2 = self._require_team(match.team2_id)

        outcome = apply_result(
            match, team1_score, team2_score, team1, team2, k_factor=tournament.k_factor
        )

        advanced = None
        if outcome.match.next_match_id is not None:
            bracket = self.storage.get_matches(match.tournament_id, PLAYOFFS)
            advanced = advance_winner(outcome.match, bracket)

        self.storage.save_result(outcome.match, [outcome.team1, outcome.team2], advanced)

        if self.verbose:
            names = {outcome.team1.id: outcome.team1.name, outcome.team2.id: outcome.team2.name}
            print(format_match_line(outcome.match, names))
            print(f"  Elo: {outcome.team1.name} {outcome.elo.old_elo_a} -> {outcome.elo.new_elo_a}, "
                  f"{outcome.team2.name} {outcome.elo.old_elo_b} -> {outcome.elo.new_elo_b}")
        return outcome

    def finalize(self, match_id: str) -> Match:
        """Lock a completed match."""
        match = finalize_match(self._require_match(match_id))
        self.storage.save_match(match)
        self._log(f"Finalized match {match.id}")
        return match

    def standings(self, tournament_id: str) -> List[Team]:
        self.storage.require_tournament(tournament_id)
        return rank_teams(self.storage.get_teams(tournament_id))

    def matches(self, tournament_id: str) -> List[Match]:
        self.storage.require_tournament(tournament_id)
        return self.storage.get_matches(tournament_id)

    def bracket(self, tournament_id: str) -> Optional[BracketNode]:
        """The playoff bracket as a tree, or None if not generated."""
        self.storage.require_tournament(tournament_id)
        return render_bracket(self.storage.get_matches(tournament_id, PLAYOFFS))

    def team_names(self, tournament_id: str) -> Dict[str, str]:
        return {t.id: t.name for t in self.storage.get_teams(tournament_id)}
