"""
Match result logging.

State machine: pending -> completed -> completed + finalized. A completed
match may be logged again until it is finalized; the previous result's rating
deltas and win/loss counts are reverted before the new result is applied.
Functions here return updated copies and never mutate their inputs.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from playbook.elo import EloCalculator, EloUpdate
from playbook.errors import (
    DownstreamMatchPlayedError,
    DrawNotSupportedError,
    MatchFinalizedError,
    MatchNotReadyError,
    NotFoundError,
    PlayBookError,
)
from playbook.models import DEFAULT_K_FACTOR, Match, MatchStatus, Slot, Team


@dataclass
class ResultOutcome:
    """Everything that changes when a result is logged."""
    match: Match
    team1: Team
    team2: Team
    elo: EloUpdate

    @property
    def winner_id(self) -> str:
        return self.match.winner_id

    @property
    def loser_id(self) -> str:
        return self.match.loser_id


def _revert_previous(match: Match, team1: Team, team2: Team) -> None:
    team1.elo_rating -= match.elo_delta_team1
    team2.elo_rating -= match.elo_delta_team2

    winner_id = match.winner_id
    if winner_id is None:
        return
    winner, loser = (team1, team2) if winner_id == team1.id else (team2, team1)
    winner.wins = max(0, winner.wins - 1)
    loser.losses = max(0, loser.losses - 1)


def apply_result(
    match: Match,
    team1_score: int,
    team2_score: int,
    team1: Team,
    team2: Team,
    k_factor: float = DEFAULT_K_FACTOR
) -> ResultOutcome:
    """
    Record a final score and update both teams' ratings and records.

    Args:
        match: Match being logged
        team1_score: Score of the team in slot team1
        team2_score: Score of the team in slot team2
        team1: Current state of the team in slot team1
        team2: Current state of the team in slot team2
        k_factor: Tournament K-factor

    Returns:
        ResultOutcome with the completed match and updated teams

    Raises:
        MatchFinalizedError: If the match is finalized
        MatchNotReadyError: If a slot has no team yet
        DrawNotSupportedError: If the scores are equal
    """
    if match.is_finalized:
        raise MatchFinalizedError(f"Match {match.id} is finalized and cannot be edited")
    if match.team1_id is None or match.team2_id is None:
        raise MatchNotReadyError(f"Match {match.id} does not have both teams yet")
    if team1.id != match.team1_id or team2.id != match.team2_id:
        raise PlayBookError(f"Teams do not match the participants of match {match.id}")
    if team1_score < 0 or team2_score < 0:
        raise PlayBookError("Scores must be non-negative")
    if team1_score == team2_score:
        raise DrawNotSupportedError("Draws are not supported; a match needs a winner")

    team1 = team1.model_copy()
    team2 = team2.model_copy()

    if match.status == MatchStatus.COMPLETED:
        _revert_previous(match, team1, team2)

    team1_won = team1_score > team2_score
    update = EloCalculator(k_factor).update(
        team1.id, team2.id, team1.elo_rating, team2.elo_rating, a_won=team1_won
    )
    team1.elo_rating = update.new_elo_a
    team2.elo_rating = update.new_elo_b
    if team1_won:
        team1.wins += 1
        team2.losses += 1
    else:
        team2.wins += 1
        team1.losses += 1

    completed = match.model_copy(update={
        "team1_score": team1_score,
        "team2_score": team2_score,
        "status": MatchStatus.COMPLETED,
        "elo_delta_team1": update.delta_a,
        "elo_delta_team2": update.delta_b,
    })
    return ResultOutcome(match=completed, team1=team1, team2=team2, elo=update)


def advance_winner(match: Match, matches: Iterable[Match]) -> Optional[Match]:
    """
    Place the winner of a playoff match into its downstream slot.

    Args:
        match: A completed match
        matches: Matches of the same tournament (searched for the next match)

    Returns:
        Updated copy of the next match, or None if ``match`` is the root

    Raises:
        MatchFinalizedError: If either match is finalized
        DownstreamMatchPlayedError: If the next match is completed with a
            different team in the slot
        MatchNotReadyError: If ``match`` has no winner
        NotFoundError: If ``next_match_id`` does not resolve
    """
    if match.is_finalized:
        raise MatchFinalizedError(f"Match {match.id} is finalized")
    winner_id = match.winner_id
    if winner_id is None:
        raise MatchNotReadyError(f"Match {match.id} has no winner yet")
    if match.next_match_id is None:
        return None

    target = next((m for m in matches if m.id == match.next_match_id), None)
    if target is None:
        raise NotFoundError(f"Next match {match.next_match_id} not found")
    if target.is_finalized:
        raise MatchFinalizedError(f"Next match {target.id} is finalized")

    field = "team1_id" if Slot(match.winner_advances_to_slot) == Slot.TEAM1 else "team2_id"
    current = getattr(target, field)
    if target.status == MatchStatus.COMPLETED and current != winner_id:
        raise DownstreamMatchPlayedError(
            f"Next match {target.id} already has a result; "
            f"the winner of match {match.id} cannot change"
        )
    return target.model_copy(update={field: winner_id})


def finalize_match(match: Match) -> Match:
    """Lock a completed match against further result edits."""
    if match.is_finalized:
        raise MatchFinalizedError(f"Match {match.id} is already finalized")
    if match.status != MatchStatus.COMPLETED:
        raise MatchNotReadyError(f"Match {match.id} has no result to finalize")
    return match.model_copy(update={"is_finalized": True})
