"""
Pydantic models for tournaments, teams and matches.

A Match is the record every component produces or consumes: the round-robin
scheduler emits pairings that become matches, the bracket builder emits linked
matches, and the renderer walks them back into a tree.
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


DEFAULT_K_FACTOR = 32
DEFAULT_RATING = 1200


class MatchStatus(str, Enum):
    """Match lifecycle states."""
    PENDING = "pending"
    COMPLETED = "completed"


class Slot(str, Enum):
    """Slot of the downstream match that a winner fills."""
    TEAM1 = "team1"
    TEAM2 = "team2"


class Tournament(BaseModel):
    """A tournament and its rating settings."""
    id: str
    name: str
    game: Optional[str] = None
    k_factor: int = Field(default=DEFAULT_K_FACTOR, ge=0)
    created_at: Optional[str] = None


class Team(BaseModel):
    """A participant with its running record."""
    id: str
    name: str
    tournament_id: Optional[str] = None
    elo_rating: int = DEFAULT_RATING
    wins: int = Field(default=0, ge=0)
    losses: int = Field(default=0, ge=0)
    logo_url: Optional[str] = None


class ScheduledPairing(BaseModel):
    """One round-robin pairing, before it is stored as a match."""
    round_name: str
    team1_id: str
    team2_id: str


class Match(BaseModel):
    """
    A single match.

    ``next_match_id`` and ``winner_advances_to_slot`` are set together or not
    at all; the match with neither is the root of a bracket (or a round-robin
    match, which has no successor).
    """
    id: Optional[str] = None
    tournament_id: Optional[str] = None
    round_name: str
    team1_id: Optional[str] = None
    team2_id: Optional[str] = None
    team1_score: Optional[int] = Field(default=None, ge=0)
    team2_score: Optional[int] = Field(default=None, ge=0)
    status: MatchStatus = MatchStatus.PENDING
    next_match_id: Optional[str] = None
    winner_advances_to_slot: Optional[Slot] = None
    is_finalized: bool = False
    match_date: Optional[datetime] = None
    venue: Optional[str] = None
    elo_delta_team1: int = 0
    elo_delta_team2: int = 0

    @model_validator(mode="after")
    def _check_link(self) -> "Match":
        if (self.next_match_id is None) != (self.winner_advances_to_slot is None):
            raise ValueError(
                "next_match_id and winner_advances_to_slot must be set together"
            )
        return self

    @property
    def is_played(self) -> bool:
        return self.team1_score is not None and self.team2_score is not None

    @property
    def winner_id(self) -> Optional[str]:
        """Id of the winning team, or None if not decided."""
        if self.status != MatchStatus.COMPLETED or not self.is_played:
            return None
        if self.team1_score > self.team2_score:
            return self.team1_id
        if self.team2_score > self.team1_score:
            return self.team2_id
        return None

    @property
    def loser_id(self) -> Optional[str]:
        winner = self.winner_id
        if winner is None:
            return None
        return self.team2_id if winner == self.team1_id else self.team1_id
