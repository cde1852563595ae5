"""
Storage backend for tournaments, teams and matches.

Uses SQLite. Every multi-row write (schedule regeneration, a logged result
with its rating changes and bracket advancement) runs in one transaction.
"""

import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, runtime_checkable

from playbook.bracket import is_playoff_round
from playbook.errors import NotFoundError, PlayBookError
from playbook.models import (
    DEFAULT_K_FACTOR,
    DEFAULT_RATING,
    Match,
    MatchStatus,
    Slot,
    Team,
    Tournament,
)


ROUND_ROBIN = "round_robin"
PLAYOFFS = "playoffs"


def _new_id() -> str:
    return uuid.uuid4().hex


def _stage(match: Match) -> str:
    return PLAYOFFS if is_playoff_round(match.round_name) else ROUND_ROBIN


def _row_to_match(r: sqlite3.Row) -> Match:
    return Match(
        id=r['match_id'],
        tournament_id=r['tournament_id'],
        round_name=r['round_name'],
        team1_id=r['team1_id'],
        team2_id=r['team2_id'],
        team1_score=r['team1_score'],
        team2_score=r['team2_score'],
        status=MatchStatus(r['status']),
        next_match_id=r['next_match_id'],
        winner_advances_to_slot=Slot(r['winner_advances_to_slot']) if r['winner_advances_to_slot'] else None,
        is_finalized=bool(r['is_finalized']),
        match_date=datetime.fromisoformat(r['match_date']) if r['match_date'] else None,
        venue=r['venue'],
        elo_delta_team1=r['elo_delta_team1'] or 0,
        elo_delta_team2=r['elo_delta_team2'] or 0
    )


def _row_to_team(r: sqlite3.Row) -> Team:
    return Team(
        id=r['team_id'],
        tournament_id=r['tournament_id'],
        name=r['name'],
        elo_rating=r['elo_rating'],
        wins=r['wins'] or 0,
        losses=r['losses'] or 0,
        logo_url=r['logo_url']
    )


def _match_params(match: Match) -> tuple:
    slot = match.winner_advances_to_slot
    return (
        match.round_name,
        match.team1_id,
        match.team2_id,
        match.team1_score,
        match.team2_score,
        MatchStatus(match.status).value,
        match.next_match_id,
        Slot(slot).value if slot else None,
        int(match.is_finalized),
        match.match_date.isoformat() if match.match_date else None,
        match.venue,
        match.elo_delta_team1,
        match.elo_delta_team2,
    )


@runtime_checkable
class TournamentRepository(Protocol):
    """Storage operations the tournament service depends on."""

    def create_tournament(
        self,
        name: str,
        game: Optional[str] = None,
        k_factor: int = DEFAULT_K_FACTOR,
        tournament_id: Optional[str] = None
    ) -> Tournament: ...

    def require_tournament(self, tournament_id: str) -> Tournament: ...

    def add_team(
        self,
        tournament_id: str,
        name: str,
        elo_rating: int = DEFAULT_RATING,
        logo_url: Optional[str] = None,
        team_id: Optional[str] = None
    ) -> Team: ...

    def get_team(self, team_id: str) -> Optional[Team]: ...

    def get_teams(self, tournament_id: str) -> List[Team]: ...

    def replace_matches(
        self,
        tournament_id: str,
        stage: str,
        matches: Iterable[Match]
    ) -> List[Match]: ...

    def get_matches(self, tournament_id: str, stage: Optional[str] = None) -> List[Match]: ...

    def get_match(self, match_id: str) -> Optional[Match]: ...

    def save_match(self, match: Match) -> None: ...

    def save_result(
        self,
        match: Match,
        teams: Iterable[Team],
        advanced: Optional[Match] = None
    ) -> None: ...


class TournamentStorage:
    """
    Handles persistent storage of tournaments.

    Uses SQLite tables in the playbook.db database.
    """

    def __init__(self, data_dir: str = "data"):
        """
        Initialize storage backend.

        Args:
            data_dir: Base directory for data storage
        """
        self.data_dir = Path(data_dir)
        self.db_path = self.data_dir / "playbook.db"

        # Ensure directory exists
        self.data_dir.mkdir(parents=True, exist_ok=True)

        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self):
        """Initialize SQLite database schema."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS tournaments (
                    tournament_id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    game TEXT,
                    k_factor INTEGER DEFAULT 32,
                    created_at TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS teams (
                    team_id TEXT PRIMARY KEY,
                    tournament_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    elo_rating INTEGER NOT NULL,
                    wins INTEGER DEFAULT 0,
                    losses INTEGER DEFAULT 0,
                    logo_url TEXT,
                    FOREIGN KEY (tournament_id) REFERENCES tournaments(tournament_id)
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS matches (
                    match_id TEXT PRIMARY KEY,
                    tournament_id TEXT NOT NULL,
                    stage TEXT NOT NULL,
                    position INTEGER NOT NULL,
                    round_name TEXT NOT NULL,
                    team1_id TEXT,
                    team2_id TEXT,
                    team1_score INTEGER,
                    team2_score INTEGER,
                    status TEXT DEFAULT 'pending',
                    next_match_id TEXT,
                    winner_advances_to_slot TEXT,
                    is_finalized INTEGER DEFAULT 0,
                    match_date TEXT,
                    venue TEXT,
                    elo_delta_team1 INTEGER DEFAULT 0,
                    elo_delta_team2 INTEGER DEFAULT 0,
                    FOREIGN KEY (tournament_id) REFERENCES tournaments(tournament_id)
                )
            """)

            conn.execute("CREATE INDEX IF NOT EXISTS idx_teams_tournament ON teams(tournament_id)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_matches_tournament ON matches(tournament_id)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_matches_next ON matches(next_match_id)")

            conn.commit()

    # -- tournaments -------------------------------------------------------

    def create_tournament(
        self,
        name: str,
        game: Optional[str] = None,
        k_factor: int = DEFAULT_K_FACTOR,
        tournament_id: Optional[str] = None
    ) -> Tournament:
        """
        Create a new tournament record.

        Args:
            name: Display name
            game: Optional game or sport
            k_factor: Elo K-factor used for this tournament's results
            tournament_id: Optional id (generated if None)

        Returns:
            The stored Tournament
        """
        tournament = Tournament(
            id=tournament_id or _new_id(),
            name=name,
            game=game,
            k_factor=k_factor,
            created_at=datetime.now(timezone.utc).isoformat()
        )

        with self._connect() as conn:
            conn.execute("""
                INSERT INTO tournaments (tournament_id, name, game, k_factor, created_at)
                VALUES (?, ?, ?, ?, ?)
            """, (tournament.id, tournament.name, tournament.game,
                  tournament.k_factor, tournament.created_at))

        return tournament

    def get_tournament(self, tournament_id: str) -> Optional[Tournament]:
        """Load a tournament by ID."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM tournaments WHERE tournament_id = ?",
                (tournament_id,)
            ).fetchone()
        if not row:
            return None
        return Tournament(
            id=row['tournament_id'],
            name=row['name'],
            game=row['game'],
            k_factor=row['k_factor'] if row['k_factor'] is not None else DEFAULT_K_FACTOR,
            created_at=row['created_at']
        )

    def require_tournament(self, tournament_id: str) -> Tournament:
        tournament = self.get_tournament(tournament_id)
        if tournament is None:
            raise NotFoundError(f"Tournament {tournament_id} not found")
        return tournament

    def list_tournaments(self, limit: int = 20) -> List[Dict[str, Any]]:
        """List recent tournaments with their team counts."""
        with self._connect() as conn:
            cursor = conn.execute("""
                SELECT t.tournament_id, t.name, t.game, t.k_factor, t.created_at,
                       COUNT(tm.team_id) AS team_count
                FROM tournaments t
                LEFT JOIN teams tm ON tm.tournament_id = t.tournament_id
                GROUP BY t.tournament_id
                ORDER BY t.created_at DESC
                LIMIT ?
            """, (limit,))
            return [dict(row) for row in cursor.fetchall()]

    # -- teams -------------------------------------------------------------

    def add_team(
        self,
        tournament_id: str,
        name: str,
        elo_rating: int = DEFAULT_RATING,
        logo_url: Optional[str] = None,
        team_id: Optional[str] = None
    ) -> Team:
        """Add a team to a tournament."""
        self.require_tournament(tournament_id)
        team = Team(
            id=team_id or _new_id(),
            tournament_id=tournament_id,
            name=name,
            elo_rating=elo_rating,
            logo_url=logo_url
        )
        with self._connect() as conn:
            conn.execute("""
                INSERT INTO teams (team_id, tournament_id, name, elo_rating, wins, losses, logo_url)
                VALUES (?, ?, ?, ?, 0, 0, ?)
            """, (team.id, tournament_id, team.name, team.elo_rating, team.logo_url))
        return team

    def get_team(self, team_id: str) -> Optional[Team]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM teams WHERE team_id = ?", (team_id,)
            ).fetchone()
        return _row_to_team(row) if row else None

    def get_teams(self, tournament_id: str) -> List[Team]:
        """Teams of a tournament in insertion order."""
        with self._connect() as conn:
            cursor = conn.execute(
                "SELECT * FROM teams WHERE tournament_id = ? ORDER BY rowid",
                (tournament_id,)
            )
            return [_row_to_team(r) for r in cursor.fetchall()]

    # -- matches -----------------------------------------------------------

    def _insert_matches(
        self,
        conn: sqlite3.Connection,
        tournament_id: str,
        matches: Iterable[Match]
    ) -> List[Match]:
        start = conn.execute(
            "SELECT COALESCE(MAX(position), -1) + 1 FROM matches WHERE tournament_id = ?",
            (tournament_id,)
        ).fetchone()[0]

        stored = []
        for offset, match in enumerate(matches):
            match = match.model_copy(update={
                "id": match.id or _new_id(),
                "tournament_id": tournament_id,
            })
            conn.execute("""
                INSERT INTO matches
                (match_id, tournament_id, stage, position,
                 round_name, team1_id, team2_id, team1_score, team2_score,
                 status, next_match_id, winner_advances_to_slot, is_finalized,
                 match_date, venue, elo_delta_team1, elo_delta_team2)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (match.id, tournament_id, _stage(match), start + offset) + _match_params(match))
            stored.append(match)
        return stored

    def insert_matches(self, tournament_id: str, matches: Iterable[Match]) -> List[Match]:
        """
        Insert matches in one transaction, assigning ids where missing.

        Returns:
            The stored matches with their final ids
        """
        with self._connect() as conn:
            return self._insert_matches(conn, tournament_id, matches)

    def replace_matches(
        self,
        tournament_id: str,
        stage: str,
        matches: Iterable[Match]
    ) -> List[Match]:
        """
        Delete a stage's matches and insert new ones atomically.

        Raises:
            PlayBookError: If the stage is unknown or a match belongs to
                another stage
        """
        if stage not in (ROUND_ROBIN, PLAYOFFS):
            raise PlayBookError(f"Unknown match stage {stage!r}")
        matches = list(matches)
        for match in matches:
            if _stage(match) != stage:
                raise PlayBookError(
                    f"Match '{match.round_name}' does not belong to stage {stage}"
                )
        with self._connect() as conn:
            conn.execute(
                "DELETE FROM matches WHERE tournament_id = ? AND stage = ?",
                (tournament_id, stage)
            )
            return self._insert_matches(conn, tournament_id, matches)

    def delete_matches(self, tournament_id: str, stage: Optional[str] = None) -> int:
        """Delete a tournament's matches, optionally only one stage."""
        with self._connect() as conn:
            if stage is None:
                cursor = conn.execute(
                    "DELETE FROM matches WHERE tournament_id = ?", (tournament_id,)
                )
            else:
                cursor = conn.execute(
                    "DELETE FROM matches WHERE tournament_id = ? AND stage = ?",
                    (tournament_id, stage)
                )
            return cursor.rowcount

    def get_matches(self, tournament_id: str, stage: Optional[str] = None) -> List[Match]:
        """Matches of a tournament in insertion order."""
        query = "SELECT * FROM matches WHERE tournament_id = ?"
        params: tuple = (tournament_id,)
        if stage is not None:
            query += " AND stage = ?"
            params = (tournament_id, stage)
        query += " ORDER BY position"
        with self._connect() as conn:
            return [_row_to_match(r) for r in conn.execute(query, params).fetchall()]

    def get_match(self, match_id: str) -> Optional[Match]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM matches WHERE match_id = ?", (match_id,)
            ).fetchone()
        return _row_to_match(row) if row else None

    def _update_match(self, conn: sqlite3.Connection, match: Match) -> None:
        cursor = conn.execute("""
            UPDATE matches
            SET round_name = ?, team1_id = ?, team2_id = ?,
                team1_score = ?, team2_score = ?, status = ?,
                next_match_id = ?, winner_advances_to_slot = ?, is_finalized = ?,
                match_date = ?, venue = ?, elo_delta_team1 = ?, elo_delta_team2 = ?
            WHERE match_id = ?
        """, _match_params(match) + (match.id,))
        if cursor.rowcount == 0:
            raise NotFoundError(f"Match {match.id} not found")

    def _update_team(self, conn: sqlite3.Connection, team: Team) -> None:
        cursor = conn.execute("""
            UPDATE teams SET elo_rating = ?, wins = ?, losses = ?
            WHERE team_id = ?
        """, (team.elo_rating, team.wins, team.losses, team.id))
        if cursor.rowcount == 0:
            raise NotFoundError(f"Team {team.id} not found")

    def save_match(self, match: Match) -> None:
        """Save an updated match."""
        with self._connect() as conn:
            self._update_match(conn, match)

    def save_result(
        self,
        match: Match,
        teams: Iterable[Team],
        advanced: Optional[Match] = None
    ) -> None:
        """
        Save a logged result in one transaction.

        Args:
            match: The completed match
            teams: Teams whose rating and record changed
            advanced: Downstream match with the winner filled in, if any
        """
        with self._connect() as conn:
            self._update_match(conn, match)
            for team in teams:
                self._update_team(conn, team)
            if advanced is not None:
                self._update_match(conn, advanced)
