"""
Team standings and bracket seed order.

Ranking is wins descending, then Elo rating descending; ties keep their
input order.
"""

from typing import List, Sequence

from playbook.models import Team


def rank_teams(teams: Sequence[Team]) -> List[Team]:
    """Return teams sorted by wins, then rating (both descending)."""
    return sorted(teams, key=lambda t: (-t.wins, -t.elo_rating))


def seed_order(teams: Sequence[Team], size: int) -> List[str]:
    """Ids of the top ``size`` ranked teams, best seed first."""
    return [team.id for team in rank_teams(teams)[:size]]
