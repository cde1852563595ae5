"""
Round-robin tournament scheduling.

Uses the circle method: one participant stays fixed while the rest rotate,
so every pair meets exactly once and each round is a disjoint set of pairings.
"""

from typing import List, Sequence

from playbook.models import ScheduledPairing


BYE = None


def generate_round_robin(participant_ids: Sequence[str]) -> List[ScheduledPairing]:
    """
    Generate a full round-robin schedule labeled by round.

    With an odd number of participants a bye placeholder is added, so one
    participant sits out each round and every participant sits out exactly
    once over the schedule.

    Args:
        participant_ids: Participant identifiers (0 or 1 entries give an
            empty schedule)

    Returns:
        List of ScheduledPairing grouped by round in generation order
    """
    teams = list(participant_ids)
    if len(teams) < 2:
        return []

    if len(teams) % 2 != 0:
        teams.append(BYE)

    schedule = []
    rounds = len(teams) - 1
    half = len(teams) // 2

    for round_index in range(rounds):
        for i in range(half):
            team1_id = teams[i]
            team2_id = teams[len(teams) - 1 - i]
            if team1_id is BYE or team2_id is BYE:
                continue
            schedule.append(ScheduledPairing(
                round_name=f"Round {round_index + 1}",
                team1_id=team1_id,
                team2_id=team2_id
            ))

        # Index 0 is the pivot; the last entry moves in behind it.
        teams.insert(1, teams.pop())

    return schedule


def num_rounds(num_participants: int) -> int:
    """Number of rounds in a round robin over n participants."""
    if num_participants < 2:
        return 0
    if num_participants % 2 == 0:
        return num_participants - 1
    return num_participants


def num_matches(num_participants: int) -> int:
    """Calculate number of matches in a round robin over n participants."""
    n = num_participants
    return n * (n - 1) // 2
