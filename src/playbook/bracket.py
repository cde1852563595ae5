"""
Single elimination bracket generation.

The bracket is built entirely in memory, root first, with ids drawn from an
id factory so every ``next_match_id`` link is known before anything is
persisted. First-round match ``j`` feeds match ``j // 2`` of the next round,
filling ``team1`` when ``j`` is even and ``team2`` when it is odd.
"""
import uuid
from typing import Callable, List, Optional, Sequence, Tuple

from playbook.errors import InsufficientParticipants, UnsupportedBracketSize
from playbook.models import Match, MatchStatus, Slot


SUPPORTED_BRACKET_SIZES = (4, 8, 16)

FINALS = "Finals"
SEMIFINALS = "Semifinals"
QUARTERFINALS = "Quarterfinals"
ROUND_OF_16 = "Round of 16"

PLAYOFF_ROUND_PREFIXES = (ROUND_OF_16, QUARTERFINALS, SEMIFINALS, FINALS)


def default_id_factory() -> str:
    return uuid.uuid4().hex


def get_round_name(matches_in_round: int, index: int) -> str:
    """
    Get the name of a playoff match from the size of its round.

    Args:
        matches_in_round: Number of matches in the round
        index: 1-based position of the match within the round

    Returns:
        "Finals", "Semifinals", "Quarterfinals {n}" or "Round of 16 {n}"
    """
    if matches_in_round == 1:
        return FINALS
    if matches_in_round == 2:
        return SEMIFINALS
    if matches_in_round == 4:
        return f"{QUARTERFINALS} {index}"
    return f"Round of {matches_in_round * 2} {index}"


def is_playoff_round(round_name: Optional[str]) -> bool:
    """Whether a round name belongs to the playoff bracket."""
    if not round_name:
        return False
    return any(prefix in round_name for prefix in PLAYOFF_ROUND_PREFIXES)


def validate_bracket_size(size: int) -> None:
    if size not in SUPPORTED_BRACKET_SIZES:
        raise UnsupportedBracketSize(size, SUPPORTED_BRACKET_SIZES)


def bracket_positions(size: int) -> List[int]:
    """
    Seed numbers in bracket line order.

    Each level replaces seed ``s`` with ``s`` and ``level + 1 - s``; the order
    of the pair alternates so the two halves of the draw stay balanced. For 8
    this gives ``[1, 8, 5, 4, 3, 6, 7, 2]``.
    """
    positions = [1, 2]
    level = 2
    while level < size:
        level *= 2
        expanded = []
        for i, seed in enumerate(positions):
            opponent = level + 1 - seed
            if i % 2 == 0:
                expanded.extend([seed, opponent])
            else:
                expanded.extend([opponent, seed])
        positions = expanded
    return positions


def seed_pairings(size: int) -> List[Tuple[int, int]]:
    """
    First-round pairings of 1-based seeds, higher seed first.

    For 8 entries: (1, 8), (4, 5), (3, 6), (2, 7).
    """
    validate_bracket_size(size)
    positions = bracket_positions(size)
    pairs = []
    for i in range(0, len(positions), 2):
        a, b = positions[i], positions[i + 1]
        pairs.append((min(a, b), max(a, b)))
    return pairs


def generate_bracket(
    seeded_participants: Sequence[str],
    size: int = 8,
    tournament_id: Optional[str] = None,
    id_factory: Optional[Callable[[], str]] = None
) -> List[Match]:
    """
    Build a single elimination bracket from a ranked participant list.

    Args:
        seeded_participants: Participant ids, best first (wins desc, rating
            desc). Entries beyond ``size`` are ignored.
        size: Bracket size, one of SUPPORTED_BRACKET_SIZES
        tournament_id: Optional tournament id stamped on every match
        id_factory: Callable returning a fresh match id (uuid4 hex by default)

    Returns:
        Matches ordered Finals first, then each earlier round

    Raises:
        UnsupportedBracketSize: If size is not supported
        InsufficientParticipants: If fewer than ``size`` participants
    """
    validate_bracket_size(size)
    if len(seeded_participants) < size:
        raise InsufficientParticipants(size, len(seeded_participants))

    new_id = id_factory or default_id_factory
    seeds = list(seeded_participants[:size])

    finals = Match(
        id=new_id(),
        tournament_id=tournament_id,
        round_name=FINALS,
        status=MatchStatus.PENDING
    )
    matches = [finals]
    previous_round = [finals]

    matches_in_round = 2
    while matches_in_round <= size // 2:
        current_round = []
        for j in range(matches_in_round):
            target = previous_round[j // 2]
            current_round.append(Match(
                id=new_id(),
                tournament_id=tournament_id,
                round_name=get_round_name(matches_in_round, j + 1),
                status=MatchStatus.PENDING,
                next_match_id=target.id,
                winner_advances_to_slot=Slot.TEAM1 if j % 2 == 0 else Slot.TEAM2
            ))
        matches.extend(current_round)
        previous_round = current_round
        matches_in_round *= 2

    # previous_round is now the first round; seed it
    for match, (high, low) in zip(previous_round, seed_pairings(size)):
        match.team1_id = seeds[high - 1]
        match.team2_id = seeds[low - 1]

    return matches
