"""
Elo rating calculator for team rankings.

Implements the standard Elo rating system:
- Expected score: E = 1 / (1 + 10^((R_opp - R_self) / 400))
- Rating update: R_new = round(R_old + K * (S - E))

Each side's expected score is computed from its own perspective rather than
as 1 - E_a, and results are rounded half up, so the aggregate rating is only
approximately conserved.
"""

import math
from dataclasses import dataclass
from typing import Tuple

from playbook.models import DEFAULT_K_FACTOR


@dataclass
class EloUpdate:
    """Result of an Elo update after a decided match."""
    participant_a: str
    participant_b: str
    old_elo_a: int
    old_elo_b: int
    new_elo_a: int
    new_elo_b: int
    expected_a: float
    actual_score_a: int

    @property
    def delta_a(self) -> int:
        return self.new_elo_a - self.old_elo_a

    @property
    def delta_b(self) -> int:
        return self.new_elo_b - self.old_elo_b


def expected_score(rating_a: float, rating_b: float) -> float:
    """
    Calculate expected score for player A against player B.

    Args:
        rating_a: Rating of player A
        rating_b: Rating of player B

    Returns:
        Expected score between 0 and 1
    """
    # Clamped so 10 ** exponent stays a finite float for any rating gap
    exponent = min(max((rating_b - rating_a) / 400.0, -300.0), 300.0)
    return 1.0 / (1.0 + 10 ** exponent)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_elo(
    rating_a: float,
    rating_b: float,
    score_a: int,
    k: float = DEFAULT_K_FACTOR
) -> Tuple[int, int]:
    """
    Compute new ratings for both sides of a decided match.

    Args:
        rating_a: Current rating of A
        rating_b: Current rating of B
        score_a: 1 if A won, 0 if A lost
        k: K-factor (rating volatility)

    Returns:
        (new_rating_a, new_rating_b) rounded to integers

    Raises:
        ValueError: If score_a is not 0 or 1
    """
    if score_a not in (0, 1):
        raise ValueError(f"score_a must be 0 or 1, got {score_a!r}")

    expected_a = expected_score(rating_a, rating_b)
    expected_b = expected_score(rating_b, rating_a)

    new_a = _round_half_up(rating_a + k * (score_a - expected_a))
    new_b = _round_half_up(rating_b + k * ((1 - score_a) - expected_b))

    return new_a, new_b


class EloCalculator:
    """
    Elo calculator bound to a tournament's K-factor.

    Used by result logging to keep the old and new ratings together.
    """

    def __init__(self, k_factor: float = DEFAULT_K_FACTOR):
        """
        Initialize the Elo calculator.

        Args:
            k_factor: The K-factor determines rating volatility (default: 32)
        """
        if not math.isfinite(k_factor) or k_factor < 0:
            raise ValueError(f"K-factor must be a finite non-negative number, got {k_factor}")
        self.k_factor = k_factor

    def update(
        self,
        participant_a: str,
        participant_b: str,
        rating_a: int,
        rating_b: int,
        a_won: bool
    ) -> EloUpdate:
        """
        Rate a decided match between A and B.

        Args:
            participant_a: Id of A
            participant_b: Id of B
            rating_a: Current rating of A
            rating_b: Current rating of B
            a_won: Whether A won

        Returns:
            EloUpdate with old/new ratings and calculation details
        """
        for rating in (rating_a, rating_b):
            if not math.isfinite(rating):
                raise ValueError(f"Rating must be finite, got {rating}")

        score_a = 1 if a_won else 0
        new_a, new_b = calculate_elo(rating_a, rating_b, score_a, self.k_factor)

        return EloUpdate(
            participant_a=participant_a,
            participant_b=participant_b,
            old_elo_a=rating_a,
            old_elo_b=rating_b,
            new_elo_a=new_a,
            new_elo_b=new_b,
            expected_a=expected_score(rating_a, rating_b),
            actual_score_a=score_a
        )
