"""
PlayBook tournament core.

Provides:
- generate_round_robin: Circle-method round-robin schedule
- calculate_elo / EloCalculator: Elo rating updates
- generate_bracket: Seeded single elimination bracket with advancement links
- render_bracket: Rebuild the bracket tree from a flat match list
- TournamentService / TournamentStorage: SQLite-backed tournament operations
"""

from playbook.bracket import SUPPORTED_BRACKET_SIZES, generate_bracket, seed_pairings
from playbook.elo import EloCalculator, EloUpdate, calculate_elo, expected_score
from playbook.errors import (
    DownstreamMatchPlayedError,
    DrawNotSupportedError,
    InsufficientParticipants,
    MatchFinalizedError,
    MatchNotReadyError,
    NotFoundError,
    PlayBookError,
    UnsupportedBracketSize,
)
from playbook.models import Match, MatchStatus, ScheduledPairing, Slot, Team, Tournament
from playbook.render import BracketNode, render_bracket
from playbook.results import advance_winner, apply_result, finalize_match
from playbook.scheduler import generate_round_robin
from playbook.service import TournamentConfig, TournamentService
from playbook.standings import rank_teams, seed_order
from playbook.storage import TournamentRepository, TournamentStorage

__all__ = [
    'generate_round_robin',
    'calculate_elo',
    'expected_score',
    'EloCalculator',
    'EloUpdate',
    'generate_bracket',
    'seed_pairings',
    'SUPPORTED_BRACKET_SIZES',
    'render_bracket',
    'BracketNode',
    'apply_result',
    'advance_winner',
    'finalize_match',
    'rank_teams',
    'seed_order',
    'Match',
    'MatchStatus',
    'Slot',
    'ScheduledPairing',
    'Team',
    'Tournament',
    'TournamentConfig',
    'TournamentService',
    'TournamentRepository',
    'TournamentStorage',
    'PlayBookError',
    'InsufficientParticipants',
    'UnsupportedBracketSize',
    'MatchFinalizedError',
    'MatchNotReadyError',
    'DownstreamMatchPlayedError',
    'DrawNotSupportedError',
    'NotFoundError',
]
