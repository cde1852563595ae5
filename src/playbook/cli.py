"""
Command-line interface for PlayBook tournaments.

Usage:
    playbook create "Spring League" --game basketball --k-factor 24
    playbook add-team TOURNAMENT_ID "Falcons" --rating 1250
    playbook schedule TOURNAMENT_ID
    playbook log TOURNAMENT_ID MATCH_ID 3 1
    playbook standings TOURNAMENT_ID
    playbook playoffs TOURNAMENT_ID --size 8
    playbook bracket TOURNAMENT_ID
"""

import argparse
import sys
from typing import List, Optional

from playbook.bracket import SUPPORTED_BRACKET_SIZES
from playbook.display import format_bracket, format_schedule, format_standings
from playbook.errors import NotFoundError, PlayBookError
from playbook.models import DEFAULT_K_FACTOR, DEFAULT_RATING
from playbook.service import TournamentConfig, TournamentService


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog='playbook',
        description='Round-robin schedules, Elo standings and playoff brackets.'
    )
    parser.add_argument(
        '--data-dir',
        type=str, default='data',
        help='Directory for the tournament database (default: data)'
    )
    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Only print requested output'
    )

    sub = parser.add_subparsers(dest='command', required=True)

    create = sub.add_parser('create', help='Create a tournament')
    create.add_argument('name')
    create.add_argument('--game', type=str, default=None)
    create.add_argument(
        '--k-factor',
        type=int, default=DEFAULT_K_FACTOR,
        help=f'Elo K-factor for rating volatility (default: {DEFAULT_K_FACTOR})'
    )

    add_team = sub.add_parser('add-team', help='Register a team')
    add_team.add_argument('tournament')
    add_team.add_argument('name')
    add_team.add_argument(
        '--rating',
        type=int, default=DEFAULT_RATING,
        help=f'Starting Elo rating (default: {DEFAULT_RATING})'
    )

    schedule = sub.add_parser('schedule', help='Generate the round-robin schedule')
    schedule.add_argument('tournament')

    playoffs = sub.add_parser('playoffs', help='Generate the playoff bracket from standings')
    playoffs.add_argument('tournament')
    playoffs.add_argument(
        '--size',
        type=int, default=8, choices=SUPPORTED_BRACKET_SIZES,
        help='Bracket size (default: 8)'
    )

    log = sub.add_parser('log', help='Log or edit a match result')
    log.add_argument('tournament')
    log.add_argument('match')
    log.add_argument('team1_score', type=int)
    log.add_argument('team2_score', type=int)

    finalize = sub.add_parser('finalize', help='Lock a completed match')
    finalize.add_argument('tournament')
    finalize.add_argument('match')

    for name, help_text in (
        ('standings', 'Show standings'),
        ('matches', 'List all matches with their ids'),
        ('bracket', 'Show the playoff bracket'),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument('tournament')

    return parser.parse_args(argv)


def _check_match_belongs(service: TournamentService, tournament_id: str, match_id: str):
    match = service.storage.get_match(match_id)
    if match is None or match.tournament_id != tournament_id:
        raise NotFoundError(f"Match {match_id} not found in tournament {tournament_id}")


def run(args: argparse.Namespace) -> int:
    config = TournamentConfig(data_dir=args.data_dir)
    service = TournamentService(config=config, verbose=not args.quiet)

    if args.command == 'create':
        tournament = service.create_tournament(args.name, game=args.game, k_factor=args.k_factor)
        print(tournament.id)

    elif args.command == 'add-team':
        team = service.add_team(args.tournament, args.name, elo_rating=args.rating)
        print(team.id)

    elif args.command == 'schedule':
        service.generate_schedule(args.tournament)
        print(format_schedule(service.matches(args.tournament),
                              service.team_names(args.tournament), show_ids=True))

    elif args.command == 'playoffs':
        service.generate_playoffs(args.tournament, size=args.size)
        print(format_bracket(service.bracket(args.tournament),
                             service.team_names(args.tournament)))

    elif args.command == 'log':
        _check_match_belongs(service, args.tournament, args.match)
        service.log_result(args.match, args.team1_score, args.team2_score)

    elif args.command == 'finalize':
        _check_match_belongs(service, args.tournament, args.match)
        service.finalize(args.match)

    elif args.command == 'standings':
        print(format_standings(service.standings(args.tournament)))

    elif args.command == 'matches':
        print(format_schedule(service.matches(args.tournament),
                              service.team_names(args.tournament), show_ids=True))

    elif args.command == 'bracket':
        print(format_bracket(service.bracket(args.tournament),
                             service.team_names(args.tournament)))

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    try:
        return run(args)
    except PlayBookError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
