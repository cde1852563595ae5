"""
Display formatting for standings, schedules and brackets.

Provides ASCII output for terminal display. Missing data is shown as
placeholders: TBD for an unknown team, "-" for an unplayed score and
"Direct Advance" for a bracket slot with no feeder match.
"""

from typing import Dict, List, Optional, Sequence

from playbook.models import Match, Team
from playbook.render import BracketNode


TBD = "TBD"
DIRECT_ADVANCE = "Direct Advance"


def team_label(team_id: Optional[str], names: Optional[Dict[str, str]] = None) -> str:
    if team_id is None:
        return TBD
    if names:
        return names.get(team_id, team_id)
    return team_id


def format_standings(teams: Sequence[Team]) -> str:
    """
    Format ranked teams as an ASCII table.

    Args:
        teams: Teams already in rank order

    Returns:
        Formatted string for terminal display
    """
    lines = []
    lines.append("=== STANDINGS ===")
    lines.append("")

    # Header
    lines.append(f"{'Rank':<6}{'Team':<28}{'W-L':<10}{'Elo':<8}")
    lines.append("-" * 52)

    # Rows
    for i, team in enumerate(teams, 1):
        wl = f"{team.wins}-{team.losses}"
        lines.append(f"{i:<6}{team.name:<28}{wl:<10}{team.elo_rating:<8}")

    return "\n".join(lines)


def format_match_line(match: Match, names: Optional[Dict[str, str]] = None) -> str:
    """One-line summary of a match: round, teams, scores and state."""
    score1 = "-" if match.team1_score is None else str(match.team1_score)
    score2 = "-" if match.team2_score is None else str(match.team2_score)
    state = match.status.value
    if match.is_finalized:
        state += ", final"
    return (f"{match.round_name}: "
            f"{team_label(match.team1_id, names)} ({score1}) vs "
            f"{team_label(match.team2_id, names)} ({score2}) [{state}]")


def format_schedule(
    matches: Sequence[Match],
    names: Optional[Dict[str, str]] = None,
    show_ids: bool = False
) -> str:
    """Format matches grouped under their round names."""
    if not matches:
        return "Schedule not generated."

    lines: List[str] = []
    current_round = None
    for match in matches:
        if match.round_name != current_round:
            if lines:
                lines.append("")
            current_round = match.round_name
        line = "  " + format_match_line(match, names)
        if show_ids:
            line += f"  id={match.id}"
        lines.append(line)

    return "\n".join(lines)


def format_bracket(
    root: Optional[BracketNode],
    names: Optional[Dict[str, str]] = None
) -> str:
    """
    Format a rendered bracket as an indented ASCII tree.

    Args:
        root: Result of render_bracket
        names: Optional mapping of team id to display name

    Returns:
        Formatted string for terminal display
    """
    if root is None:
        return "Bracket not generated."

    lines = [format_match_line(root.match, names)]

    def emit(node: BracketNode, prefix: str) -> None:
        if node.is_leaf:
            return
        branches = [node.team1_feeder, node.team2_feeder]
        for i, child in enumerate(branches):
            last = i == len(branches) - 1
            connector = "`-- " if last else "|-- "
            if child is None:
                lines.append(f"{prefix}{connector}{DIRECT_ADVANCE}")
                continue
            lines.append(f"{prefix}{connector}{format_match_line(child.match, names)}")
            emit(child, prefix + ("    " if last else "|   "))

    emit(root, "")
    return "\n".join(lines)
