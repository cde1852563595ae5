"""
Bracket reconstruction from a flat match list.

Read-only: the tree is rebuilt from the Finals match backwards by following
``next_match_id`` links. Incomplete data never raises; display code shows a
slot without a feeder as a direct advance and an unknown team as TBD.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set, Tuple

from playbook.bracket import FINALS, is_playoff_round
from playbook.models import Match, Slot


@dataclass
class BracketNode:
    """A match in the rendered bracket with its two feeder subtrees."""
    match: Match
    team1_feeder: Optional["BracketNode"] = None
    team2_feeder: Optional["BracketNode"] = None

    @property
    def is_leaf(self) -> bool:
        return self.team1_feeder is None and self.team2_feeder is None

    def children(self) -> List["BracketNode"]:
        return [n for n in (self.team1_feeder, self.team2_feeder) if n is not None]

    def leaves(self) -> List["BracketNode"]:
        """Leaf nodes in bracket order (top to bottom)."""
        if self.is_leaf:
            return [self]
        result = []
        for child in self.children():
            result.extend(child.leaves())
        return result

    def depth(self) -> int:
        if self.is_leaf:
            return 1
        return 1 + max(child.depth() for child in self.children())

    def walk(self) -> Iterable["BracketNode"]:
        yield self
        for child in self.children():
            yield from child.walk()


def playoff_matches(matches: Iterable[Match]) -> List[Match]:
    """Keep only matches that belong to the playoff bracket."""
    return [m for m in matches if is_playoff_round(m.round_name)]


def feeder_index(matches: Iterable[Match]) -> Dict[Tuple[str, Slot], Match]:
    """
    Index feeders by the match and slot they advance into.

    If two matches claim the same slot the first one seen wins.
    """
    index = {}
    for match in matches:
        if match.next_match_id is None or match.winner_advances_to_slot is None:
            continue
        key = (match.next_match_id, Slot(match.winner_advances_to_slot))
        index.setdefault(key, match)
    return index


def find_root(matches: List[Match]) -> Optional[Match]:
    """The Finals match, or the last match when none is labeled Finals."""
    if not matches:
        return None
    for match in matches:
        if match.round_name == FINALS:
            return match
    return matches[-1]


def render_bracket(matches: Iterable[Match]) -> Optional[BracketNode]:
    """
    Rebuild the bracket tree rooted at the Finals match.

    Args:
        matches: Flat list of one tournament's playoff matches, any order

    Returns:
        Root BracketNode, or None when there are no matches
    """
    matches = list(matches)
    root = find_root(matches)
    if root is None:
        return None

    index = feeder_index(matches)
    seen: Set[int] = set()

    def build(match: Match) -> BracketNode:
        seen.add(id(match))
        node = BracketNode(match=match)
        if match.id is None:
            return node
        for slot in (Slot.TEAM1, Slot.TEAM2):
            feeder = index.get((match.id, slot))
            # Guard against link cycles in malformed data
            if feeder is None or id(feeder) in seen:
                continue
            child = build(feeder)
            if slot == Slot.TEAM1:
                node.team1_feeder = child
            else:
                node.team2_feeder = child
        return node

    return build(root)
