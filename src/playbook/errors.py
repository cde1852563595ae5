"""
Exceptions raised by the PlayBook core.

All of them are precondition failures and derive from ValueError.
"""


class PlayBookError(ValueError):
    """Base class for user-facing PlayBook errors."""


class InsufficientParticipants(PlayBookError):
    """Fewer ranked participants than the requested bracket size."""

    def __init__(self, size: int, available: int):
        self.size = size
        self.available = available
        super().__init__(
            f"Not enough teams for an {size}-team bracket "
            f"({available} available)"
        )


class UnsupportedBracketSize(PlayBookError):
    """Bracket size outside the supported set."""

    def __init__(self, size, supported):
        self.size = size
        self.supported = tuple(supported)
        super().__init__(
            f"Unsupported bracket size {size}; "
            f"expected one of {', '.join(str(s) for s in self.supported)}"
        )


class MatchFinalizedError(PlayBookError):
    """The match is finalized and can no longer change."""


class MatchNotReadyError(PlayBookError):
    """The match is missing a team or a result needed for the operation."""


class DownstreamMatchPlayedError(PlayBookError):
    """Changing the winner would rewrite a match that already has a result."""


class DrawNotSupportedError(PlayBookError):
    """Equal scores were submitted; ties are not modeled."""


class NotFoundError(PlayBookError):
    """A tournament, team or match id does not exist."""
