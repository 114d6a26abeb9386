"""Error taxonomy for the refinement engine."""

from __future__ import annotations

from typing import Sequence


class RefinementError(Exception):
    """Base class for failures scoped to a single abstract UCCA."""

    kind = "refinement_error"


class CombinationLimitExceeded(RefinementError):
    """Raised when generation for one abstract UCCA passes the candidate limit."""

    kind = "combination_limit_exceeded"

    def __init__(self, ucca_id: str, limit: int) -> None:
        super().__init__(f"Abstract UCCA {ucca_id} produced more than {limit} candidate combinations")
        self.ucca_id = ucca_id
        self.limit = limit


class PatternSyntaxError(RefinementError):
    """Raised by the strict pattern parser on malformed abstract patterns."""

    kind = "pattern_syntax_error"

    def __init__(self, message: str, position: int) -> None:
        super().__init__(f"{message} at position {position}")
        self.position = position


class GroupOverlapError(ValueError):
    """A controller is declared in more than one interchangeable group."""

    def __init__(self, controller_id: str, group_ids: Sequence[str]) -> None:
        super().__init__(
            f"Controller {controller_id} belongs to multiple interchangeable groups: {', '.join(group_ids)}"
        )
        self.controller_id = controller_id
        self.group_ids = tuple(group_ids)


class DocumentError(ValueError):
    """Input document failed validation."""
