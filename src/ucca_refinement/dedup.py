"""Equivalence deduplication under controller interchangeability."""

from __future__ import annotations

from typing import Iterable, List, Sequence

from .entities import ControllerAssignment, RefinedUCCA
from .indices import InterchangeabilityIndex

PRUNE_REASON = "Equivalent to another combination due to interchangeable controllers"
SIGNATURE_SEPARATOR = "|"


def equivalence_signature(
    assignments: Iterable[ControllerAssignment],
    interchangeability: InterchangeabilityIndex,
) -> str:
    parts = sorted(
        f"{interchangeability.canonical_id(assignment.controller_id)}:"
        f"{assignment.control_action_id}:{'true' if assignment.performed else 'false'}"
        for assignment in assignments
    )
    return SIGNATURE_SEPARATOR.join(parts)


def mark_equivalent(refinements: Sequence[RefinedUCCA], interchangeability: InterchangeabilityIndex) -> List[RefinedUCCA]:
    """Flag every refinement equivalent to an earlier one.

    The first refinement per signature stays unpruned. Later ones are kept in
    place with ``is_pruned`` set so that reviewers can trace them.
    """

    seen: set[str] = set()
    for refinement in refinements:
        signature = equivalence_signature(refinement.specific_controller_assignments, interchangeability)
        if signature in seen:
            refinement.is_pruned = True
            refinement.prune_reason = PRUNE_REASON
        else:
            seen.add(signature)
    return list(refinements)
