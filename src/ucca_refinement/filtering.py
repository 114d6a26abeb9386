"""Authority and special-interaction filtering of candidate assignment sets."""

from __future__ import annotations

import logging
from typing import Iterable, List, Sequence

from .constraints import OperatingContext, all_satisfied
from .entities import AppliesTo, ControllerAssignment, InteractionType, SpecialInteraction, UCCAType
from .indices import AuthorityIndex

_LOGGER = logging.getLogger(__name__)

_TYPE_CLASSES = {
    AppliesTo.TYPE_1_2: frozenset({UCCAType.TEAM_BASED, UCCAType.CROSS_CONTROLLER}),
    AppliesTo.TYPE_3_4: frozenset({UCCAType.TEMPORAL}),
}


def applies_to_type(applies_to: AppliesTo, ucca_type: UCCAType) -> bool:
    if applies_to == AppliesTo.BOTH:
        return True
    return ucca_type in _TYPE_CLASSES[applies_to]


def is_relevant(interaction: SpecialInteraction, assignments: Sequence[ControllerAssignment], ucca_type: UCCAType) -> bool:
    """Type class matches and the controller and action sets intersect the candidate."""
    if not applies_to_type(interaction.applies_to, ucca_type):
        return False
    controllers = {assignment.controller_id for assignment in assignments}
    actions = {assignment.control_action_id for assignment in assignments}
    if interaction.involved_controller_ids and controllers.isdisjoint(interaction.involved_controller_ids):
        return False
    if interaction.involved_control_action_ids and actions.isdisjoint(interaction.involved_control_action_ids):
        return False
    return True


def covers(interaction: SpecialInteraction, assignments: Sequence[ControllerAssignment]) -> bool:
    """True when the candidate performs the full combination the interaction names.

    Every involved controller performs some involved action, and every involved
    action is performed by some involved controller. Empty sets match anything.
    """

    controller_ids = set(interaction.involved_controller_ids)
    action_ids = set(interaction.involved_control_action_ids)
    performed = [
        assignment
        for assignment in assignments
        if assignment.performed
        and (not controller_ids or assignment.controller_id in controller_ids)
        and (not action_ids or assignment.control_action_id in action_ids)
    ]
    if not performed:
        return False
    performing_controllers = {assignment.controller_id for assignment in performed}
    performed_actions = {assignment.control_action_id for assignment in performed}
    return controller_ids <= performing_controllers and action_ids <= performed_actions


class ConstraintFilter:
    """Reject candidates violating authority or special interactions."""

    def __init__(
        self,
        authority: AuthorityIndex,
        special_interactions: Iterable[SpecialInteraction],
        include_partial_authority: bool = False,
        operating_context: OperatingContext | None = None,
    ) -> None:
        self._authority = authority
        self._interactions = [
            interaction
            for interaction in special_interactions
            if interaction.type in (InteractionType.MANDATORY, InteractionType.PROHIBITED)
        ]
        self._include_partial_authority = include_partial_authority
        self._operating_context = operating_context

    def filter(self, candidates: Iterable[Sequence[ControllerAssignment]], ucca_type: UCCAType) -> List[Sequence[ControllerAssignment]]:
        return [candidate for candidate in candidates if self.accepts(candidate, ucca_type)]

    def accepts(self, assignments: Sequence[ControllerAssignment], ucca_type: UCCAType) -> bool:
        return self.satisfies_authority(assignments) and self.satisfies_interactions(assignments, ucca_type)

    def satisfies_authority(self, assignments: Sequence[ControllerAssignment]) -> bool:
        for assignment in assignments:
            if not assignment.performed:
                continue
            relationship = self._authority.get(assignment.controller_id, assignment.control_action_id)
            if relationship is None:
                if not self._include_partial_authority:
                    _LOGGER.debug(
                        "candidate_rejected_missing_authority",
                        extra={"controller_id": assignment.controller_id, "control_action_id": assignment.control_action_id},
                    )
                    return False
                continue
            if not relationship.has_authority:
                return False
            if not all_satisfied(relationship.constraints, self._operating_context):
                _LOGGER.debug(
                    "candidate_rejected_authority_constraint",
                    extra={"controller_id": assignment.controller_id, "control_action_id": assignment.control_action_id},
                )
                return False
        return True

    def satisfies_interactions(self, assignments: Sequence[ControllerAssignment], ucca_type: UCCAType) -> bool:
        for interaction in self._interactions:
            if not is_relevant(interaction, assignments, ucca_type):
                continue
            covered = covers(interaction, assignments)
            if interaction.type == InteractionType.PROHIBITED and covered:
                _LOGGER.debug("candidate_rejected_prohibited", extra={"interaction_id": interaction.id})
                return False
            if interaction.type == InteractionType.MANDATORY and not covered:
                _LOGGER.debug("candidate_rejected_mandatory", extra={"interaction_id": interaction.id})
                return False
        return True
