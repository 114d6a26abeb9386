"""Priority scoring of refined UCCAs."""

from __future__ import annotations

from typing import Iterable, Sequence

from .entities import InteractionType, PriorityLevel, RefinedUCCA, SpecialInteraction, UCCAType
from .filtering import applies_to_type

BASELINE_SCORE = 5
HIGH_THRESHOLD = 8
MEDIUM_THRESHOLD = 5
MANY_CONTROLLERS = 3


def classify(score: float) -> PriorityLevel:
    if score >= HIGH_THRESHOLD:
        return PriorityLevel.HIGH
    if score >= MEDIUM_THRESHOLD:
        return PriorityLevel.MEDIUM
    return PriorityLevel.LOW


def matches_interaction(refinement: RefinedUCCA, interaction: SpecialInteraction) -> bool:
    if not applies_to_type(interaction.applies_to, refinement.ucca_type):
        return False
    controller_match = not interaction.involved_controller_ids or any(
        controller_id in refinement.involved_controller_ids for controller_id in interaction.involved_controller_ids
    )
    actions = {assignment.control_action_id for assignment in refinement.specific_controller_assignments}
    action_match = not interaction.involved_control_action_ids or any(
        action_id in actions for action_id in interaction.involved_control_action_ids
    )
    return controller_match and action_match


class PriorityScorer:
    """Score refinements from a medium baseline.

    Priority interactions set a floor; the remaining adjustments add one point
    each for more than three controllers, more than one hazard, and temporal
    combinations.
    """

    def __init__(self, special_interactions: Iterable[SpecialInteraction]) -> None:
        self._priority_interactions = [
            interaction for interaction in special_interactions if interaction.type == InteractionType.PRIORITY
        ]

    def score(self, refinement: RefinedUCCA) -> float:
        score = BASELINE_SCORE
        for interaction in self._priority_interactions:
            if matches_interaction(refinement, interaction):
                floor = interaction.priority if interaction.priority is not None else BASELINE_SCORE
                score = max(score, floor)
        if len(set(refinement.involved_controller_ids)) > MANY_CONTROLLERS:
            score += 1
        if len(refinement.hazard_ids) > 1:
            score += 1
        if refinement.ucca_type == UCCAType.TEMPORAL:
            score += 1
        return score

    def assign(self, refinements: Sequence[RefinedUCCA]) -> list[RefinedUCCA]:
        for refinement in refinements:
            if refinement.is_pruned:
                continue
            refinement.priority_score = self.score(refinement)
            refinement.priority = classify(refinement.priority_score)
        return list(refinements)
