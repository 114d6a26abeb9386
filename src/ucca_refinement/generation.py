"""Candidate generation for abstract UCCAs.

Candidates are yielded lazily. Team-level generation is a cross-product over
authorized controllers per requirement and may grow exponentially, so callers
bound it with ``bounded`` rather than materializing it directly.
"""

from __future__ import annotations

from itertools import islice, product
import logging
from typing import Iterable, Iterator, List, Sequence, Tuple

from .entities import AbstractionLevel, AbstractUCCA, ActionRequirement, Controller, ControllerAssignment
from .errors import CombinationLimitExceeded
from .indices import AuthorityIndex

_LOGGER = logging.getLogger(__name__)

ENUMERATION_MODES = ("full", "representative")

Candidate = Tuple[ControllerAssignment, ...]


class CombinationGenerator:
    """Produce controller-to-action assignment sets for requirements.

    Args:
        controllers: All known controllers; their order fixes the order in
            which team-level alternatives are enumerated.
        authority: Authority lookup.
        enumeration_mode: ``"full"`` enumerates the complete cross-product,
            ``"representative"`` yields one combination choosing the first
            authorized controller for each requirement.
    """

    def __init__(
        self,
        controllers: Sequence[Controller],
        authority: AuthorityIndex,
        enumeration_mode: str = "full",
    ) -> None:
        if enumeration_mode not in ENUMERATION_MODES:
            raise ValueError(f"enumeration_mode must be one of {', '.join(ENUMERATION_MODES)}")
        self._controller_ids = [controller.id for controller in controllers]
        self._authority = authority
        self._mode = enumeration_mode

    @property
    def enumeration_mode(self) -> str:
        return self._mode

    def generate(self, abstract_ucca: AbstractUCCA, requirements: Sequence[ActionRequirement]) -> Iterator[Candidate]:
        if abstract_ucca.abstraction_level == AbstractionLevel.TEAM_LEVEL:
            return self.team_level(requirements)
        return self.controller_specific(abstract_ucca.involved_controller_ids, requirements)

    def team_level(self, requirements: Sequence[ActionRequirement]) -> Iterator[Candidate]:
        choices: List[List[ControllerAssignment]] = []
        for requirement in requirements:
            authorized = self._authority.authorized_controllers(requirement.control_action_id, self._controller_ids)
            if not authorized:
                _LOGGER.debug("requirement_without_authority", extra={"control_action_id": requirement.control_action_id})
                continue
            if self._mode == "representative":
                authorized = authorized[:1]
            choices.append(
                [
                    ControllerAssignment(controller_id, requirement.control_action_id, requirement.required)
                    for controller_id in authorized
                ]
            )
        if not choices:
            return iter(())
        return product(*choices)

    def controller_specific(
        self,
        involved_controller_ids: Sequence[str],
        requirements: Sequence[ActionRequirement],
    ) -> Iterator[Candidate]:
        assignments: List[ControllerAssignment] = []
        for requirement in requirements:
            if requirement.required:
                # Several controllers performing the same action is a genuine redundancy scenario.
                for controller_id in self._authority.authorized_controllers(
                    requirement.control_action_id, involved_controller_ids
                ):
                    assignments.append(ControllerAssignment(controller_id, requirement.control_action_id, True))
            else:
                for controller_id in involved_controller_ids:
                    assignments.append(ControllerAssignment(controller_id, requirement.control_action_id, False))
        if not assignments:
            return iter(())
        return iter((tuple(assignments),))


def bounded(ucca_id: str, candidates: Iterable[Candidate], limit: int) -> List[Candidate]:
    """Materialize at most ``limit`` candidates.

    Raises:
        CombinationLimitExceeded: if a candidate beyond ``limit`` exists.
    """

    if limit < 1:
        raise ValueError("limit must be positive")
    materialized = list(islice(candidates, limit + 1))
    if len(materialized) > limit:
        raise CombinationLimitExceeded(ucca_id, limit)
    return materialized
