"""Refinement orchestrator.

Each abstract UCCA moves through Parsed -> Generated -> Filtered ->
Deduplicated -> Scored -> Assembled. Failures are scoped to the abstract UCCA
being refined; a batch always continues with the next one.
"""

from __future__ import annotations

from enum import Enum
import logging
import threading
from typing import Iterable, List, Sequence
import uuid

from .constraints import OperatingContext
from .dedup import mark_equivalent
from .describe import Describer
from .entities import (
    AbstractionLevel,
    AbstractUCCA,
    ControlAction,
    Controller,
    ControllerAssignment,
    PriorityLevel,
    RefinedUCCA,
    RefinementFailure,
    UCCAHierarchy,
    UCCARefinementConfig,
)
from .errors import RefinementError
from .filtering import ConstraintFilter
from .generation import CombinationGenerator, bounded
from .indices import AuthorityIndex, InterchangeabilityIndex
from .pattern import ActionResolver, parse_pattern, requirement_names
from .scoring import PriorityScorer

# Namespace for deterministic refined-UCCA identifiers.
REFINED_UCCA_NAMESPACE = uuid.UUID("6f1c3a52-8d0e-5b7a-9c4e-2a7f0d3b9e61")


class RefinementStage(str, Enum):
    PARSED = "Parsed"
    GENERATED = "Generated"
    FILTERED = "Filtered"
    DEDUPLICATED = "Deduplicated"
    SCORED = "Scored"
    ASSEMBLED = "Assembled"


class CancellationToken:
    """Cooperative cancellation checked between abstract UCCAs."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class UCCARefinementEngine:
    """Expand abstract UCCAs into ranked, deduplicated refined UCCAs.

    Args:
        config: Authority, interchangeability and interaction rules plus the
            engine switches.
        controllers: Reference controllers; their order drives team-level
            enumeration order and their names feed codes and descriptions.
        control_actions: Reference control actions used to resolve pattern
            names.
        operating_context: When given, structured authority constraints are
            evaluated against it; otherwise they always hold.
        logger: Optional logger, defaults to the module logger.
    """

    def __init__(
        self,
        config: UCCARefinementConfig,
        controllers: Iterable[Controller],
        control_actions: Iterable[ControlAction],
        operating_context: OperatingContext | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._logger = logger or logging.getLogger(__name__)
        self._controllers = list(controllers)
        actions = list(control_actions)

        self._resolver = ActionResolver(actions)
        self._authority = AuthorityIndex(config.authority_relationships)
        self._interchangeability = InterchangeabilityIndex(config.interchangeable_groups, overlap=config.group_overlap)
        self._generator = CombinationGenerator(self._controllers, self._authority, config.enumeration_mode)
        self._filter = ConstraintFilter(
            self._authority,
            config.special_interactions,
            include_partial_authority=config.include_partial_authority,
            operating_context=operating_context,
        )
        self._scorer = PriorityScorer(config.special_interactions)
        self._describer = Describer(self._controllers, actions)

    @property
    def config(self) -> UCCARefinementConfig:
        return self._config

    def refine_abstract_uccas(
        self,
        abstract_uccas: Iterable[AbstractUCCA],
        cancel: CancellationToken | None = None,
    ) -> List[UCCAHierarchy]:
        """Refine a batch, one hierarchy per abstract UCCA in input order.

        A ``RefinementError`` for one abstract UCCA yields a hierarchy with no
        refinements and a ``failure`` record. When ``cancel`` is triggered the
        hierarchies completed so far are returned.
        """

        hierarchies: List[UCCAHierarchy] = []
        for abstract_ucca in abstract_uccas:
            if cancel is not None and cancel.cancelled:
                self._logger.warning("refinement_cancelled", extra={"completed": len(hierarchies)})
                break
            try:
                hierarchy = self.refine_abstract_ucca(abstract_ucca)
            except RefinementError as exc:
                self._logger.warning(
                    "ucca_refinement_failed",
                    extra={"ucca_id": abstract_ucca.id, "kind": exc.kind, "error": str(exc)},
                )
                hierarchy = UCCAHierarchy(
                    abstract_ucca=abstract_ucca,
                    failure=RefinementFailure(kind=exc.kind, message=str(exc)),
                )
            hierarchies.append(hierarchy)
        return hierarchies

    def refine_abstract_ucca(self, abstract_ucca: AbstractUCCA) -> UCCAHierarchy:
        """Refine one abstract UCCA.

        Raises:
            CombinationLimitExceeded: generation passed ``max_combinations``.
            PatternSyntaxError: malformed pattern with ``strict_patterns`` set.
        """

        requirements = parse_pattern(abstract_ucca, self._resolver, strict=self._config.strict_patterns)
        self._stage(abstract_ucca, RefinementStage.PARSED, requirements=requirement_names(requirements, self._resolver))

        candidates = bounded(
            abstract_ucca.id,
            self._generator.generate(abstract_ucca, requirements),
            self._config.max_combinations,
        )
        self._stage(abstract_ucca, RefinementStage.GENERATED, candidates=len(candidates))

        accepted = self._filter.filter(candidates, abstract_ucca.ucca_type)
        self._stage(abstract_ucca, RefinementStage.FILTERED, accepted=len(accepted))

        refinements = [self._build(abstract_ucca, ordinal, candidate) for ordinal, candidate in enumerate(accepted)]
        mark_equivalent(refinements, self._interchangeability)
        pruned_count = sum(1 for refinement in refinements if refinement.is_pruned)
        self._stage(abstract_ucca, RefinementStage.DEDUPLICATED, pruned=pruned_count)

        self._scorer.assign(refinements)
        high_priority_count = sum(
            1 for refinement in refinements if not refinement.is_pruned and refinement.priority == PriorityLevel.HIGH
        )
        self._stage(abstract_ucca, RefinementStage.SCORED, high_priority=high_priority_count)

        hierarchy = UCCAHierarchy(
            abstract_ucca=abstract_ucca,
            refined_uccas=refinements,
            total_refined=len(refinements),
            pruned_count=pruned_count,
            high_priority_count=high_priority_count,
        )
        if not refinements:
            self._logger.info("ucca_without_refinements", extra={"ucca_id": abstract_ucca.id, "code": abstract_ucca.code})
        self._stage(abstract_ucca, RefinementStage.ASSEMBLED, refined=len(refinements))
        return hierarchy

    def _build(self, abstract_ucca: AbstractUCCA, ordinal: int, candidate: Sequence[ControllerAssignment]) -> RefinedUCCA:
        assignments = tuple(candidate)
        if abstract_ucca.abstraction_level == AbstractionLevel.TEAM_LEVEL:
            involved = tuple(dict.fromkeys(assignment.controller_id for assignment in assignments))
        else:
            involved = tuple(abstract_ucca.involved_controller_ids)
        key = ";".join(
            f"{assignment.controller_id}:{assignment.control_action_id}:{int(assignment.performed)}"
            for assignment in assignments
        )
        return RefinedUCCA(
            id=str(uuid.uuid5(REFINED_UCCA_NAMESPACE, f"{abstract_ucca.id}#{ordinal}#{key}")),
            code=self._describer.code(abstract_ucca.code, assignments),
            description=self._describer.description(assignments, abstract_ucca.context),
            context=abstract_ucca.context,
            hazard_ids=tuple(abstract_ucca.hazard_ids),
            ucca_type=abstract_ucca.ucca_type,
            involved_controller_ids=involved,
            parent_abstract_ucca_id=abstract_ucca.id,
            specific_controller_assignments=assignments,
            temporal_relationship=abstract_ucca.temporal_relationship,
        )

    def _stage(self, abstract_ucca: AbstractUCCA, stage: RefinementStage, **details: object) -> None:
        self._logger.debug("ucca_stage", extra={"ucca_id": abstract_ucca.id, "stage": stage.value, **details})
