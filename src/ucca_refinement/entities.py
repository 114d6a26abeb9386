"""Records exchanged with the refinement engine.

Inputs (controllers, control actions, authority relationships,
interchangeable groups, special interactions and abstract UCCAs) are frozen
and only read by the engine. Refined UCCAs and hierarchies are created by the
engine for the duration of one refinement call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple


class UCCAType(str, Enum):
    TEAM_BASED = "Team-based"
    ROLE_BASED = "Role-based"
    ORGANIZATIONAL = "Organizational"
    CROSS_CONTROLLER = "Cross-Controller"
    TEMPORAL = "Temporal"


class AbstractionLevel(str, Enum):
    """2a: team-level (controllers inferred), 2b: controller-specific."""

    TEAM_LEVEL = "2a"
    CONTROLLER_SPECIFIC = "2b"


class InterchangeabilityType(str, Enum):
    FULL = "Full"
    PARTIAL = "Partial"
    CONDITIONAL = "Conditional"


class InteractionType(str, Enum):
    MANDATORY = "Mandatory"
    PROHIBITED = "Prohibited"
    PRIORITY = "Priority"


class AppliesTo(str, Enum):
    TYPE_1_2 = "Type1-2"
    TYPE_3_4 = "Type3-4"
    BOTH = "Both"


class PriorityLevel(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


@dataclass(frozen=True)
class Controller:
    id: str
    name: str
    description: str = ""


@dataclass(frozen=True)
class ControlAction:
    id: str
    name: str
    controller_id: str | None = None
    description: str = ""


@dataclass(frozen=True)
class AuthorityRelationship:
    """Declares whether a controller may legitimately perform a control action.

    Attributes:
        constraints: Free-text (or structured, see ``constraints``) conditions
            attached to the authority, in declaration order.
        delegated_from: Controller that delegated this authority, if any.
    """

    controller_id: str
    control_action_id: str
    has_authority: bool
    constraints: Tuple[str, ...] = ()
    delegated_from: str | None = None


@dataclass(frozen=True)
class InterchangeableControllerGroup:
    id: str
    name: str
    interchangeability_type: InterchangeabilityType
    controller_ids: frozenset[str]
    conditions: Tuple[str, ...] = ()
    constraints: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SpecialInteraction:
    """Cross-cutting rule layered on top of authority.

    Empty ``involved_controller_ids`` or ``involved_control_action_ids`` match
    any controller or action respectively.
    """

    id: str
    type: InteractionType
    applies_to: AppliesTo
    involved_controller_ids: Tuple[str, ...] = ()
    involved_control_action_ids: Tuple[str, ...] = ()
    priority: float | None = None
    description: str = ""
    conditions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AbstractUCCA:
    """Abstract unsafe combination produced by an upstream enumerator."""

    id: str
    code: str
    context: str
    hazard_ids: Tuple[str, ...]
    ucca_type: UCCAType
    abstraction_level: AbstractionLevel
    abstract_pattern: str
    relevant_actions: frozenset[str] = frozenset()
    involved_controller_ids: Tuple[str, ...] = ()
    temporal_relationship: str | None = None
    description: str = ""


@dataclass(frozen=True)
class ActionRequirement:
    control_action_id: str
    required: bool
    is_from_set: bool = False


@dataclass(frozen=True)
class ControllerAssignment:
    controller_id: str
    control_action_id: str
    performed: bool


@dataclass
class RefinedUCCA:
    """Concrete, controller-bound instantiation of an abstract UCCA."""

    id: str
    code: str
    description: str
    context: str
    hazard_ids: Tuple[str, ...]
    ucca_type: UCCAType
    involved_controller_ids: Tuple[str, ...]
    parent_abstract_ucca_id: str
    specific_controller_assignments: Tuple[ControllerAssignment, ...]
    priority: PriorityLevel = PriorityLevel.MEDIUM
    priority_score: float | None = None
    is_pruned: bool = False
    prune_reason: str | None = None
    temporal_relationship: str | None = None


@dataclass(frozen=True)
class RefinementFailure:
    """Why refinement of one abstract UCCA was abandoned."""

    kind: str
    message: str


@dataclass
class UCCAHierarchy:
    """Engine output for one abstract UCCA."""

    abstract_ucca: AbstractUCCA
    refined_uccas: list[RefinedUCCA] = field(default_factory=list)
    total_refined: int = 0
    pruned_count: int = 0
    high_priority_count: int = 0
    failure: RefinementFailure | None = None

    def visible(self, include_pruned: bool = False) -> list[RefinedUCCA]:
        """Refinements to present; pruned duplicates only when requested."""
        if include_pruned:
            return list(self.refined_uccas)
        return [ucca for ucca in self.refined_uccas if not ucca.is_pruned]


@dataclass(frozen=True)
class UCCARefinementConfig:
    """Rules and switches for one engine instance.

    ``enumeration_mode`` is ``"full"`` (complete cross-product) or
    ``"representative"`` (first authorized controller per requirement).
    ``group_overlap`` is ``"warn"``, ``"reject"`` or ``"last_wins"``.
    """

    authority_relationships: Tuple[AuthorityRelationship, ...] = ()
    interchangeable_groups: Tuple[InterchangeableControllerGroup, ...] = ()
    special_interactions: Tuple[SpecialInteraction, ...] = ()
    prune_equivalent: bool = True
    include_partial_authority: bool = False
    max_combinations: int = 10_000
    enumeration_mode: str = "full"
    group_overlap: str = "warn"
    strict_patterns: bool = False
