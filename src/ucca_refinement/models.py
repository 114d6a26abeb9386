"""Pydantic models for analysis documents.

Documents use the camelCase keys of the hazard-analysis application
(``controllerId``, ``hasAuthority``, ``abstractPattern`` ...); snake_case keys
are accepted as well.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from .entities import (
    AbstractionLevel,
    AbstractUCCA,
    AppliesTo,
    AuthorityRelationship,
    ControlAction,
    Controller,
    InterchangeabilityType,
    InterchangeableControllerGroup,
    InteractionType,
    SpecialInteraction,
    UCCAHierarchy,
    UCCAType,
)
from .errors import DocumentError

_LOGGER = logging.getLogger(__name__)


def to_document_key(name: str) -> str:
    """camelCase key with the "UCCA" acronym kept upper-case, e.g. ``abstractUCCAs``."""
    return to_camel(name).replace("Ucca", "UCCA")


class _DocumentModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_document_key, populate_by_name=True, extra="ignore")


class ControllerModel(_DocumentModel):
    id: str
    name: str
    description: str = ""

    def to_entity(self) -> Controller:
        return Controller(id=self.id, name=self.name, description=self.description)


class ControlActionModel(_DocumentModel):
    """Control action; ``name`` falls back to "<verb> <object>"."""

    id: str
    name: str | None = None
    controller_id: str | None = None
    verb: str = ""
    object: str = ""
    description: str = ""

    def to_entity(self) -> ControlAction:
        name = self.name or " ".join(part for part in (self.verb, self.object) if part) or self.id
        return ControlAction(id=self.id, name=name, controller_id=self.controller_id, description=self.description)


class AuthorityRelationshipModel(_DocumentModel):
    controller_id: str
    control_action_id: str
    has_authority: bool
    constraints: List[str] = Field(default_factory=list)
    delegated_from: str | None = None

    def to_entity(self) -> AuthorityRelationship:
        return AuthorityRelationship(
            controller_id=self.controller_id,
            control_action_id=self.control_action_id,
            has_authority=self.has_authority,
            constraints=tuple(self.constraints),
            delegated_from=self.delegated_from,
        )


class InterchangeableGroupModel(_DocumentModel):
    id: str
    name: str = ""
    interchangeability_type: InterchangeabilityType = InterchangeabilityType.FULL
    controller_ids: List[str] = Field(default_factory=list)
    conditions: List[str] = Field(default_factory=list)
    constraints: List[str] = Field(default_factory=list)

    def to_entity(self) -> InterchangeableControllerGroup:
        return InterchangeableControllerGroup(
            id=self.id,
            name=self.name,
            interchangeability_type=self.interchangeability_type,
            controller_ids=frozenset(self.controller_ids),
            conditions=tuple(self.conditions),
            constraints=tuple(self.constraints),
        )


class SpecialInteractionModel(_DocumentModel):
    id: str
    # "Conditional" interactions are authored in the editor but not enforced.
    type: InteractionType | Literal["Conditional"]
    applies_to: AppliesTo = AppliesTo.BOTH
    involved_controller_ids: List[str] = Field(default_factory=list)
    involved_control_action_ids: List[str] = Field(default_factory=list)
    priority: float | None = None
    description: str = ""
    conditions: List[str] = Field(default_factory=list)

    def to_entity(self) -> SpecialInteraction | None:
        if not isinstance(self.type, InteractionType):
            return None
        return SpecialInteraction(
            id=self.id,
            type=self.type,
            applies_to=self.applies_to,
            involved_controller_ids=tuple(self.involved_controller_ids),
            involved_control_action_ids=tuple(self.involved_control_action_ids),
            priority=self.priority,
            description=self.description,
            conditions=tuple(self.conditions),
        )


class AbstractUCCAModel(_DocumentModel):
    id: str
    code: str
    context: str = ""
    hazard_ids: List[str] = Field(default_factory=list)
    ucca_type: UCCAType
    abstraction_level: AbstractionLevel
    abstract_pattern: str = ""
    relevant_actions: List[str] = Field(default_factory=list)
    involved_controller_ids: List[str] = Field(default_factory=list)
    temporal_relationship: str | None = None
    description: str = ""

    def to_entity(self) -> AbstractUCCA:
        return AbstractUCCA(
            id=self.id,
            code=self.code,
            context=self.context,
            hazard_ids=tuple(self.hazard_ids),
            ucca_type=self.ucca_type,
            abstraction_level=self.abstraction_level,
            abstract_pattern=self.abstract_pattern,
            relevant_actions=frozenset(self.relevant_actions),
            involved_controller_ids=tuple(self.involved_controller_ids),
            temporal_relationship=self.temporal_relationship,
            description=self.description,
        )


@dataclass
class AnalysisInput:
    """Entities extracted from an analysis document."""

    controllers: List[Controller]
    control_actions: List[ControlAction]
    authority_relationships: List[AuthorityRelationship]
    interchangeable_groups: List[InterchangeableControllerGroup]
    special_interactions: List[SpecialInteraction]
    abstract_uccas: List[AbstractUCCA]


class AnalysisDocument(_DocumentModel):
    """Reference data, refinement rules and abstract UCCAs in one document."""

    controllers: List[ControllerModel] = Field(default_factory=list)
    control_actions: List[ControlActionModel] = Field(default_factory=list)
    authority_relationships: List[AuthorityRelationshipModel] = Field(default_factory=list)
    interchangeable_groups: List[InterchangeableGroupModel] = Field(default_factory=list)
    special_interactions: List[SpecialInteractionModel] = Field(default_factory=list)
    abstract_uccas: List[AbstractUCCAModel] = Field(default_factory=list)

    def to_entities(self) -> AnalysisInput:
        interactions = []
        for model in self.special_interactions:
            entity = model.to_entity()
            if entity is None:
                _LOGGER.info("special_interaction_skipped", extra={"interaction_id": model.id, "type": str(model.type)})
                continue
            interactions.append(entity)
        return AnalysisInput(
            controllers=[model.to_entity() for model in self.controllers],
            control_actions=[model.to_entity() for model in self.control_actions],
            authority_relationships=[model.to_entity() for model in self.authority_relationships],
            interchangeable_groups=[model.to_entity() for model in self.interchangeable_groups],
            special_interactions=interactions,
            abstract_uccas=[model.to_entity() for model in self.abstract_uccas],
        )


def parse_document(data: Any) -> AnalysisDocument:
    try:
        return AnalysisDocument.model_validate(data)
    except ValidationError as exc:
        raise DocumentError(f"Invalid analysis document: {exc}") from exc


def load_document(path: str | Path) -> AnalysisDocument:
    try:
        data = json.loads(Path(path).read_text())
    except (OSError, json.JSONDecodeError) as exc:
        raise DocumentError(f"Cannot read analysis document {path}: {exc}") from exc
    return parse_document(data)


def _camelize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {to_document_key(key): _camelize(item) for key, item in value.items()}
    if isinstance(value, frozenset):
        return sorted(_camelize(item) for item in value)
    if isinstance(value, (list, tuple)):
        return [_camelize(item) for item in value]
    return value


def dump_hierarchy(hierarchy: UCCAHierarchy, include_pruned: bool = False) -> dict[str, Any]:
    data = asdict(hierarchy)
    data["refined_uccas"] = [asdict(refined) for refined in hierarchy.visible(include_pruned)]
    return _camelize(data)


def dump_hierarchies(hierarchies: Iterable[UCCAHierarchy], include_pruned: bool = False) -> List[dict[str, Any]]:
    return [dump_hierarchy(hierarchy, include_pruned) for hierarchy in hierarchies]
