"""Lookup indices over authority relationships and interchangeable groups."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Tuple

from .entities import AuthorityRelationship, InterchangeableControllerGroup
from .errors import GroupOverlapError

_LOGGER = logging.getLogger(__name__)

GROUP_OVERLAP_POLICIES = ("warn", "reject", "last_wins")


class AuthorityIndex:
    """(controller, control action) -> authority relationship.

    Duplicate declarations for the same pair are resolved last-write-wins.
    """

    def __init__(self, relationships: Iterable[AuthorityRelationship]) -> None:
        self._relationships: Dict[Tuple[str, str], AuthorityRelationship] = {}
        for relationship in relationships:
            key = (relationship.controller_id, relationship.control_action_id)
            if key in self._relationships:
                _LOGGER.debug(
                    "authority_redeclared",
                    extra={"controller_id": key[0], "control_action_id": key[1]},
                )
            self._relationships[key] = relationship

    def __len__(self) -> int:
        return len(self._relationships)

    def get(self, controller_id: str, control_action_id: str) -> AuthorityRelationship | None:
        return self._relationships.get((controller_id, control_action_id))

    def has_authority(self, controller_id: str, control_action_id: str) -> bool:
        relationship = self.get(controller_id, control_action_id)
        return relationship is not None and relationship.has_authority

    def authorized_controllers(self, control_action_id: str, candidates: Iterable[str]) -> List[str]:
        """Candidates holding affirmative authority, in candidate order."""
        return [controller_id for controller_id in candidates if self.has_authority(controller_id, control_action_id)]


class InterchangeabilityIndex:
    """controller -> interchangeable group it belongs to."""

    def __init__(self, groups: Iterable[InterchangeableControllerGroup], overlap: str = "warn") -> None:
        if overlap not in GROUP_OVERLAP_POLICIES:
            raise ValueError(f"overlap must be one of {', '.join(GROUP_OVERLAP_POLICIES)}")
        self._groups: Dict[str, InterchangeableControllerGroup] = {}
        for group in groups:
            # Sorted so overlap reports do not depend on set iteration order.
            for controller_id in sorted(group.controller_ids):
                previous = self._groups.get(controller_id)
                if previous is not None and previous.id != group.id:
                    if overlap == "reject":
                        raise GroupOverlapError(controller_id, [previous.id, group.id])
                    if overlap == "warn":
                        _LOGGER.warning(
                            "controller_in_multiple_groups",
                            extra={
                                "controller_id": controller_id,
                                "kept_group": group.id,
                                "dropped_group": previous.id,
                            },
                        )
                self._groups[controller_id] = group

    def group_for(self, controller_id: str) -> InterchangeableControllerGroup | None:
        return self._groups.get(controller_id)

    def canonical_id(self, controller_id: str) -> str:
        group = self._groups.get(controller_id)
        return group.id if group is not None else controller_id
