"""Readable codes and descriptions for refined UCCAs."""

from __future__ import annotations

from typing import Dict, Iterable, List, Sequence

from .entities import ControlAction, Controller, ControllerAssignment

UNKNOWN_CONTROLLER = "Unknown"
UNKNOWN_ACTION = "unknown action"


class Describer:
    def __init__(self, controllers: Iterable[Controller], control_actions: Iterable[ControlAction]) -> None:
        self._controller_names: Dict[str, str] = {}
        for controller in controllers:
            self._controller_names.setdefault(controller.id, controller.name)
        self._action_names: Dict[str, str] = {}
        for action in control_actions:
            self._action_names.setdefault(action.id, action.name)

    def controller_name(self, controller_id: str) -> str:
        return self._controller_names.get(controller_id) or UNKNOWN_CONTROLLER

    def action_name(self, control_action_id: str) -> str:
        return self._action_names.get(control_action_id) or UNKNOWN_ACTION

    def code(self, parent_code: str, assignments: Sequence[ControllerAssignment]) -> str:
        """``<parent>-R-<ABC>-<DEF>`` from distinct controllers in encounter order."""
        abbreviations: List[str] = []
        for controller_id in dict.fromkeys(assignment.controller_id for assignment in assignments):
            name = self._controller_names.get(controller_id)
            abbreviation = name[:3].upper() if name else "UNK"
            if abbreviation not in abbreviations:
                abbreviations.append(abbreviation)
        return f"{parent_code}-R-{'-'.join(abbreviations)}"

    def description(self, assignments: Sequence[ControllerAssignment], context: str) -> str:
        groups: Dict[str, List[ControllerAssignment]] = {}
        for assignment in assignments:
            groups.setdefault(assignment.control_action_id, []).append(assignment)

        parts: List[str] = []
        for action_id, group in groups.items():
            action = self.action_name(action_id)
            performers = [self.controller_name(a.controller_id) for a in group if a.performed]
            abstainers = [self.controller_name(a.controller_id) for a in group if not a.performed]
            if performers:
                verb = "provides" if len(performers) == 1 else "provide"
                parts.append(f"{' and '.join(performers)} {verb} {action}")
            if abstainers:
                verb = "does" if len(abstainers) == 1 else "do"
                parts.append(f"{' and '.join(abstainers)} {verb} not provide {action}")

        text = " while ".join(parts)
        if context:
            text = f"{text} {context}" if text else context
        return text
