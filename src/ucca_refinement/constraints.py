"""Structured constraints attached to authority relationships.

Authority constraints arrive as free text. A small set of shapes is
recognized and evaluated against an ``OperatingContext``; anything else is
kept verbatim as ``AlwaysTrue`` so legacy text never blocks a refinement.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import Union

_TIME_WINDOW = re.compile(
    r"^\s*(?:time\s+in\s*\[\s*(?P<a>-?\d+(?:\.\d+)?)\s*,\s*(?P<b>-?\d+(?:\.\d+)?)\s*\]"
    r"|between\s+(?P<c>-?\d+(?:\.\d+)?)\s+and\s+(?P<d>-?\d+(?:\.\d+)?))\s*$",
    re.IGNORECASE,
)
_MODE_EQUALS = re.compile(r"^\s*mode\s*={1,2}\s*(?P<mode>[\w\- ]+?)\s*$", re.IGNORECASE)
_PRECONDITION = re.compile(r"^\s*(?:requires|after)\s+(?P<name>.+?)\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class TimeWindow:
    start: float
    end: float


@dataclass(frozen=True)
class ModeEquals:
    mode: str


@dataclass(frozen=True)
class PreconditionRef:
    name: str


@dataclass(frozen=True)
class AlwaysTrue:
    text: str


Constraint = Union[TimeWindow, ModeEquals, PreconditionRef, AlwaysTrue]


@dataclass(frozen=True)
class OperatingContext:
    """Operating state the constraints are checked against.

    ``None`` for mode or time means the value is unknown, which satisfies any
    constraint on it.
    """

    mode: str | None = None
    time: float | None = None
    satisfied: frozenset[str] = field(default_factory=frozenset)


def parse_constraint(text: str) -> Constraint:
    match = _TIME_WINDOW.match(text)
    if match:
        start = match.group("a") if match.group("a") is not None else match.group("c")
        end = match.group("b") if match.group("b") is not None else match.group("d")
        low, high = sorted((float(start), float(end)))
        return TimeWindow(start=low, end=high)
    match = _MODE_EQUALS.match(text)
    if match:
        return ModeEquals(mode=match.group("mode"))
    match = _PRECONDITION.match(text)
    if match:
        return PreconditionRef(name=match.group("name"))
    return AlwaysTrue(text=text)


def satisfied(constraint: Constraint, context: OperatingContext) -> bool:
    if isinstance(constraint, TimeWindow):
        return context.time is None or constraint.start <= context.time <= constraint.end
    if isinstance(constraint, ModeEquals):
        return context.mode is None or context.mode.lower() == constraint.mode.lower()
    if isinstance(constraint, PreconditionRef):
        return constraint.name in context.satisfied
    return True


def all_satisfied(constraints: tuple[str, ...], context: OperatingContext | None) -> bool:
    """Check free-text constraints; with no context every constraint holds."""
    if context is None:
        return True
    return all(satisfied(parse_constraint(text), context) for text in constraints)
