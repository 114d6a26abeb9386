"""Abstract pattern parsing.

Abstract patterns are short formulas over control actions such as
``"¬Deploy ∧ Retract"`` or ``"Brake ∧ any of {Steer left, Steer right}"``.
The grammar is deliberately small:

    pattern := (term | AND)*
    term    := NOT term | ANY_OF set | WORD
    set     := "{" member ("," member)* "}"

Conjunction is implicit between terms, so natural-language patterns from
upstream enumerators still yield every action name they mention. Names that
do not resolve to a known control action are dropped.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import re
from typing import Collection, Iterable, Iterator, List, Sequence, Tuple, Union

from .entities import AbstractUCCA, ActionRequirement, ControlAction
from .errors import PatternSyntaxError

_LOGGER = logging.getLogger(__name__)

_TOKEN_PATTERN = re.compile(
    r"(?P<SPACE>\s+)"
    r"|(?P<ANY_OF>(?i:any)\s+(?i:of)(?=\s*\{))"
    r"|(?P<NOT>¬|!|~)"
    r"|(?P<AND>∧|&&|&)"
    r"|(?P<OR>∨|\|\||\|)"
    r"|(?P<LBRACE>\{)"
    r"|(?P<RBRACE>\})"
    r"|(?P<COMMA>,)"
    r"|(?P<WORD>[\w\-]+)"
    r"|(?P<OTHER>.)"
)

# Lower-case "not"/"or" are left as words so prose patterns parse quietly.
_KEYWORDS = {"NOT": "NOT", "AND": "AND", "and": "AND", "OR": "OR"}


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    start: int
    end: int


def tokenize(text: str) -> Iterator[Token]:
    for match in _TOKEN_PATTERN.finditer(text):
        kind = match.lastgroup or "OTHER"
        if kind == "SPACE":
            continue
        value = match.group()
        if kind == "WORD":
            kind = _KEYWORDS.get(value, "WORD")
        yield Token(kind=kind, text=value, start=match.start(), end=match.end())


@dataclass(frozen=True)
class ActionRef:
    name: str


@dataclass(frozen=True)
class Negation:
    operand: ActionRef


@dataclass(frozen=True)
class AnyOf:
    names: Tuple[str, ...]


Term = Union[ActionRef, Negation, AnyOf]


@dataclass(frozen=True)
class Conjunction:
    terms: Tuple[Term, ...]


class PatternParser:
    """Recursive-descent parser producing a requirement tree.

    In strict mode structural problems raise ``PatternSyntaxError``. Otherwise
    they are logged and the parser recovers by skipping the offending token.
    """

    def __init__(self, strict: bool = False) -> None:
        self._strict = strict
        self._text = ""
        self._tokens: List[Token] = []
        self._index = 0
        self._seen_set = False

    def parse(self, text: str) -> Conjunction:
        self._text = text
        self._tokens = list(tokenize(text))
        self._index = 0
        self._seen_set = False

        terms: List[Term] = []
        while not self._at_end():
            token = self._peek()
            if token.kind == "AND":
                self._advance()
            elif token.kind == "OR":
                self._problem("disjunction is not supported", token)
                self._advance()
            elif token.kind == "NOT":
                negation = self._negation()
                if negation is not None:
                    terms.append(negation)
            elif token.kind == "ANY_OF":
                terms.append(self._any_of())
            elif token.kind == "WORD":
                terms.append(ActionRef(token.text))
                self._advance()
            elif token.kind == "LBRACE":
                self._problem("set without 'any of'", token)
                self._advance()
            elif token.kind == "RBRACE":
                self._problem("unbalanced '}'", token)
                self._advance()
            else:
                # Commas and other punctuation carry no meaning outside a set.
                self._advance()
        return Conjunction(tuple(terms))

    def _negation(self) -> Term | None:
        operator = self._advance()
        if self._at_end():
            self._problem("negation without an operand", operator)
            return None
        token = self._peek()
        if token.kind == "WORD":
            self._advance()
            return Negation(ActionRef(token.text))
        if token.kind == "NOT":
            inner = self._negation()
            if isinstance(inner, Negation):
                return inner.operand
            if isinstance(inner, ActionRef):
                return Negation(inner)
            return None
        if token.kind == "ANY_OF":
            self._problem("negated 'any of' set is not supported", token)
            return None
        self._problem("negation must be followed by an action name", token)
        return None

    def _any_of(self) -> AnyOf:
        keyword = self._advance()
        if self._seen_set:
            self._problem("only one 'any of' clause is supported", keyword)
        self._seen_set = True
        self._advance()  # "{" is guaranteed by the ANY_OF lookahead

        names: List[str] = []
        member: List[Token] = []
        while True:
            if self._at_end():
                self._problem("unterminated 'any of' set", keyword)
                break
            token = self._advance()
            if token.kind == "RBRACE":
                break
            if token.kind == "COMMA":
                self._flush(member, names)
            elif token.kind == "LBRACE":
                self._problem("nested set", token)
            else:
                member.append(token)
        self._flush(member, names)
        return AnyOf(tuple(names))

    def _flush(self, member: List[Token], names: List[str]) -> None:
        if member:
            name = self._text[member[0].start : member[-1].end].strip()
            if name:
                names.append(name)
            member.clear()

    def _problem(self, message: str, token: Token) -> None:
        if self._strict:
            raise PatternSyntaxError(message, token.start)
        _LOGGER.warning("pattern_recovered", extra={"reason": message, "position": token.start, "pattern": self._text})

    def _peek(self) -> Token:
        return self._tokens[self._index]

    def _advance(self) -> Token:
        token = self._tokens[self._index]
        self._index += 1
        return token

    def _at_end(self) -> bool:
        return self._index >= len(self._tokens)


class ActionResolver:
    """Resolve pattern names to control actions by id, then by name."""

    def __init__(self, control_actions: Iterable[ControlAction]) -> None:
        self._by_id: dict[str, ControlAction] = {}
        self._by_name: dict[str, ControlAction] = {}
        for action in control_actions:
            self._by_id.setdefault(action.id, action)
            if action.name:
                self._by_name.setdefault(action.name, action)

    def resolve(self, name: str) -> ControlAction | None:
        return self._by_id.get(name) or self._by_name.get(name)

    def name_of(self, control_action_id: str) -> str | None:
        action = self._by_id.get(control_action_id)
        return action.name if action is not None else None


def build_requirements(
    tree: Conjunction,
    resolver: ActionResolver,
    relevant_actions: Collection[str],
) -> List[ActionRequirement]:
    """Flatten a requirement tree: negated, then bare, then set members."""

    negated: List[str] = []
    bare: List[str] = []
    members: List[str] = []
    for term in tree.terms:
        if isinstance(term, Negation):
            negated.append(term.operand.name)
        elif isinstance(term, ActionRef):
            bare.append(term.name)
        else:
            members.extend(term.names)

    requirements: List[ActionRequirement] = []
    seen: set[Tuple[str, bool]] = set()

    def emit(requirement: ActionRequirement) -> None:
        key = (requirement.control_action_id, requirement.required)
        if key not in seen:
            seen.add(key)
            requirements.append(requirement)

    for name in negated:
        action = _resolve(resolver, name)
        if action is not None:
            emit(ActionRequirement(action.id, required=False))
    for name in bare:
        action = _resolve(resolver, name)
        if action is not None:
            emit(ActionRequirement(action.id, required=True))
    for name in members:
        action = _resolve(resolver, name)
        if action is not None and action.id in relevant_actions:
            emit(ActionRequirement(action.id, required=True, is_from_set=True))
    return requirements


def _resolve(resolver: ActionResolver, name: str) -> ControlAction | None:
    action = resolver.resolve(name)
    if action is None:
        _LOGGER.debug("pattern_token_unresolved", extra={"token": name})
    return action


def parse_pattern(
    abstract_ucca: AbstractUCCA,
    resolver: ActionResolver,
    strict: bool = False,
) -> List[ActionRequirement]:
    tree = PatternParser(strict=strict).parse(abstract_ucca.abstract_pattern or "")
    return build_requirements(tree, resolver, abstract_ucca.relevant_actions)


def requirement_names(requirements: Sequence[ActionRequirement], resolver: ActionResolver) -> List[str]:
    """Readable form of requirements for logs, e.g. ``["¬Deploy", "Retract"]``."""
    names = []
    for requirement in requirements:
        name = resolver.name_of(requirement.control_action_id) or requirement.control_action_id
        names.append(name if requirement.required else f"¬{name}")
    return names
