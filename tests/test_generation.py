import itertools

import pytest

from conftest import grant
from ucca_refinement.entities import AbstractionLevel, ActionRequirement, ControllerAssignment
from ucca_refinement.errors import CombinationLimitExceeded
from ucca_refinement.generation import CombinationGenerator, bounded
from ucca_refinement.indices import AuthorityIndex


def _authority() -> AuthorityIndex:
    return AuthorityIndex(
        [
            grant("C1", "deploy"),
            grant("C2", "deploy"),
            grant("C2", "retract"),
            grant("C3", "retract"),
        ]
    )


def test_team_level_enumerates_cross_product(controllers) -> None:
    generator = CombinationGenerator(controllers, _authority())
    requirements = [ActionRequirement("deploy", True), ActionRequirement("retract", False)]

    candidates = list(generator.team_level(requirements))

    assert candidates == [
        (ControllerAssignment("C1", "deploy", True), ControllerAssignment("C2", "retract", False)),
        (ControllerAssignment("C1", "deploy", True), ControllerAssignment("C3", "retract", False)),
        (ControllerAssignment("C2", "deploy", True), ControllerAssignment("C2", "retract", False)),
        (ControllerAssignment("C2", "deploy", True), ControllerAssignment("C3", "retract", False)),
    ]


def test_team_level_representative_mode(controllers) -> None:
    generator = CombinationGenerator(controllers, _authority(), enumeration_mode="representative")
    requirements = [ActionRequirement("deploy", True), ActionRequirement("retract", True)]

    assert list(generator.team_level(requirements)) == [
        (ControllerAssignment("C1", "deploy", True), ControllerAssignment("C2", "retract", True)),
    ]


def test_team_level_skips_requirements_without_authority(controllers) -> None:
    generator = CombinationGenerator(controllers, _authority())
    requirements = [ActionRequirement("deploy", True), ActionRequirement("steer", True)]

    candidates = list(generator.team_level(requirements))

    assert len(candidates) == 2
    assert all(len(candidate) == 1 for candidate in candidates)
    assert list(generator.team_level([])) == []


def test_controller_specific_assigns_every_involved_controller(controllers, make_ucca) -> None:
    generator = CombinationGenerator(controllers, _authority())
    ucca = make_ucca("", level=AbstractionLevel.CONTROLLER_SPECIFIC, involved=("C1", "C2"))
    requirements = [ActionRequirement("retract", False), ActionRequirement("deploy", True)]

    candidates = list(generator.generate(ucca, requirements))

    assert candidates == [
        (
            ControllerAssignment("C1", "retract", False),
            ControllerAssignment("C2", "retract", False),
            ControllerAssignment("C1", "deploy", True),
            ControllerAssignment("C2", "deploy", True),
        )
    ]


def test_controller_specific_without_assignments_yields_nothing(controllers, make_ucca) -> None:
    generator = CombinationGenerator(controllers, _authority())
    ucca = make_ucca("", level=AbstractionLevel.CONTROLLER_SPECIFIC, involved=("C4",))

    assert list(generator.generate(ucca, [ActionRequirement("deploy", True)])) == []


def test_generation_is_restartable(controllers, make_ucca) -> None:
    generator = CombinationGenerator(controllers, _authority())
    ucca = make_ucca("")
    requirements = [ActionRequirement("deploy", True)]

    assert list(generator.generate(ucca, requirements)) == list(generator.generate(ucca, requirements))


def test_bounded_raises_past_limit() -> None:
    endless = ((ControllerAssignment("C1", "deploy", True),) for _ in itertools.count())
    with pytest.raises(CombinationLimitExceeded) as excinfo:
        bounded("U9", endless, 10)
    assert excinfo.value.ucca_id == "U9"
    assert excinfo.value.limit == 10


def test_bounded_accepts_exact_limit() -> None:
    candidates = [(ControllerAssignment("C1", "deploy", True),)] * 4
    assert len(bounded("U1", iter(candidates), 4)) == 4
    with pytest.raises(ValueError):
        bounded("U1", iter(candidates), 0)


def test_unknown_enumeration_mode(controllers) -> None:
    with pytest.raises(ValueError):
        CombinationGenerator(controllers, _authority(), enumeration_mode="sampled")
