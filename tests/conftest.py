import pytest

from ucca_refinement.entities import (
    AbstractionLevel,
    AbstractUCCA,
    AuthorityRelationship,
    ControlAction,
    Controller,
    UCCAType,
)


@pytest.fixture
def controllers() -> list[Controller]:
    return [
        Controller(id="C1", name="Alpha"),
        Controller(id="C2", name="Bravo"),
        Controller(id="C3", name="Charlie"),
        Controller(id="C4", name="Delta"),
    ]


@pytest.fixture
def control_actions() -> list[ControlAction]:
    return [
        ControlAction(id="deploy", name="Deploy"),
        ControlAction(id="retract", name="Retract"),
        ControlAction(id="brake", name="Brake"),
        ControlAction(id="steer", name="Steer"),
        ControlAction(id="apply-brakes", name="Apply brakes"),
    ]


@pytest.fixture
def make_ucca():
    def factory(
        pattern: str,
        level: AbstractionLevel = AbstractionLevel.TEAM_LEVEL,
        involved: tuple[str, ...] = (),
        relevant: frozenset[str] = frozenset(),
        ucca_type: UCCAType = UCCAType.TEAM_BASED,
        hazards: tuple[str, ...] = ("H-1",),
        ucca_id: str = "U1",
        code: str = "UCCA-1",
        context: str = "during landing",
    ) -> AbstractUCCA:
        return AbstractUCCA(
            id=ucca_id,
            code=code,
            context=context,
            hazard_ids=hazards,
            ucca_type=ucca_type,
            abstraction_level=level,
            abstract_pattern=pattern,
            relevant_actions=relevant,
            involved_controller_ids=involved,
        )

    return factory


def grant(controller_id: str, action_id: str, has_authority: bool = True, constraints: tuple[str, ...] = ()) -> AuthorityRelationship:
    return AuthorityRelationship(
        controller_id=controller_id,
        control_action_id=action_id,
        has_authority=has_authority,
        constraints=constraints,
    )
