"""End-to-end refinement scenarios."""

import logging
from collections import defaultdict

import pytest

from conftest import grant
from ucca_refinement.constraints import OperatingContext
from ucca_refinement.dedup import equivalence_signature
from ucca_refinement.engine import CancellationToken, UCCARefinementEngine
from ucca_refinement.entities import (
    AbstractionLevel,
    AppliesTo,
    ControllerAssignment,
    InteractionType,
    InterchangeabilityType,
    InterchangeableControllerGroup,
    PriorityLevel,
    SpecialInteraction,
    UCCARefinementConfig,
    UCCAType,
)
from ucca_refinement.errors import CombinationLimitExceeded, PatternSyntaxError
from ucca_refinement.indices import AuthorityIndex, InterchangeabilityIndex

PILOTS = InterchangeableControllerGroup(
    id="G1",
    name="Pilots",
    interchangeability_type=InterchangeabilityType.FULL,
    controller_ids=frozenset({"C1", "C2"}),
)


def _engine(controllers, control_actions, **config) -> UCCARefinementEngine:
    return UCCARefinementEngine(UCCARefinementConfig(**config), controllers, control_actions)


def test_scenario_negated_and_required_controller_specific(controllers, control_actions, make_ucca) -> None:
    engine = _engine(
        controllers,
        control_actions,
        authority_relationships=(grant("C1", "deploy"), grant("C2", "retract")),
    )
    ucca = make_ucca("¬Deploy ∧ Retract", level=AbstractionLevel.CONTROLLER_SPECIFIC, involved=("C1", "C2"))

    [hierarchy] = engine.refine_abstract_uccas([ucca])

    assert hierarchy.total_refined == 1
    [refined] = hierarchy.refined_uccas
    assignments = refined.specific_controller_assignments
    assert ControllerAssignment("C1", "deploy", False) in assignments
    assert ControllerAssignment("C2", "retract", True) in assignments
    assert [a for a in assignments if a.performed] == [ControllerAssignment("C2", "retract", True)]
    assert refined.involved_controller_ids == ("C1", "C2")
    assert refined.code == "UCCA-1-R-ALP-BRA"
    assert refined.description == "Alpha and Bravo do not provide Deploy while Bravo provides Retract during landing"
    assert refined.parent_abstract_ucca_id == "U1"
    assert not refined.is_pruned


def test_scenario_interchangeable_controllers_pruned(controllers, control_actions, make_ucca) -> None:
    engine = _engine(
        controllers,
        control_actions,
        authority_relationships=(grant("C1", "deploy"), grant("C2", "deploy")),
        interchangeable_groups=(PILOTS,),
    )

    [hierarchy] = engine.refine_abstract_uccas([make_ucca("Deploy")])

    assert [r.specific_controller_assignments for r in hierarchy.refined_uccas] == [
        (ControllerAssignment("C1", "deploy", True),),
        (ControllerAssignment("C2", "deploy", True),),
    ]
    assert [r.is_pruned for r in hierarchy.refined_uccas] == [False, True]
    assert hierarchy.total_refined == 2
    assert hierarchy.pruned_count == 1
    assert [r.id for r in hierarchy.visible()] == [hierarchy.refined_uccas[0].id]
    assert len(hierarchy.visible(include_pruned=True)) == 2


def test_scenario_prohibited_candidate_absent(controllers, control_actions, make_ucca) -> None:
    prohibited = SpecialInteraction(
        id="SI-1",
        type=InteractionType.PROHIBITED,
        applies_to=AppliesTo.TYPE_1_2,
        involved_controller_ids=("C1",),
        involved_control_action_ids=("deploy",),
    )
    engine = _engine(
        controllers,
        control_actions,
        authority_relationships=(grant("C1", "deploy"), grant("C2", "deploy")),
        special_interactions=(prohibited,),
    )

    [hierarchy] = engine.refine_abstract_uccas([make_ucca("Deploy")])

    assert hierarchy.total_refined == 1
    assert hierarchy.pruned_count == 0
    assert hierarchy.refined_uccas[0].specific_controller_assignments == (ControllerAssignment("C2", "deploy", True),)


def test_unsatisfied_authority_constraint_rejects_candidate(controllers, control_actions, make_ucca) -> None:
    config = UCCARefinementConfig(authority_relationships=(grant("C1", "deploy", constraints=("requires clearance",)),))
    ucca = make_ucca("Deploy")

    without_context = UCCARefinementEngine(config, controllers, control_actions)
    without_clearance = UCCARefinementEngine(
        config, controllers, control_actions, operating_context=OperatingContext(satisfied=frozenset())
    )
    with_clearance = UCCARefinementEngine(
        config, controllers, control_actions, operating_context=OperatingContext(satisfied=frozenset({"clearance"}))
    )

    [hierarchy] = without_clearance.refine_abstract_uccas([ucca])
    assert hierarchy.refined_uccas == []
    assert hierarchy.failure is None
    assert without_context.refine_abstract_uccas([ucca])[0].total_refined == 1
    assert with_clearance.refine_abstract_uccas([ucca])[0].total_refined == 1


def test_empty_pattern_gives_empty_hierarchy(controllers, control_actions, make_ucca, caplog) -> None:
    engine = _engine(controllers, control_actions, authority_relationships=(grant("C1", "deploy"),))

    with caplog.at_level(logging.INFO):
        [hierarchy] = engine.refine_abstract_uccas([make_ucca("nothing here resolves")])

    assert hierarchy.refined_uccas == []
    assert hierarchy.total_refined == 0
    assert hierarchy.failure is None
    assert any(record.getMessage() == "ucca_without_refinements" for record in caplog.records)


def test_refinement_is_idempotent(controllers, control_actions, make_ucca) -> None:
    config = dict(
        authority_relationships=(grant("C1", "deploy"), grant("C2", "deploy"), grant("C3", "retract")),
        interchangeable_groups=(PILOTS,),
    )
    uccas = [
        make_ucca("Deploy ∧ ¬Retract"),
        make_ucca("¬Deploy ∧ Retract", level=AbstractionLevel.CONTROLLER_SPECIFIC, involved=("C1", "C3"), ucca_id="U2"),
    ]

    first = _engine(controllers, control_actions, **config).refine_abstract_uccas(uccas)
    second = _engine(controllers, control_actions, **config).refine_abstract_uccas(uccas)

    assert first == second


def test_dedup_and_authority_properties(controllers, control_actions, make_ucca) -> None:
    relationships = (
        grant("C1", "deploy"),
        grant("C2", "deploy"),
        grant("C3", "deploy"),
        grant("C1", "retract"),
        grant("C2", "retract"),
    )
    engine = _engine(
        controllers,
        control_actions,
        authority_relationships=relationships,
        interchangeable_groups=(PILOTS,),
    )

    [hierarchy] = engine.refine_abstract_uccas([make_ucca("Deploy ∧ Retract")])

    assert hierarchy.total_refined == 6
    by_signature = defaultdict(list)
    interchangeability = InterchangeabilityIndex([PILOTS])
    for refined in hierarchy.refined_uccas:
        by_signature[equivalence_signature(refined.specific_controller_assignments, interchangeability)].append(refined)
    for group in by_signature.values():
        assert [refined.is_pruned for refined in group] == [False] + [True] * (len(group) - 1)

    authority = AuthorityIndex(relationships)
    for refined in hierarchy.visible():
        for assignment in refined.specific_controller_assignments:
            if assignment.performed:
                assert authority.has_authority(assignment.controller_id, assignment.control_action_id)


def test_priority_interaction_never_scores_below_floor(controllers, control_actions, make_ucca) -> None:
    boost = SpecialInteraction(
        id="SI-9",
        type=InteractionType.PRIORITY,
        applies_to=AppliesTo.BOTH,
        involved_control_action_ids=("deploy",),
        priority=9,
    )
    engine = _engine(
        controllers,
        control_actions,
        authority_relationships=(grant("C1", "deploy"), grant("C3", "deploy")),
        special_interactions=(boost,),
    )

    [hierarchy] = engine.refine_abstract_uccas([make_ucca("Deploy")])

    assert all(refined.priority_score >= 9 for refined in hierarchy.visible())
    assert hierarchy.high_priority_count == 2


def test_many_controllers_hazards_and_timing_raise_priority(controllers, control_actions, make_ucca) -> None:
    engine = _engine(
        controllers,
        control_actions,
        authority_relationships=(
            grant("C1", "deploy"),
            grant("C2", "retract"),
            grant("C3", "brake"),
            grant("C4", "steer"),
        ),
    )
    ucca = make_ucca("Deploy ∧ Retract ∧ Brake ∧ Steer", ucca_type=UCCAType.TEMPORAL, hazards=("H-1", "H-2"))

    [hierarchy] = engine.refine_abstract_uccas([ucca])

    [refined] = hierarchy.refined_uccas
    assert refined.involved_controller_ids == ("C1", "C2", "C3", "C4")
    assert refined.priority_score == 8
    assert refined.priority == PriorityLevel.HIGH
    assert hierarchy.high_priority_count == 1


def test_combination_limit_fails_only_that_ucca(controllers, control_actions, make_ucca) -> None:
    relationships = tuple(grant(c, a) for c in ("C1", "C2", "C3") for a in ("deploy", "retract"))
    engine = _engine(controllers, control_actions, authority_relationships=relationships, max_combinations=5)
    exploding = make_ucca("Deploy ∧ Retract", ucca_id="U1")
    small = make_ucca("Deploy", ucca_id="U2", code="UCCA-2")

    failed, ok = engine.refine_abstract_uccas([exploding, small])

    assert failed.failure is not None
    assert failed.failure.kind == "combination_limit_exceeded"
    assert failed.refined_uccas == []
    assert ok.failure is None
    assert ok.total_refined == 3

    with pytest.raises(CombinationLimitExceeded):
        engine.refine_abstract_ucca(exploding)


def test_strict_patterns_fail_single_ucca(controllers, control_actions, make_ucca) -> None:
    engine = _engine(controllers, control_actions, authority_relationships=(grant("C1", "deploy"),), strict_patterns=True)

    broken, fine = engine.refine_abstract_uccas([make_ucca("Deploy ∨ Retract"), make_ucca("Deploy", ucca_id="U2")])

    assert broken.failure.kind == "pattern_syntax_error"
    assert fine.total_refined == 1
    with pytest.raises(PatternSyntaxError):
        engine.refine_abstract_ucca(make_ucca("any of {Deploy"))


def test_cancellation_between_uccas(controllers, control_actions, make_ucca) -> None:
    engine = _engine(controllers, control_actions, authority_relationships=(grant("C1", "deploy"),))
    token = CancellationToken()

    def batch():
        yield make_ucca("Deploy", ucca_id="U1")
        token.cancel()
        yield make_ucca("Deploy", ucca_id="U2")

    hierarchies = engine.refine_abstract_uccas(batch(), cancel=token)

    assert [hierarchy.abstract_ucca.id for hierarchy in hierarchies] == ["U1"]
    assert token.cancelled


def test_representative_mode_yields_single_candidate(controllers, control_actions, make_ucca) -> None:
    engine = _engine(
        controllers,
        control_actions,
        authority_relationships=(grant("C1", "deploy"), grant("C2", "deploy")),
        enumeration_mode="representative",
    )

    [hierarchy] = engine.refine_abstract_uccas([make_ucca("Deploy")])

    assert [r.specific_controller_assignments for r in hierarchy.refined_uccas] == [
        (ControllerAssignment("C1", "deploy", True),)
    ]
