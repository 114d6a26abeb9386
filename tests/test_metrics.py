from ucca_refinement.entities import RefinementFailure, UCCAHierarchy
from ucca_refinement.metrics import RefinementMetrics


def test_metrics_count_hierarchies(make_ucca) -> None:
    ucca = make_ucca("Deploy")
    metrics = RefinementMetrics()
    metrics.update_all(
        [
            UCCAHierarchy(abstract_ucca=ucca, total_refined=4, pruned_count=1, high_priority_count=2),
            UCCAHierarchy(abstract_ucca=ucca),
            UCCAHierarchy(abstract_ucca=ucca, failure=RefinementFailure("combination_limit_exceeded", "too many")),
        ]
    )

    assert metrics.metrics() == {
        "abstract_uccas": 3,
        "refined_uccas": 4,
        "pruned_uccas": 1,
        "high_priority_uccas": 2,
        "failed_uccas": 1,
        "empty_uccas": 1,
    }
