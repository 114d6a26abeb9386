"""Public API facade for the refinement engine.

This module assembles the engine from settings and an analysis document so
callers do not have to wire indices and configuration by hand.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import List

from .config import RefinementSettings
from .constraints import OperatingContext
from .engine import CancellationToken, UCCARefinementEngine
from .entities import UCCAHierarchy
from .metrics import RefinementMetrics
from .models import AnalysisDocument, AnalysisInput


@dataclass
class RefinementRun:
    """Result handles for one facade call."""

    engine: UCCARefinementEngine
    hierarchies: List[UCCAHierarchy]
    metrics: RefinementMetrics


def build_engine(
    analysis: AnalysisInput,
    settings: RefinementSettings | None = None,
    operating_context: OperatingContext | None = None,
    logger: logging.Logger | None = None,
) -> UCCARefinementEngine:
    """Create an engine for the rules and reference data of ``analysis``."""

    settings = settings or RefinementSettings()
    config = settings.build_config(
        analysis.authority_relationships,
        analysis.interchangeable_groups,
        analysis.special_interactions,
    )
    return UCCARefinementEngine(
        config,
        analysis.controllers,
        analysis.control_actions,
        operating_context=operating_context,
        logger=logger,
    )


def refine(
    document: AnalysisDocument,
    settings: RefinementSettings | None = None,
    operating_context: OperatingContext | None = None,
    cancel: CancellationToken | None = None,
    logger: logging.Logger | None = None,
) -> RefinementRun:
    """Refine every abstract UCCA of ``document``."""

    logger = logger or logging.getLogger(__name__)
    analysis = document.to_entities()
    engine = build_engine(analysis, settings, operating_context=operating_context, logger=logger)
    hierarchies = engine.refine_abstract_uccas(analysis.abstract_uccas, cancel=cancel)
    metrics = RefinementMetrics()
    metrics.update_all(hierarchies)
    logger.info("refinement_completed", extra=metrics.metrics())
    return RefinementRun(engine=engine, hierarchies=hierarchies, metrics=metrics)
