"""Refinement of abstract unsafe control-action combinations (UCCAs)."""

from .api import RefinementRun, build_engine, refine
from .config import EngineConfig, LoggingConfig, RefinementSettings
from .constraints import AlwaysTrue, ModeEquals, OperatingContext, PreconditionRef, TimeWindow, parse_constraint
from .dedup import equivalence_signature, mark_equivalent
from .describe import Describer
from .engine import CancellationToken, RefinementStage, UCCARefinementEngine
from .entities import (
    AbstractionLevel,
    AbstractUCCA,
    ActionRequirement,
    AppliesTo,
    AuthorityRelationship,
    ControlAction,
    Controller,
    ControllerAssignment,
    InterchangeabilityType,
    InterchangeableControllerGroup,
    InteractionType,
    PriorityLevel,
    RefinedUCCA,
    RefinementFailure,
    SpecialInteraction,
    UCCAHierarchy,
    UCCARefinementConfig,
    UCCAType,
)
from .errors import CombinationLimitExceeded, DocumentError, GroupOverlapError, PatternSyntaxError, RefinementError
from .filtering import ConstraintFilter
from .generation import CombinationGenerator
from .indices import AuthorityIndex, InterchangeabilityIndex
from .logging_utils import JsonFormatter, configure_logging
from .metrics import RefinementMetrics
from .models import AnalysisDocument, AnalysisInput, dump_hierarchies, load_document, parse_document
from .pattern import ActionResolver, PatternParser, parse_pattern
from .scoring import PriorityScorer

__all__ = [
    "AbstractionLevel",
    "AbstractUCCA",
    "ActionRequirement",
    "ActionResolver",
    "AlwaysTrue",
    "AnalysisDocument",
    "AnalysisInput",
    "AppliesTo",
    "AuthorityIndex",
    "AuthorityRelationship",
    "CancellationToken",
    "CombinationGenerator",
    "CombinationLimitExceeded",
    "ConstraintFilter",
    "ControlAction",
    "Controller",
    "ControllerAssignment",
    "Describer",
    "DocumentError",
    "EngineConfig",
    "GroupOverlapError",
    "InterchangeabilityIndex",
    "InterchangeabilityType",
    "InterchangeableControllerGroup",
    "InteractionType",
    "JsonFormatter",
    "LoggingConfig",
    "ModeEquals",
    "OperatingContext",
    "PatternParser",
    "PatternSyntaxError",
    "PreconditionRef",
    "PriorityLevel",
    "PriorityScorer",
    "RefinedUCCA",
    "RefinementError",
    "RefinementFailure",
    "RefinementMetrics",
    "RefinementRun",
    "RefinementSettings",
    "RefinementStage",
    "SpecialInteraction",
    "TimeWindow",
    "UCCAHierarchy",
    "UCCARefinementConfig",
    "UCCARefinementEngine",
    "UCCAType",
    "build_engine",
    "configure_logging",
    "dump_hierarchies",
    "equivalence_signature",
    "load_document",
    "mark_equivalent",
    "parse_constraint",
    "parse_document",
    "parse_pattern",
    "refine",
]
