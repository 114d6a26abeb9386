"""Configuration management for the refinement engine."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
import tomllib

from .entities import (
    AuthorityRelationship,
    InterchangeableControllerGroup,
    SpecialInteraction,
    UCCARefinementConfig,
)


class LoggingConfig(BaseModel):
    """Logging configuration settings."""

    # Logging severity threshold (INFO/DEBUG/etc.).
    level: str = Field(default="INFO", description="Logging level")
    # Emit JSON if True; otherwise emit a human-readable format.
    json_format: bool = Field(default=True, description="Emit JSON logs")
    # Optional file path for log output; if None, logs go to stderr.
    log_file: str | None = Field(default=None, description="Optional log file path")
    # Maximum size (bytes) before log rotation.
    max_bytes: int = Field(default=1_000_000, description="Max log file size before rotation")
    # Number of rotated files to retain.
    backup_count: int = Field(default=3, description="Number of rotated log files to keep")


class EngineConfig(BaseModel):
    """Refinement switches and limits."""

    # Hide equivalent refinements from presentation (they are always flagged).
    prune_equivalent: bool = Field(default=True, description="Hide pruned equivalents")
    # Tolerate performed assignments with no declared authority.
    include_partial_authority: bool = Field(default=False, description="Tolerate missing authority")
    # Upper bound on generated candidates per abstract UCCA.
    max_combinations: int = Field(default=10_000, ge=1, description="Candidate limit per abstract UCCA")
    # "full" cross-product or one "representative" combination per abstract UCCA.
    enumeration_mode: Literal["full", "representative"] = Field(
        default="full", description="Team-level enumeration mode"
    )
    # Policy for a controller listed in several interchangeable groups.
    group_overlap: Literal["warn", "reject", "last_wins"] = Field(
        default="warn", description="Handling of controllers listed in several groups"
    )
    # Raise on malformed patterns instead of recovering.
    strict_patterns: bool = Field(default=False, description="Reject malformed abstract patterns")


class RefinementSettings(BaseSettings):
    """Configuration settings loaded from env or optional TOML."""

    # Environment keys use UCCA_ prefix and "__" nesting, e.g. UCCA_ENGINE__MAX_COMBINATIONS.
    model_config = SettingsConfigDict(env_prefix="UCCA_", env_nested_delimiter="__", extra="ignore")

    # Nested configs provide defaults for each subsystem.
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)

    @classmethod
    def from_toml(cls, path: str | Path) -> "RefinementSettings":
        data = tomllib.loads(Path(path).read_text())
        return cls(**data)

    def build_config(
        self,
        authority_relationships: Iterable[AuthorityRelationship] = (),
        interchangeable_groups: Iterable[InterchangeableControllerGroup] = (),
        special_interactions: Iterable[SpecialInteraction] = (),
    ) -> UCCARefinementConfig:
        engine = self.engine
        return UCCARefinementConfig(
            authority_relationships=tuple(authority_relationships),
            interchangeable_groups=tuple(interchangeable_groups),
            special_interactions=tuple(special_interactions),
            prune_equivalent=engine.prune_equivalent,
            include_partial_authority=engine.include_partial_authority,
            max_combinations=engine.max_combinations,
            enumeration_mode=engine.enumeration_mode,
            group_overlap=engine.group_overlap,
            strict_patterns=engine.strict_patterns,
        )
