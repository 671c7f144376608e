"""Session extraction configuration."""

from typing import Literal

from pydantic import BaseModel, Field

ExtractionStrategy = Literal["rule_based"]


class ExtractionConfig(BaseModel):
    """Selects the extractor used by session processing."""

    strategy: ExtractionStrategy = Field(
        default="rule_based", description="Extraction strategy"
    )
    min_statement_length: int = Field(
        default=10, ge=0, description="Shorter user lines are ignored"
    )
    memory_importance: float = Field(
        default=0.5, ge=0.0, le=1.0, description="Importance of proposed memories"
    )
    name_confidence: float = Field(
        default=0.8, ge=0.0, le=1.0, description="Confidence of proposed names"
    )
