"""Runtime configuration."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

type Representation = Literal["canonical", "compact", "auto"]


class CanonConfig(BaseModel):
    """Configuration shared by the pipeline, executor and CLI."""

    model_config = ConfigDict(extra="forbid")

    representation: Representation = "auto"
    head_size: int = Field(default=5, ge=0, description="Leading items kept by bounded sampling")
    tail_size: int = Field(default=5, ge=0, description="Trailing items kept by bounded sampling")
    timeout_seconds: float = Field(default=300, gt=0)
    max_output_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
