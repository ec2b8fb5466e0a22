"""Base model configuration for all canonical records."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Immutable model that rejects fields it does not declare.

    Results are validated once at construction; any field a parser invents
    fails here instead of leaking to the caller.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")
