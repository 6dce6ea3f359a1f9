from pydantic import BaseModel, ConfigDict


class ValueObject(BaseModel):
    """Immutable, structurally compared domain value."""

    model_config = ConfigDict(frozen=True)
