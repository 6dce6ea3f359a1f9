"""Typed constraint values carried by ParameterMap entries.

Values are inert data. Nothing here decides what a constraint means for a
given resource type; that is the store's job.
"""

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import Field, model_validator
from typing_extensions import Self

from crs.domain.shared.model.value import ValueObject


class ReferenceConstraint(ValueObject):
    """Match records referencing any of ``values`` (public ids, OR-ed)."""

    kind: Literal["reference"] = "reference"
    values: tuple[str, ...] = Field(min_length=1)
    target_type: str | None = None


class Token(ValueObject):
    system: str | None = None
    code: str = Field(min_length=1)


class TokenConstraint(ValueObject):
    """Match records carrying any of ``tokens`` (OR-ed)."""

    kind: Literal["token"] = "token"
    tokens: tuple[Token, ...] = Field(min_length=1)


class DateRangeConstraint(ValueObject):
    """Inclusive date range; either bound may be open, not both."""

    kind: Literal["date"] = "date"
    lower: datetime | None = None
    upper: datetime | None = None

    @model_validator(mode="after")
    def check_bounds(self) -> Self:
        if self.lower is None and self.upper is None:
            raise ValueError("date range needs at least one bound")
        if self.lower is not None and self.upper is not None and self.lower > self.upper:
            raise ValueError("date range lower bound is after upper bound")
        return self


class StringConstraint(ValueObject):
    """Case-insensitive string match. ``starts_with`` is the protocol default."""

    kind: Literal["string"] = "string"
    value: str = Field(min_length=1)
    match: Literal["exact", "contains", "starts_with"] = "starts_with"


class LastnConstraint(ValueObject):
    """Keep only the ``max`` most recent distinct timestamps per code."""

    kind: Literal["lastn"] = "lastn"
    max: int = Field(default=1, ge=1)


ConstraintValue = Annotated[
    Union[
        ReferenceConstraint,
        TokenConstraint,
        DateRangeConstraint,
        StringConstraint,
        LastnConstraint,
    ],
    Field(discriminator="kind"),
]
