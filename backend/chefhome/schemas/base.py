"""Shared schema primitives."""

from datetime import time
from decimal import Decimal
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, PlainSerializer

from ..core.timeutils import format_hhmm, parse_hhmm


class StandardizedModel(BaseModel):
    """Base model for responses built from ORM objects."""

    model_config = ConfigDict(use_enum_values=True, populate_by_name=True, from_attributes=True)


# Money always serializes as a JSON number with two decimals
Money = Annotated[
    Decimal,
    PlainSerializer(lambda v: float(round(Decimal(v), 2)), return_type=float, when_used="json"),
]


def _validate_hhmm(value: str) -> str:
    return format_hhmm(parse_hhmm(value))


# Strict 24-hour ``HH:MM`` value
HHMM = Annotated[str, AfterValidator(_validate_hhmm)]


# ``datetime.time`` rendered as ``HH:MM`` in responses
TimeOfDay = Annotated[
    time,
    PlainSerializer(format_hhmm, return_type=str, when_used="json"),
]
