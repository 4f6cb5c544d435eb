"""Public service alert records from the MyStop messages endpoint.

The upstream speaks PascalCase JSON with two vendor quirks handled here:

* ``DaysOfWeek`` is a bitmask of weekdays, but only a fixed set of
  combinations is ever published, so it is decoded through a lookup table.
* Dates arrive as ``/Date(<epoch>-hhmm)/`` wrapper strings. Only the
  leading integer is kept; the trailing offset is discarded.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

from pydantic import AliasGenerator, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel, to_pascal

from tcat_api.exceptions import FieldError

DAYS_OF_WEEK: dict[int, str] = {
    1: "Sunday",
    2: "Monday",
    4: "Tuesday",
    8: "Wednesday",
    16: "Thursday",
    32: "Friday",
    64: "Saturday",
    62: "Weekdays",
    65: "Weekends",
    127: "Every Day",
}

_DATE_WRAPPER = re.compile(r"^/Date\((?P<epoch>-?\d+)(?P<offset>[+-]\d{4})?\)/$")

# Epoch values at or above this are milliseconds (year 33658 in seconds).
_MS_THRESHOLD = 1_000_000_000_000


def decode_days_of_week(code: int) -> str:
    """Map a ``DaysOfWeek`` code to its label.

    Raises:
        FieldError: If the code is not one of the published combinations.
    """
    # True and 2.0 compare equal to table keys
    if not isinstance(code, int) or isinstance(code, bool) or code not in DAYS_OF_WEEK:
        msg = f"Invalid day number: {code!r}"
        raise FieldError(msg, source="alerts")
    return DAYS_OF_WEEK[code]


def parse_date_wrapper(value: str) -> datetime:
    """Parse a ``/Date(<epoch>-hhmm)/`` string into a UTC datetime.

    The offset suffix is dropped, not applied. Millisecond epochs are
    scaled down to seconds.

    Raises:
        FieldError: If the string is not a date wrapper.
    """
    match = _DATE_WRAPPER.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        msg = f"Malformed date wrapper: {value!r}"
        raise FieldError(msg, source="alerts")

    epoch = int(match.group("epoch"))
    if abs(epoch) >= _MS_THRESHOLD:
        epoch //= 1000
    try:
        return datetime.fromtimestamp(epoch, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        msg = f"Date out of range: {value!r}"
        raise FieldError(msg, source="alerts") from exc


class ChannelMessage(BaseModel):
    """Per-channel rendition of an alert message."""

    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True)

    channel_id: int
    message: str


class Alert(BaseModel):
    """One public message as served on ``/alerts``."""

    model_config = ConfigDict(
        alias_generator=AliasGenerator(
            validation_alias=to_pascal,
            serialization_alias=to_camel,
        ),
        populate_by_name=True,
    )

    channel_messages: list[ChannelMessage]
    days_of_week: str
    from_date: datetime
    from_time: datetime
    id: int = Field(validation_alias="MessageId", serialization_alias="id")
    message: str
    priority: int
    routes: list[int]
    signs: list[int]
    to_date: datetime
    to_time: datetime

    @field_validator("days_of_week", mode="before")
    @classmethod
    def _decode_days(cls, value: Any) -> str:
        return decode_days_of_week(value)

    @field_validator("from_date", "from_time", "to_date", "to_time", mode="before")
    @classmethod
    def _decode_date(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return value
        return parse_date_wrapper(value)
