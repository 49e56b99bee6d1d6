"""Pydantic schemas for orders.

This module exposes lightweight request/validation schemas used by the
orders API: the date-range query shared by the listings and the bodies of
the force-refund and recovery workflows.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator


def to_utc_iso(value: datetime) -> str:
    """Format a datetime as UTC ISO-8601 with milliseconds and a ``Z`` suffix.

    Naive datetimes are taken to be UTC already.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class DateRangeQuery(BaseModel):
    """Query parameters for the order listings.

    Attributes:
        start_date: Lower bound on ``createdAt`` (``startDate``).
        end_date: Upper bound on ``createdAt`` (``endDate``).

    Both accept ISO-8601 dates (``2024-05-01``) or datetimes, with or
    without an offset.
    """

    start_date: datetime = Field(alias="startDate")
    end_date: datetime = Field(alias="endDate")

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_iso(cls, v):
        """Parse ISO-8601 strings strictly and normalize them to UTC.

        Naive values are taken to be UTC already.

        Raises:
            ValueError: When the value is not an ISO-8601 date string, or
                its UTC equivalent falls outside the supported date range.
        """
        if not isinstance(v, datetime):
            try:
                v = datetime.fromisoformat(str(v).strip())
            except ValueError:
                raise ValueError("Invalid date string")
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        try:
            return v.astimezone(timezone.utc)
        except OverflowError:
            raise ValueError("Date out of range")

    @property
    def start(self) -> str:
        return to_utc_iso(self.start_date)

    @property
    def end(self) -> str:
        return to_utc_iso(self.end_date)


class ForceRefundDTO(BaseModel):
    """Schema for a force refund.

    Attributes:
        order_id: Order identifier (``orderId``), trimmed and non-empty.
        amount: Refund amount, strictly positive and finite.
    """

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    order_id: str = Field(alias="orderId", min_length=1)
    amount: float = Field(gt=0, allow_inf_nan=False)

    @field_validator("amount", mode="before")
    @classmethod
    def reject_bool(cls, v):
        # JSON true/false would otherwise coerce to 1.0/0.0
        if isinstance(v, bool):
            raise ValueError("amount must be a number")
        return v


class RecoveryDTO(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    order_id: str = Field(alias="orderId", min_length=1)
