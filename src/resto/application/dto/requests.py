from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

# Counts, amounts and balances are stored in Postgres INTEGER columns.
MAX_INT32 = 2**31 - 1


def _to_camel(value: str) -> str:
    parts = value.split("_")
    return parts[0] + "".join(part.capitalize() for part in parts[1:])


class CamelBaseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
    )


class CreateTableRequest(CamelBaseModel):
    table_number: int = Field(le=MAX_INT32)
    capacity: int = Field(le=MAX_INT32)


class UpdateTableRequest(CamelBaseModel):
    capacity: int | None = Field(default=None, le=MAX_INT32)
    is_available: bool | None = None


class BookTableRequest(CamelBaseModel):
    table_id: str
    booking_date: datetime
    number_of_guests: int = Field(le=MAX_INT32)
    special_requests: str | None = None


class UpdateBookingStatusRequest(CamelBaseModel):
    operational_status: str | None = None


class PlaceOrderLineRequest(CamelBaseModel):
    menu_item: str
    quantity: int = Field(le=MAX_INT32)


class PlaceOrderRequest(CamelBaseModel):
    items: list[PlaceOrderLineRequest] = []


class UpdateOrderStatusRequest(CamelBaseModel):
    order_status: str | None = None


class RedeemPointsRequest(CamelBaseModel):
    points: int | None = Field(default=None, le=MAX_INT32)
    points_to_redeem: int | None = Field(default=None, le=MAX_INT32)

    @property
    def requested_points(self) -> int | None:
        return self.points if self.points is not None else self.points_to_redeem


class AdjustPointsRequest(CamelBaseModel):
    delta: int | None = Field(default=None, ge=-MAX_INT32, le=MAX_INT32)
    points: int | None = Field(default=None, le=MAX_INT32)
    email: str | None = None
