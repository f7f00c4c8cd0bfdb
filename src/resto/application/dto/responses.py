from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class MoneyResponse(BaseModel):
    amountCents: int
    currency: str


class MenuItemResponse(BaseModel):
    itemId: str
    name: str
    description: str | None = None
    category: str | None = None
    priceMoney: MoneyResponse
    isAvailable: bool


class MenuResponse(BaseModel):
    items: list[MenuItemResponse] = Field(default_factory=list)
    generatedAt: datetime


class TableResponse(BaseModel):
    tableId: str
    tableNumber: int
    capacity: int
    isAvailable: bool


class BookingTableResponse(BaseModel):
    tableNumber: int
    capacity: int


class BookingUserResponse(BaseModel):
    username: str | None = None
    email: str | None = None


class BookingResponse(BaseModel):
    bookingId: str
    userId: str
    tableId: str
    table: BookingTableResponse | None = None
    user: BookingUserResponse | None = None
    bookingDate: datetime
    numberOfGuests: int
    specialRequests: str
    bookingStatus: str
    operationalStatus: str
    createdAt: datetime
    updatedAt: datetime


class OrderLineResponse(BaseModel):
    lineId: str
    menuItem: str
    name: str
    quantity: int
    unitPrice: MoneyResponse
    lineTotal: MoneyResponse


class OrderMetaResponse(BaseModel):
    pointsEarned: int
    pointsCredited: bool
    pointsCreditedAt: datetime | None = None
    redeemedPoints: int
    discountApplied: MoneyResponse


class OrderResponse(BaseModel):
    orderId: str
    userId: str
    orderStatus: str
    items: list[OrderLineResponse] = Field(default_factory=list)
    subtotal: MoneyResponse
    totalAmount: MoneyResponse
    meta: OrderMetaResponse
    version: int
    createdAt: datetime
    updatedAt: datetime


class OrderListResponse(BaseModel):
    count: int
    orders: list[OrderResponse] = Field(default_factory=list)


class OrderLoyaltyStateResponse(BaseModel):
    currentPoints: int
    pointsEarned: int | None = None
    redeemedPoints: int | None = None


class OrderWithLoyaltyResponse(BaseModel):
    order: OrderResponse
    loyalty: OrderLoyaltyStateResponse


class LoyaltyRecentOrderResponse(BaseModel):
    id: str
    createdAt: datetime
    totalAmount: MoneyResponse
    orderStatus: str
    pointsEarned: int
    redeemedPoints: int


class LoyaltySummaryResponse(BaseModel):
    points: int
    lifetimeEarned: int
    lifetimeRedeemed: int
    recentOrders: list[LoyaltyRecentOrderResponse] = Field(default_factory=list)


class LoyaltyTotalsResponse(BaseModel):
    totalPointsInWallets: int
    usersWithPoints: int
    totalPointsEarned: int
    totalPointsRedeemed: int


class LoyaltyUserResponse(BaseModel):
    id: str
    username: str | None = None
    email: str | None = None
    points: int | None = None


class LoyaltyRedemptionResponse(BaseModel):
    id: str
    user: LoyaltyUserResponse | None = None
    redeemedPoints: int
    discountApplied: MoneyResponse
    totalAmount: MoneyResponse
    updatedAt: datetime


class LoyaltyOverviewResponse(BaseModel):
    totals: LoyaltyTotalsResponse
    topUsers: list[LoyaltyUserResponse] = Field(default_factory=list)
    recentRedemptions: list[LoyaltyRedemptionResponse] = Field(default_factory=list)


class PointsAdjustmentResponse(BaseModel):
    id: str
    points: int


class DeletedResponse(BaseModel):
    id: str
    deleted: bool = True
