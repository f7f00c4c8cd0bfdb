from __future__ import annotations

from typing import NewType

UserId = NewType("UserId", str)
TableId = NewType("TableId", str)
BookingId = NewType("BookingId", str)
MenuItemId = NewType("MenuItemId", str)
OrderId = NewType("OrderId", str)
OrderLineId = NewType("OrderLineId", str)
AuditEntryId = NewType("AuditEntryId", str)
