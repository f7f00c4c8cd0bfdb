from __future__ import annotations

from datetime import datetime

from resto.application.dto.responses import MenuItemResponse, MenuResponse, MoneyResponse
from resto.domain.menu.entities import MenuItem


def to_menu_response(items: list[MenuItem], generated_at: datetime) -> MenuResponse:
    return MenuResponse(
        items=[
            MenuItemResponse(
                itemId=str(item.item_id),
                name=item.name,
                description=item.description,
                category=item.category,
                priceMoney=MoneyResponse(
                    amountCents=item.price_money.amount_cents,
                    currency=item.price_money.currency,
                ),
                isAvailable=item.is_available,
            )
            for item in items
        ],
        generatedAt=generated_at,
    )
