from __future__ import annotations

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from resto.application.ports.repositories import MenuRepository
from resto.domain.common.ids import MenuItemId
from resto.domain.common.money import Money
from resto.domain.menu.entities import MenuItem
from resto.infrastructure.db.models.menu import MenuItemModel
from resto.infrastructure.db.session import get_engine


class SqlAlchemyMenuRepository(MenuRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def list_items(self) -> list[MenuItem]:
        statement = select(MenuItemModel).order_by(MenuItemModel.category, MenuItemModel.name)
        with Session(self._engine) as session:
            models = session.execute(statement).scalars().all()
        return [_to_domain(model) for model in models]

    def get_items(self, item_ids: list[MenuItemId]) -> list[MenuItem]:
        if not item_ids:
            return []
        statement = select(MenuItemModel).where(MenuItemModel.id.in_([str(i) for i in item_ids]))
        with Session(self._engine) as session:
            models = session.execute(statement).scalars().all()
        return [_to_domain(model) for model in models]


def _to_domain(model: MenuItemModel) -> MenuItem:
    return MenuItem(
        item_id=MenuItemId(model.id),
        name=model.name,
        description=model.description,
        price_money=Money(amount_cents=model.price_cents, currency=model.currency),
        is_available=model.is_available,
        category=model.category,
    )
