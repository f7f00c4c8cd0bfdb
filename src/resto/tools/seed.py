from __future__ import annotations

import os

from sqlalchemy import inspect
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from resto.infrastructure.db.models.menu import MenuItemModel
from resto.infrastructure.db.models.table import TableModel
from resto.infrastructure.db.models.user import UserModel
from resto.infrastructure.db.session import get_engine

TABLE_CAPACITIES = (4, 4, 4, 6, 6, 6)

MENU_ITEMS = [
    {
        "id": "itm_001",
        "name": "Paneer Tikka",
        "description": "Chargrilled cottage cheese, mint chutney",
        "category": "Starters",
        "price_cents": 28000,
    },
    {
        "id": "itm_002",
        "name": "Veg Spring Rolls",
        "description": "Crisp rolls, sweet chilli dip",
        "category": "Starters",
        "price_cents": 22000,
    },
    {
        "id": "itm_003",
        "name": "Butter Chicken",
        "description": "Tandoori chicken in tomato butter gravy",
        "category": "Mains",
        "price_cents": 42000,
    },
    {
        "id": "itm_004",
        "name": "Dal Makhani",
        "description": "Slow-cooked black lentils",
        "category": "Mains",
        "price_cents": 30000,
    },
    {
        "id": "itm_005",
        "name": "Garlic Naan",
        "description": None,
        "category": "Breads",
        "price_cents": 8000,
    },
    {
        "id": "itm_006",
        "name": "Gulab Jamun",
        "description": "Two pieces, warm syrup",
        "category": "Desserts",
        "price_cents": 15000,
    },
]


def main() -> None:
    engine = get_engine(timeout_seconds=2.0)
    inspector = inspect(engine)
    required_tables = {"users", "tables", "menu_items"}
    if not required_tables.issubset(set(inspector.get_table_names(schema="public"))):
        print("no schema yet")
        return

    currency = os.getenv("CURRENCY", "INR").upper()
    admin_email = os.getenv("SEED_ADMIN_EMAIL", "admin@resto.local").lower()

    with Session(engine) as session:
        for number, capacity in enumerate(TABLE_CAPACITIES, start=1):
            session.execute(
                insert(TableModel)
                .values(id=f"tbl_{number:03d}", table_number=number, capacity=capacity, is_available=True)
                .on_conflict_do_nothing(index_elements=[TableModel.table_number])
            )

        for item in MENU_ITEMS:
            values = {**item, "currency": currency, "is_available": True}
            session.execute(
                insert(MenuItemModel)
                .values(**values)
                .on_conflict_do_update(
                    index_elements=[MenuItemModel.id],
                    set_={key: value for key, value in values.items() if key != "id"},
                )
            )

        session.execute(
            insert(UserModel)
            .values(id="usr_admin", email=admin_email, username="admin", role="admin", points=0)
            .on_conflict_do_update(
                index_elements=[UserModel.id],
                set_={"email": admin_email, "role": "admin"},
            )
        )

        session.commit()
        print("seed complete")


if __name__ == "__main__":
    main()
