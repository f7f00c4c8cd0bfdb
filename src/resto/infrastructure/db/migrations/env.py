from __future__ import annotations

import os

from alembic import context
from sqlalchemy import engine_from_config, pool

from resto.infrastructure.db.models.audit import AuditLogModel  # noqa: F401
from resto.infrastructure.db.models.base import Base
from resto.infrastructure.db.models.booking import BookingModel  # noqa: F401
from resto.infrastructure.db.models.menu import MenuItemModel  # noqa: F401
from resto.infrastructure.db.models.order import OrderModel  # noqa: F401
from resto.infrastructure.db.models.table import TableModel  # noqa: F401
from resto.infrastructure.db.models.user import UserModel  # noqa: F401
from resto.infrastructure.db.session import database_url

config = context.config
if os.getenv("DATABASE_URL"):
    config.set_main_option("sqlalchemy.url", database_url())

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
