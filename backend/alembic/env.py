from __future__ import annotations

import os
import sys
from logging.config import fileConfig

from alembic import context

# env.py lives in backend/alembic/; the app modules sit one level up
BACKEND_DIR = os.path.realpath(os.path.join(os.path.dirname(__file__), ".."))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

from database import Base, engine, SQLALCHEMY_DATABASE_URL  # noqa: E402

# Every model module registers its tables on Base.metadata when imported
import models.users  # noqa: E402,F401
import models.material  # noqa: E402,F401
import models.supplier  # noqa: E402,F401
import models.stock_entry  # noqa: E402,F401
import models.request  # noqa: E402,F401
import models.stock  # noqa: E402,F401
import models.log  # noqa: E402,F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def run_migrations_offline() -> None:
    """Emit SQL for DATABASE_URL without connecting."""
    context.configure(
        url=SQLALCHEMY_DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        render_as_batch=_is_sqlite(SQLALCHEMY_DATABASE_URL),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Migrate through the application's own engine, so .env and URL fixes apply."""
    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            # SQLite cannot ALTER constraints in place
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
