"""Migration runner for the LabX schema (users, consultations, chat, lab bookings)."""
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from labx.config import settings
from labx.database import Base
from labx.models import chat_message, consultation, lab_booking, user  # noqa: F401

config = context.config
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Consultation status is a SQL enum; compare types so a new status shows up in autogenerate.
CONFIGURE_OPTS = {"target_metadata": Base.metadata, "compare_type": True}


def _run(**configure_kwargs) -> None:
    context.configure(**CONFIGURE_OPTS, **configure_kwargs)
    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    _run(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
else:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        _run(connection=connection)
