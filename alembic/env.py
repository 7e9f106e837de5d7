"""
Alembic environment configuration for Flask-SQLAlchemy integration
"""
from logging.config import fileConfig
import os
import sys
from pathlib import Path

from alembic import context

# Add parent directory to path to import the service modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import load_config
from models import db
from server import create_app

# this is the Alembic Config object
config = context.config

# Build the Flask app from the service config (APP_CONFIG_PATH or config/local.json)
app = create_app(load_config(os.environ.get('APP_CONFIG_PATH')))

# Set sqlalchemy.url from Flask app config
config.set_main_option('sqlalchemy.url', app.config['SQLALCHEMY_DATABASE_URI'])

# Interpret the config file for Python logging
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Add model's MetaData for autogenerate support
target_metadata = db.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode.

    Emits SQL to the script output using only the URL, no Engine.
    """
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode against the app's engine."""
    with app.app_context():
        connectable = db.engine

        with connectable.connect() as connection:
            context.configure(
                connection=connection,
                target_metadata=target_metadata,
                compare_type=True,
            )

            with context.begin_transaction():
                context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
