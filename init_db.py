"""
Initialize the database: ensure the users table exists
"""
import sys

from config import ConfigError, load_config
from core.users import UserStoreError
from server import create_app


def init_database(config_path=None):
    """Create the users table if it is missing"""
    config = load_config(config_path)
    app = create_app(config)
    store = app.extensions['user_store']

    with app.app_context():
        store.ping()
        store.migrate()
    print("✅ Database tables created successfully!")


if __name__ == '__main__':
    try:
        init_database(sys.argv[1] if len(sys.argv) > 1 else None)
    except (ConfigError, UserStoreError) as e:
        print(f"❌ {e}")
        sys.exit(1)
