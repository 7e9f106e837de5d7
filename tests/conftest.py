"""
Pytest configuration and shared fixtures for the users service tests
"""
import pytest
import os
import sys
import tempfile
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture(scope='session')
def app_config():
    """Config pointing at a temporary SQLite database"""
    from config import Config, DBConfig

    db_fd, db_path = tempfile.mkstemp(suffix='.db')
    config = Config(
        env='local',
        db=DBConfig(url=f'sqlite:///{db_path}'),
        ratelimit_enabled=False,
    )
    yield config

    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture(scope='session')
def app(app_config):
    """Create and configure a test Flask application instance"""
    from server import create_app
    from models import db

    flask_app = create_app(app_config)
    flask_app.config.update({'TESTING': True})

    # Create tables inside a persistent app context
    with flask_app.app_context():
        flask_app.extensions['user_store'].migrate()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture(autouse=True)
def _clean_db(app):
    """Clean up data between tests to avoid UNIQUE constraint violations."""
    from models import db
    yield
    db.session.rollback()
    for table in reversed(db.metadata.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()


@pytest.fixture(scope='function')
def client(app):
    """Create a test client for the Flask application"""
    return app.test_client()


@pytest.fixture
def store(app):
    """The SQLAlchemy-backed user store wired into the app"""
    return app.extensions['user_store']


@pytest.fixture
def alice(store):
    """Insert Alice and return the new id"""
    return store.add_user('Alice', 'a@x.com')


@pytest.fixture
def bob(store):
    """Insert Bob and return the new id"""
    return store.add_user('Bob', 'b@x.com')
