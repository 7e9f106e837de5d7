#!/usr/bin/env python3
"""
Users Service Server
A small Flask server exposing CRUD endpoints for user records
"""
import argparse
import sys

from flask import Flask, jsonify
from flask_cors import CORS

from config import ConfigError, load_config
from core.users import SQLAlchemyUserStore, UserStoreError
from log_config import setup_logging
from models import db
from rate_limiter import init_limiter
from request_logging import init_request_logging
from routes.users_routes import register_users_routes

__version__ = '1.0.0'


def create_app(config, store=None):
    """Build the Flask app for ``config``.

    ``store`` defaults to a SQLAlchemyUserStore over the app's database.
    """
    app = Flask(__name__)
    CORS(app)

    app.config['APP_CONFIG'] = config
    app.config['SQLALCHEMY_DATABASE_URI'] = config.db.database_uri
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['SQLALCHEMY_ENGINE_OPTIONS'] = config.db.engine_options()
    db.init_app(app)

    init_limiter(app, config)
    init_request_logging(app)

    @app.route('/', methods=['GET'])
    def index():
        return jsonify('Hello World!')

    if store is None:
        store = SQLAlchemyUserStore(db)
    register_users_routes(app, store)

    return app


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog='users-service',
        description='REST service for user records',
    )
    parser.add_argument('-c', '--config', default=None, help='Config file path')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 2

    log = setup_logging(config.env)
    app = create_app(config)
    store = app.extensions['user_store']

    with app.app_context():
        try:
            store.ping()
            store.migrate()
        except UserStoreError as e:
            log.error('failed to initialize storage', error=str(e))
            return 1

    log.info('initializing server', address=config.http_server.address)
    log.debug('logger debug mode enabled')

    try:
        app.run(
            host=config.http_server.host,
            port=config.http_server.port,
            threaded=True,
        )
    finally:
        log.info('stopping server')
        with app.app_context():
            store.close()
        log.info('server stopped')

    return 0


if __name__ == '__main__':
    sys.exit(main())
