"""
Configuration for the users service

Loaded once at startup from a JSON file, then overridden by environment
variables, and passed explicitly into the app factory.
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import quote_plus

ENV_LOCAL = 'local'
ENV_DEV = 'dev'
ENV_PROD = 'prod'
VALID_ENVS = (ENV_LOCAL, ENV_DEV, ENV_PROD)

DEFAULT_CONFIG_DIR = Path(__file__).parent / 'config'
DEFAULT_CONFIG_NAME = 'local.json'


class ConfigError(Exception):
    """Raised when the config file is missing or malformed."""


@dataclass
class DBConfig:
    host: str = 'localhost'
    port: str = '5432'
    user: str = 'postgres'
    password: str = ''
    db_name: str = 'users'
    sslmode: str = 'disable'
    # Full SQLAlchemy URL; wins over the individual fields when set
    url: str | None = None

    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 300
    connect_timeout: int = 10

    @classmethod
    def from_dict(cls, data: dict) -> DBConfig:
        if not isinstance(data, dict):
            raise ConfigError('db section must be a JSON object')
        url = data.get('url')
        if url is not None and not isinstance(url, str):
            raise ConfigError(f'invalid db.url: {url!r}')
        try:
            return cls(
                host=str(data.get('postgres_host', cls.host)),
                port=str(data.get('postgres_port', cls.port)),
                user=str(data.get('postgres_user', cls.user)),
                password=str(data.get('postgres_password', cls.password)),
                db_name=str(data.get('db_name', cls.db_name)),
                sslmode=str(data.get('sslmode', cls.sslmode)),
                url=url,
                pool_size=int(data.get('pool_size', cls.pool_size)),
                max_overflow=int(data.get('max_overflow', cls.max_overflow)),
                pool_timeout=int(data.get('pool_timeout', cls.pool_timeout)),
                pool_recycle=int(data.get('pool_recycle', cls.pool_recycle)),
                connect_timeout=int(data.get('connect_timeout', cls.connect_timeout)),
            )
        except (TypeError, ValueError) as exc:
            raise ConfigError(f'invalid db setting: {exc}') from exc

    @property
    def database_uri(self) -> str:
        if self.url:
            uri = self.url
        else:
            uri = (
                f'postgresql://{quote_plus(self.user)}:{quote_plus(self.password)}'
                f'@{self.host}:{self.port}/{self.db_name}'
            )

        # Heroku-style postgres:// scheme is not accepted by SQLAlchemy
        if uri.startswith('postgres://'):
            uri = uri.replace('postgres://', 'postgresql://', 1)

        if uri.startswith('postgresql://'):
            if '?' not in uri:
                uri += f'?sslmode={self.sslmode}'
            elif 'sslmode' not in uri:
                uri += f'&sslmode={self.sslmode}'

        return uri

    def engine_options(self) -> dict:
        """SQLAlchemy engine options for the configured backend."""
        if self.database_uri.startswith('postgresql://'):
            return {
                'pool_size': self.pool_size,
                'max_overflow': self.max_overflow,
                'pool_recycle': self.pool_recycle,
                'pool_pre_ping': True,
                'pool_timeout': self.pool_timeout,
                'connect_args': {
                    'connect_timeout': self.connect_timeout,
                },
            }
        # SQLite (local dev and tests)
        return {'pool_pre_ping': True}


@dataclass
class HTTPServerConfig:
    address: str = 'localhost:8080'

    @property
    def host(self) -> str:
        host, _, _ = self.address.rpartition(':')
        return host or 'localhost'

    @property
    def port(self) -> int:
        _, _, port = self.address.rpartition(':')
        try:
            return int(port)
        except ValueError:
            raise ConfigError(f'invalid http_server.address: {self.address!r}') from None


@dataclass
class Config:
    env: str = ENV_LOCAL
    db: DBConfig = field(default_factory=DBConfig)
    http_server: HTTPServerConfig = field(default_factory=HTTPServerConfig)
    ratelimit_enabled: bool = True
    ratelimit_storage_uri: str = 'memory://'

    def __post_init__(self):
        if self.env not in VALID_ENVS:
            raise ConfigError(f'unknown env {self.env!r}, expected one of {VALID_ENVS}')

    @classmethod
    def from_dict(cls, data: dict) -> Config:
        if not isinstance(data, dict):
            raise ConfigError('config root must be a JSON object')
        http_server = data.get('http_server') or {}
        if not isinstance(http_server, dict):
            raise ConfigError('http_server section must be a JSON object')
        address = http_server.get('address', HTTPServerConfig.address)
        if not isinstance(address, str):
            raise ConfigError(f'invalid http_server.address: {address!r}')
        return cls(
            env=data.get('env', ENV_LOCAL),
            db=DBConfig.from_dict(data.get('db') or {}),
            http_server=HTTPServerConfig(
                address=address,
            ),
            ratelimit_enabled=bool(data.get('ratelimit_enabled', True)),
        )


def _resolve_path(path) -> Path:
    if path is None:
        return DEFAULT_CONFIG_DIR / DEFAULT_CONFIG_NAME
    path = Path(path)
    if path.is_dir():
        return path / DEFAULT_CONFIG_NAME
    return path


def load_config(path=None, environ=None) -> Config:
    """Load the service config from a JSON file plus environment overrides.

    Args:
        path: A JSON file, or a directory holding ``local.json``.
            Defaults to ``config/local.json`` next to this module.
        environ: Mapping used for overrides. Defaults to ``os.environ``.

    Environment overrides:
        APP_ENV       — replaces ``env``
        DATABASE_URL  — replaces ``db.url``
        REDIS_URL     — rate limiter storage
    """
    environ = os.environ if environ is None else environ
    config_path = _resolve_path(path)

    try:
        with open(config_path, encoding='utf-8') as fh:
            data = json.load(fh)
    except FileNotFoundError:
        raise ConfigError(f'config file not found: {config_path}') from None
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f'config file error: {exc}') from exc

    if isinstance(data, dict) and environ.get('APP_ENV'):
        data = {**data, 'env': environ['APP_ENV']}

    config = Config.from_dict(data)

    if environ.get('DATABASE_URL'):
        config.db.url = environ['DATABASE_URL']
    if environ.get('REDIS_URL'):
        config.ratelimit_storage_uri = environ['REDIS_URL']

    return config
