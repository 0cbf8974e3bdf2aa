"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

import threading
from collections.abc import Callable

import redis  # type: ignore[import-untyped]
from flask import Flask, current_app
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import MetaData

# Global naming convention for all constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
migrate = Migrate(render_as_batch=True)

REDIS_EXTENSION_KEY = "innera.redis"


class LazyRedis:
    """Redis handle connected on first use.

    The first caller of :meth:`get` builds the client through ``factory``;
    later callers reuse it. Construction is guarded by a lock so concurrent
    request threads never create two clients.

    :param factory: Zero-argument callable returning a :class:`redis.Redis`.
    """

    def __init__(self, factory: Callable[[], redis.Redis]) -> None:
        self._factory = factory
        self._client: redis.Redis | None = None
        self._lock = threading.Lock()

    def get(self) -> redis.Redis:
        client = self._client
        if client is not None:
            return client
        with self._lock:
            if self._client is None:
                self._client = self._factory()
            return self._client

    @property
    def initialized(self) -> bool:
        return self._client is not None


def _redis_factory(app: Flask) -> Callable[[], redis.Redis]:
    """Pick the client factory: ``REDIS_CLIENT_FACTORY`` wins over ``REDIS_URL``."""
    custom = app.config.get("REDIS_CLIENT_FACTORY")
    if custom is not None:
        return custom
    url = app.config.get("REDIS_URL")
    if not url:
        raise RuntimeError("REDIS_URL is not configured.")
    return lambda: redis.Redis.from_url(url, decode_responses=True)


def init_app(app: Flask) -> None:
    """Initialize SQLAlchemy, migrations and the lazy Redis handle.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. This call imports the
        :mod:`innera.models` package so SQLAlchemy metadata is complete before
        migrations run.
    """
    db.init_app(app)

    from innera import models as _models  # noqa: F401

    migrate.init_app(app, db)
    app.extensions[REDIS_EXTENSION_KEY] = LazyRedis(_redis_factory(app))


def get_redis() -> redis.Redis:
    """Return the Redis client of the current application, connecting if needed."""
    handle: LazyRedis | None = current_app.extensions.get(REDIS_EXTENSION_KEY)
    if handle is None:
        raise RuntimeError("Redis handle is not initialized. Call init_app() first.")
    return handle.get()
