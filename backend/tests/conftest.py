"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside a transaction on a shared in-memory SQLite connection;
every ``commit()`` issued by services only releases a SAVEPOINT, and the
outer transaction is rolled back afterwards so data changes never leak
between cases. Redis is an in-process ``fakeredis`` server flushed per test.
"""

from __future__ import annotations

import os

import fakeredis
import pytest
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker

from innera.core.config import TestingConfig
from innera.core.extensions import REDIS_EXTENSION_KEY
from innera.core.extensions import db as _db  # Flask-SQLAlchemy instance
from innera.factory import create_app  # application factory under test
from tests.helpers.utils import InlineExecutor

_FAKE_REDIS_SERVER = fakeredis.FakeServer()


def fake_redis_client() -> fakeredis.FakeRedis:
    """Return a client on the shared in-process Redis server."""
    return fakeredis.FakeRedis(server=_FAKE_REDIS_SERVER, decode_responses=True)


class TestConfig(TestingConfig):
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - Uses an in-memory SQLite database for speed.
    - Redis is served by ``fakeredis``; notifications run inline.
    - Avoids hitting external services.
    """

    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = "test-signing-secret-0123456789-abcdef"
    JWT_ISSUER = "innera-test"
    REDIS_CLIENT_FACTORY = fake_redis_client
    NOTIFICATION_EXECUTOR = InlineExecutor()
    USE_PROXYFIX = False
    LOG_LEVEL = "WARNING"


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestConfig` applied and logging
        noise reduced.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestConfig)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture(scope="session")
def db(app):
    """Create database tables once per test session.

    pysqlite opens transactions lazily and never emits SAVEPOINT-friendly
    BEGINs, so the engine takes over transaction demarcation itself.

    Yields
    ------
    flask_sqlalchemy.SQLAlchemy
        Database extension bound to the testing application.
    """
    with app.app_context():
        engine = _db.engine

        @event.listens_for(engine, "connect")
        def _sqlite_autocommit(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _sqlite_begin(conn):
            conn.exec_driver_sql("BEGIN")

        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    """Keep a dedicated connection open for the whole session.

    Yields
    ------
    sqlalchemy.engine.Connection
        Connection reused by the per-test outer transaction.
    """
    conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def session(db, connection):
    """Provide a SQLAlchemy session joined to a per-test transaction.

    Yields
    ------
    sqlalchemy.orm.scoping.scoped_session
        Scoped session bound to the shared connection; automatically rolled
        back after each test.

    Notes
    -----
    ``join_transaction_mode="create_savepoint"`` makes each session-level
    transaction a SAVEPOINT inside the outer one, so units of work commit
    and roll back as in production while the test still discards everything.
    """
    # 1) Top-level transaction
    top_trans = connection.begin()

    # 2) Scoped session bound to the connection
    SessionFactory = sessionmaker(
        bind=connection,
        join_transaction_mode="create_savepoint",
        expire_on_commit=False,
        autoflush=False,
    )
    scoped = scoped_session(SessionFactory)

    # 3) Monkey-patch db.session so app code uses this scoped session
    original_session = db.session
    db.session.remove()
    db.session = scoped

    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
        top_trans.rollback()


@pytest.fixture(autouse=True)
def redis_client(app):
    """Return the app's Redis client, emptied before the test runs."""
    client = app.extensions[REDIS_EXTENSION_KEY].get()
    client.flushall()
    return client


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


@pytest.fixture()
def client(app, session):
    """Return a Flask test client sharing the transactional session."""
    return app.test_client()


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture(autouse=True)
def _factories_session(request):
    """Wire Factory Boy's session helper to the transactional session fixture.

    Pure unit tests (policies, adapters) never request ``session``; only
    tests that do get factories wired.
    """
    if "session" not in request.fixturenames:
        yield
        return
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(request.getfixturevalue("session"))
    yield
    SQLAlchemySession.set(None)
