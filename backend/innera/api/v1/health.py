"""Health check endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from innera.api.deps import json_response, timing
from innera.core.extensions import db, get_redis

bp = Blueprint("health", __name__)


@bp.get("/health")
@timing
def healthcheck():
    """Return application, database and Redis health information."""

    db_status = "ok"
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:  # pragma: no cover - depends on DB backend
        current_app.logger.exception("healthcheck.db_error")
        db_status = "fail"
    redis_status = "ok"
    try:
        get_redis().ping()
    except RedisError:  # pragma: no cover - depends on Redis availability
        current_app.logger.exception("healthcheck.redis_error")
        redis_status = "fail"
    version = current_app.config.get("APP_VERSION", "dev")
    status = "ok" if db_status == redis_status == "ok" else "degraded"
    payload = {"status": status, "db": db_status, "redis": redis_status, "version": version}
    return json_response(payload, status=200 if status == "ok" else 503)
