"""Application factory wiring Flask extensions, services and blueprints."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from flask import Flask

from innera.core.config import BaseConfig, TokenSettings, get_config
from innera.core.logger import configure_logging
from innera.core.logger import init_app as init_logging

TOKEN_SETTINGS_KEY = "innera.token_settings"
NOTIFICATION_EXECUTOR_KEY = "innera.notification_executor"


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    The token settings (signing secret included) are validated here, once,
    so a misconfigured secret stops the process at startup instead of on the
    first login.
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    app.extensions[TOKEN_SETTINGS_KEY] = TokenSettings.from_config(app.config)
    app.extensions[NOTIFICATION_EXECUTOR_KEY] = app.config.get(
        "NOTIFICATION_EXECUTOR"
    ) or ThreadPoolExecutor(
        max_workers=int(app.config.get("NOTIFICATION_WORKERS", 2)),
        thread_name_prefix="innera-notify",
    )

    from innera.core import middleware

    middleware.init_app(app)

    from innera.core import extensions

    extensions.init_app(app)

    init_logging(app)

    from innera.api import init_app as init_api

    init_api(app)

    from innera.core import errors

    errors.init_app(app)

    return app
