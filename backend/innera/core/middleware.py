"""HTTP edge wiring: reverse-proxy headers and CORS for the API prefix."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix


def _parse_origins(raw: str | None) -> list[str]:
    return [o.strip() for o in (raw or "").split(",") if o.strip()]


def init_app(app: Flask) -> None:
    """Install ``ProxyFix`` (when ``USE_PROXYFIX``) and CORS for ``/api/*``.

    A blank or ``"*"`` ``CORS_ORIGINS`` allows any origin without
    credentials; an explicit list enables credentialed requests. Clients read
    ``X-Request-ID`` so it is exposed.
    """
    if app.config.get("USE_PROXYFIX", True):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    origins = _parse_origins(app.config.get("CORS_ORIGINS"))
    wildcard = not origins or origins == ["*"]
    prefix = app.config.get("API_BASE_PREFIX", "/api").rstrip("/")
    CORS(
        app,
        resources={rf"{prefix}/*": {"origins": "*" if wildcard else origins}},
        supports_credentials=not wildcard,
        expose_headers=["X-Request-ID"],
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
