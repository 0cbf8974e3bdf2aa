"""innera API: sessions, partner pairing, circles and journal entries.

``from innera import create_app`` builds the Flask application.
"""

from __future__ import annotations

from .factory import create_app

__all__ = ["create_app"]
