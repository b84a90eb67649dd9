"""
Entrypoint ASGI: `uvicorn backend.asgi:app` (ou gunicorn avec workers uvicorn).
L'instance est construite une seule fois dans backend.app.
"""

from backend.app import app

__all__ = ["app"]
