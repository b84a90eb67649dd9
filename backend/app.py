# module backend.app
"""
Instance FastAPI globale, construite par la factory (backend.app_setup.factory.create_app).
"""
import logging
import os

from backend.app_setup.factory import create_app

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "info").upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = create_app()
