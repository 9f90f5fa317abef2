"""
App assembly entry point.

Re-exports the FastAPI `app` from `innerview.api.main` so process managers
can target `app:app`.
"""

from innerview.api.main import app  # noqa: F401
