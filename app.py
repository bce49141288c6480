"""
App assembly entry point.

Re-exports the FastAPI `app` from `atacado.api.main` so `uvicorn app:app`
keeps working from the repository root.
"""

from atacado.api.main import app  # noqa: F401
