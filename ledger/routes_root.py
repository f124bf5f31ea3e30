# routes_root.py
"""
Root / basic endpoints (health, landing).
"""

from fastapi import APIRouter
from fastapi.responses import RedirectResponse

router = APIRouter()


@router.get("/")
def read_root():
    """
    Landing endpoint: send clients to the interactive API docs.
    """
    return RedirectResponse(url="/docs", status_code=302)


@router.get("/health")
def health():
    """
    Simple health check.
    """
    return {"status": "ok"}
