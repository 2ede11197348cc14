"""Health check endpoints."""
from fastapi import APIRouter

from skydeal.db.session import check_db_connection

router = APIRouter()


@router.get("/health")
def health_check() -> dict:
    """
    Health check endpoint.
    Returns status and database reachability.
    """
    return {
        "status": "ok",
        "database": "ok" if check_db_connection() else "unavailable",
    }
