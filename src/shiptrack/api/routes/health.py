"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request, status

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database() -> dict:
    """Check database connection and shipment table status."""
    from ...config import settings
    from ...db.supabase import get_supabase_client

    supabase = get_supabase_client()
    if not supabase:
        return {
            "configured": False,
            "message": "Supabase not configured. Set SHIPTRACK_SUPABASE_URL and SHIPTRACK_SUPABASE_KEY environment variables.",
        }

    try:
        supabase.table(settings.shipments_table).select("id", count="exact").limit(1).execute()
        return {
            "configured": True,
            "connected": True,
            "message": f"Database connected. Table '{settings.shipments_table}' is reachable.",
        }
    except Exception as exc:
        return {
            "configured": True,
            "connected": False,
            "error": str(exc),
            "message": f"Database connection error: {exc}",
        }


@router.get("/health/realtime", status_code=status.HTTP_200_OK)
def check_realtime(request: Request) -> dict:
    hub = request.app.state.hub
    tracking = request.app.state.tracking
    return {
        "connections": hub.connection_count(),
        "topics": hub.topic_count(),
        "pending_notifications": tracking.pending,
    }
