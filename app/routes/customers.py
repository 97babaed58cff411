from fastapi import APIRouter, Depends
from app.dependencies.auth import get_current_user
from app.dependencies.services import get_customer_client, get_expiry_watcher
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customers", tags=["Customers"])


def _fetched_at(client):
    return client.last_successful_fetch.isoformat() if client.last_successful_fetch else None


@router.post("/refresh", response_model=dict)
async def refresh_customers(
    current_user: dict = Depends(get_current_user),
    client=Depends(get_customer_client)
):
    """Re-read the customer listing; a failed fetch keeps the cached customers"""
    refreshed = await client.refresh_async()
    return {
        "success": True,
        "refreshed": refreshed,
        "customer_count": len(client.customers),
        "last_successful_fetch": _fetched_at(client)
    }


@router.get("/expiry-status", response_model=dict)
async def expiry_status(
    current_user: dict = Depends(get_current_user),
    client=Depends(get_customer_client),
    watcher=Depends(get_expiry_watcher)
):
    return {
        "customer_count": len(watcher.customers),
        "last_successful_fetch": _fetched_at(client),
        "horizon_days": watcher.horizon_days
    }
