"""Dashboard alerts for the signed-in user."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from arthastra.auth_utils import get_current_user
from arthastra.database import get_db
from arthastra.models.alert import Alert
from arthastra.models.user import User
from arthastra.schemas import AlertListResponse, AlertReadRequest
from arthastra.services.alert_engine import generate_alerts

logger = logging.getLogger(__name__)
router = APIRouter()

ALERT_PAGE_SIZE = 50


@router.get("", response_model=AlertListResponse)
async def list_alerts(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Alert)
        .where(Alert.user_id == user.id)
        .order_by(Alert.created_at.desc())
        .limit(ALERT_PAGE_SIZE)
    )
    alerts = result.scalars().all()
    unread = await db.execute(
        select(func.count(Alert.id)).where(Alert.user_id == user.id, Alert.read.is_(False))
    )
    return AlertListResponse(alerts=alerts, unread_count=unread.scalar() or 0)


@router.put("")
async def mark_read(
    data: AlertReadRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if data.mark_all:
        stmt = update(Alert).where(Alert.user_id == user.id, Alert.read.is_(False))
    elif data.alert_id is not None:
        stmt = update(Alert).where(Alert.user_id == user.id, Alert.id == data.alert_id)
    else:
        return {"success": True, "updated": 0}
    result = await db.execute(stmt.values(read=True))
    return {"success": True, "updated": result.rowcount}


@router.post("/generate")
async def generate_my_alerts(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Run the alert detectors for the signed-in user."""
    return {"success": True, **await generate_alerts(db, user_id=user.id)}
