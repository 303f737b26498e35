"""Endpoints meant for an external scheduler (e.g. a hosted cron)."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from arthastra.config import settings
from arthastra.database import get_db
from arthastra.services.alert_engine import process_drop_offs

logger = logging.getLogger(__name__)
router = APIRouter()


@router.api_route("/process-dropoffs", methods=["GET", "POST"])
async def process_dropoffs(
    secret: str = Query(""),
    db: AsyncSession = Depends(get_db),
):
    if not settings.cron_secret or secret != settings.cron_secret:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return {"success": True, **await process_drop_offs(db)}
