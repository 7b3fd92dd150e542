"""Liveness and dependency checks."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from lettertrack.config import settings
from lettertrack.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def health():
    """Report liveness and which outside services are configured."""
    return {
        "status": "healthy",
        "ocr_configured": bool(settings.mistral_api_key),
        "mail_configured": bool(settings.mail_relay_url),
    }


@router.get("/db")
async def db_health(db: AsyncSession = Depends(get_db)):
    try:
        await db.scalar(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        raise HTTPException(503, f"Database health check failed: {e}") from e
    return {"status": "healthy", "backend": db.bind.dialect.name}
