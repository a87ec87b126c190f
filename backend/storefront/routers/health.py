import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.core.deps import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


def _email_state() -> str:
    if settings.DISABLE_EMAIL:
        return "disabled"
    return "configured" if settings.SMTP_HOST and settings.SMTP_USER else "unconfigured"


@router.get("")
def health_check(db: Session = Depends(get_db)):
    """Liveness plus DB connectivity and outgoing email state."""
    try:
        db.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError as e:
        logger.warning("Health check DB error: %s", e)
        database = "disconnected"
    return {"status": "ok", "database": database, "email": _email_state()}
