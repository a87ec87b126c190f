import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.core.deps import get_db
from storefront.services.campaign_status import update_campaign_statuses

logger = logging.getLogger(__name__)

router = APIRouter()

security = HTTPBearer(auto_error=False)


def require_cron_secret(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> None:
    """Bearer check against CRON_SECRET. Open when no secret is configured (local dev)."""
    if not settings.CRON_SECRET:
        return
    token = credentials.credentials if credentials else ""
    if not hmac.compare_digest(token.encode(), settings.CRON_SECRET.encode()):
        logger.warning("Rejected cron call with missing or wrong bearer token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )


@router.api_route(
    "/update-campaign-status",
    methods=["GET", "POST"],
    dependencies=[Depends(require_cron_secret)],
)
def update_campaign_status(db: Session = Depends(get_db)):
    """Move campaigns between draft, active and closed by their dates. Safe to call repeatedly."""
    return update_campaign_statuses(db)
