"""Date-driven campaign transitions, run periodically from the scheduler."""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from storefront.models.campaign import Campaign, CampaignStatus

logger = logging.getLogger(__name__)


def _transition(
    db: Session, from_status: CampaignStatus, to_status: CampaignStatus, due_column, now: datetime
) -> list[dict]:
    due = (Campaign.status == from_status, due_column <= now)
    rows = db.query(Campaign.id, Campaign.name).filter(*due).order_by(Campaign.id).all()
    if not rows:
        return []
    db.execute(
        update(Campaign)
        .where(Campaign.id.in_([r.id for r in rows]), *due)
        .values(status=to_status)
        .execution_options(synchronize_session=False)
    )
    return [{"id": r.id, "name": r.name} for r in rows]


def update_campaign_statuses(db: Session, now: Optional[datetime] = None) -> dict:
    """
    Open draft campaigns whose opens_at has passed, then close active campaigns
    whose closes_at has passed. A draft that is already past its close date is
    opened and closed in the same run. Archived campaigns are never touched.
    """
    now = now or datetime.now(timezone.utc)
    activated = _transition(db, CampaignStatus.draft, CampaignStatus.active, Campaign.opens_at, now)
    closed = _transition(db, CampaignStatus.active, CampaignStatus.closed, Campaign.closes_at, now)
    db.commit()
    if activated or closed:
        logger.info("Campaign status update: %d activated, %d closed", len(activated), len(closed))
    return {
        "success": True,
        "activated": len(activated),
        "closed": len(closed),
        "campaigns": {"activated": activated, "closed": closed},
        "timestamp": now.isoformat(),
    }
