"""Audit logging for every state-changing hierarchy operation.

Entries are immutable. Writers never see an exception from here: a failed
audit write is logged and rolled back, the operation itself stands.

Usage in service layer:
    audit_service.log(db, user_id="u-1", action="move", resource_type="group",
                      resource_id="grp-1a2b3c4d5e6f", details={"new_parent_id": "grp-..."})
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import sqlalchemy.exc
from sqlalchemy.orm import Session

from ..models.user import AuditLog

logger = logging.getLogger(__name__)


def log(
    db: Session,
    user_id: Optional[str],
    action: str,
    resource_type: str,
    resource_id: Optional[str] = None,
    details: Optional[dict] = None,
) -> None:
    """Write and commit an audit entry. Never raises."""
    try:
        entry = AuditLog(
            user_id=user_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=json.dumps(details, default=str) if details else None,
        )
        db.add(entry)
        db.commit()
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.warning("Failed to write audit log: %s", e)
        db.rollback()


def get_by_resource(db: Session, resource_type: str, resource_id: str, limit: int = 100) -> List[AuditLog]:
    return (
        db.query(AuditLog)
        .filter(AuditLog.resource_type == resource_type, AuditLog.resource_id == resource_id)
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .limit(limit)
        .all()
    )


def purge_old_entries(db: Session, days: int = 365) -> int:
    """Delete entries older than `days`. Returns count of deleted rows.

    Skipped when days <= 0 (keep forever). Never raises.
    """
    if days <= 0:
        return 0

    cutoff = datetime.now(timezone.utc) - timedelta(days=days)
    try:
        count = db.query(AuditLog).filter(AuditLog.created_at < cutoff).delete()
        db.commit()
        return count
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.warning("Failed to purge audit log: %s", e)
        db.rollback()
        return 0
