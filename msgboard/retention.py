"""
Retention cap enforcement.

Keeps the message table at or below a fixed capacity by evicting the
oldest rows first (created_at ASC, id ASC, the reverse of display order).
"""
import logging

from sqlalchemy.orm import Session

from msgboard.models import Message

logger = logging.getLogger(__name__)


def evict_overflow(db: Session, capacity: int) -> int:
    """
    Delete the oldest messages beyond capacity within the caller's transaction.

    Must run while the store's write lock is held so the count and the
    delete see the same table.

    Args:
        db: Session of the enclosing write transaction
        capacity: Maximum number of messages to keep

    Returns:
        Number of messages deleted
    """
    if capacity < 0:
        raise ValueError("capacity must be non-negative")

    total = db.query(Message).count()
    overflow = total - capacity
    if overflow <= 0:
        return 0

    oldest_ids = [
        row.id
        for row in db.query(Message.id)
        .order_by(Message.created_at.asc(), Message.id.asc())
        .limit(overflow)
        .all()
    ]
    deleted = (
        db.query(Message)
        .filter(Message.id.in_(oldest_ids))
        .delete(synchronize_session=False)
    )
    logger.info(f"Retention evicted {deleted} messages (total={total}, capacity={capacity})")
    return deleted
