"""Send pending deal notifications and record engagement."""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from skydeal.core.config import settings
from skydeal.core.errors import NotFoundError
from skydeal.db.models.deal import Deal
from skydeal.db.models.flight import Flight
from skydeal.db.models.notification import Notification, NotificationStatus
from skydeal.notifications.email_sender import MailTransport, default_transport
from skydeal.notifications.templates import render_deal_notification

logger = logging.getLogger(__name__)

MAX_ERROR_LENGTH = 2000


def _parse_id(value: uuid.UUID | str) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


class NotificationDispatcher:
    """
    Drains the pending notification queue through a mail transport.

    A failed send marks the row ``failed``; nothing is re-queued.
    """

    def __init__(self, db: Session, transport: MailTransport | None = None) -> None:
        self.db = db
        self.transport = transport or default_transport()

    def claim_pending(self, batch_size: int) -> list[Notification]:
        stmt = (
            select(Notification)
            .where(Notification.status == NotificationStatus.pending.value)
            .order_by(Notification.created_at.asc())
            .limit(batch_size)
            .with_for_update(skip_locked=True)
            .options(
                selectinload(Notification.user),
                selectinload(Notification.deal)
                .selectinload(Deal.flight)
                .selectinload(Flight.origin_airport),
                selectinload(Notification.deal)
                .selectinload(Deal.flight)
                .selectinload(Flight.destination_airport),
                selectinload(Notification.deal)
                .selectinload(Deal.flight)
                .selectinload(Flight.airline_info),
            )
        )
        return list(self.db.execute(stmt).scalars().all())

    def mark_sent(self, row: Notification) -> None:
        row.status = NotificationStatus.sent.value
        row.sent_at = datetime.now(timezone.utc)
        row.last_error = None
        self.db.flush()

    def mark_failed(self, row: Notification, reason: str) -> None:
        row.status = NotificationStatus.failed.value
        row.last_error = reason[:MAX_ERROR_LENGTH]
        self.db.flush()

    def drain_pending(self, batch_size: int | None = None) -> int:
        """Send one batch of pending notifications. Returns how many were sent."""
        if batch_size is None:
            batch_size = settings.NOTIFICATIONS_BATCH_SIZE
        rows = self.claim_pending(batch_size)
        logger.info("Processing %d pending notifications", len(rows))

        sent = 0
        for row in rows:
            row_id = row.id
            try:
                message = render_deal_notification(row)
                self.transport.send(message)
            except Exception as e:
                logger.warning("Failed to send notification %s: %s", row_id, e)
                self.db.rollback()
                self.mark_failed(row, str(e) or e.__class__.__name__)
                self.db.commit()
                continue

            # a delivered row must never go back to pending
            self.mark_sent(row)
            self.db.commit()
            sent += 1

        logger.info("Sent %d of %d notifications", sent, len(rows))
        return sent

    def _stamp_once(self, notification_id: uuid.UUID | str, column: str) -> bool:
        parsed = _parse_id(notification_id)
        if parsed is None:
            logger.debug("Ignoring malformed notification id %r", notification_id)
            return False

        col = getattr(Notification, column)
        result = self.db.execute(
            update(Notification)
            .where(Notification.id == parsed, col.is_(None))
            .values({column: datetime.now(timezone.utc)})
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return bool(result.rowcount)

    def record_email_opened(self, notification_id: uuid.UUID | str) -> bool:
        """Set opened_at on the first open. Unknown ids are ignored."""
        return self._stamp_once(notification_id, "opened_at")

    def record_email_clicked(self, notification_id: uuid.UUID | str) -> bool:
        """Set clicked_at on the first click. Unknown ids are ignored."""
        return self._stamp_once(notification_id, "clicked_at")

    def mark_read(self, notification_id: uuid.UUID, user_id: uuid.UUID) -> Notification:
        row = self.db.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
        ).scalar_one_or_none()
        if row is None:
            raise NotFoundError("notification", notification_id)

        if row.read_at is None:
            row.read_at = datetime.now(timezone.utc)
            self.db.commit()
            self.db.refresh(row)
        return row


def drain_pending_notifications(
    db: Session,
    batch_size: int | None = None,
    transport: MailTransport | None = None,
) -> int:
    return NotificationDispatcher(db, transport).drain_pending(batch_size)
