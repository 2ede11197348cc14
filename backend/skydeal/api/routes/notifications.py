"""Notification endpoints: inbox, e-mail tracking, queue processing."""

import base64
import logging
import math
from urllib.parse import urlparse
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Response
from fastapi.responses import RedirectResponse
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload, sessionmaker

from skydeal.api.deps import get_current_user, get_session_factory, verify_admin
from skydeal.core.config import settings
from skydeal.db.models.deal import Deal
from skydeal.db.models.flight import Flight
from skydeal.db.models.notification import Notification, NotificationStatus
from skydeal.db.models.user import User
from skydeal.db.session import get_db
from skydeal.notifications.dispatch import NotificationDispatcher
from skydeal.notifications.email_sender import LogTransport
from skydeal.notifications.newsletter import send_weekly_newsletter
from skydeal.schemas.deals import JobAccepted, Pagination
from skydeal.schemas.notifications import NotificationListOut, NotificationOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix=f"{settings.API_V1_PREFIX}/notifications", tags=["notifications"])

# 1x1 transparent GIF
TRACKING_PIXEL = base64.b64decode("R0lGODlhAQABAIAAAAAAAP///yH5BAEAAAAALAAAAAABAAEAAAIBRAA7")


@router.get("", response_model=NotificationListOut)
def list_notifications(
    status: NotificationStatus | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The current user's notifications, newest first."""
    conditions = [Notification.user_id == user.id]
    if status:
        conditions.append(Notification.status == status.value)

    total = db.execute(
        select(func.count()).select_from(Notification).where(*conditions)
    ).scalar_one()
    rows = db.execute(
        select(Notification)
        .where(*conditions)
        .options(
            selectinload(Notification.deal).selectinload(Deal.flight).selectinload(Flight.origin_airport),
            selectinload(Notification.deal).selectinload(Deal.flight).selectinload(Flight.destination_airport),
            selectinload(Notification.deal).selectinload(Deal.flight).selectinload(Flight.airline_info),
        )
        .order_by(Notification.created_at.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    ).scalars().all()

    return NotificationListOut(
        notifications=[NotificationOut.model_validate(row) for row in rows],
        pagination=Pagination(total=total, page=page, limit=limit, pages=math.ceil(total / limit)),
    )


@router.put("/{notification_id}/read")
def mark_notification_read(
    notification_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    # NotFoundError is mapped to 404 by the app
    NotificationDispatcher(db, LogTransport()).mark_read(notification_id, user.id)
    return {"message": "Notification marked as read"}


@router.get("/track/open/{notification_id}")
def track_email_open(notification_id: str, db: Session = Depends(get_db)):
    """Record an open and serve the pixel, whatever happens."""
    try:
        NotificationDispatcher(db, LogTransport()).record_email_opened(notification_id)
    except Exception:
        db.rollback()
        logger.exception("Error tracking email open for %s", notification_id)
    return Response(
        content=TRACKING_PIXEL,
        media_type="image/gif",
        headers={"Cache-Control": "no-store"},
    )


def _safe_redirect(target: str | None) -> str:
    if target and urlparse(target).scheme in ("http", "https"):
        return target
    return settings.FRONTEND_URL


@router.get("/track/click/{notification_id}")
def track_email_click(
    notification_id: str,
    redirect: str | None = None,
    db: Session = Depends(get_db),
):
    """Record a click and redirect, whatever happens."""
    try:
        NotificationDispatcher(db, LogTransport()).record_email_clicked(notification_id)
    except Exception:
        db.rollback()
        logger.exception("Error tracking email click for %s", notification_id)
    return RedirectResponse(url=_safe_redirect(redirect), status_code=302)


def run_drain(session_factory: sessionmaker) -> None:
    try:
        with session_factory() as db:
            sent = NotificationDispatcher(db).drain_pending(settings.NOTIFICATIONS_BATCH_SIZE)
            logger.info("Processed %d notifications", sent)
    except Exception:
        logger.exception("Background notification processing failed")


def run_newsletter(session_factory: sessionmaker) -> None:
    try:
        with session_factory() as db:
            send_weekly_newsletter(db)
    except Exception:
        logger.exception("Background weekly newsletter failed")


@router.post(
    "/process",
    response_model=JobAccepted,
    status_code=202,
    dependencies=[Depends(verify_admin)],
)
def process_pending(
    background_tasks: BackgroundTasks,
    session_factory: sessionmaker = Depends(get_session_factory),
):
    background_tasks.add_task(run_drain, session_factory)
    return JobAccepted(message="Processing pending notifications started")


@router.post(
    "/weekly-newsletter",
    response_model=JobAccepted,
    status_code=202,
    dependencies=[Depends(verify_admin)],
)
def weekly_newsletter(
    background_tasks: BackgroundTasks,
    session_factory: sessionmaker = Depends(get_session_factory),
):
    background_tasks.add_task(run_newsletter, session_factory)
    return JobAccepted(message="Weekly newsletter sending started")
