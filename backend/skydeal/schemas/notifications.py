"""Pydantic schemas for user notifications."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from skydeal.db.models.notification import NotificationStatus
from skydeal.schemas.deals import DealOut, Pagination


class NotificationOut(BaseModel):
    id: UUID
    deal_id: UUID
    status: NotificationStatus
    created_at: datetime
    sent_at: datetime | None
    opened_at: datetime | None
    clicked_at: datetime | None
    read_at: datetime | None
    deal: DealOut

    model_config = {"from_attributes": True}


class NotificationListOut(BaseModel):
    notifications: list[NotificationOut]
    pagination: Pagination
