"""Business records written by workflow side effects."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Contact(BaseModel):
    id: str
    sub_account_id: str
    name: str
    email: str
    fields: dict[str, str] = {}
    created_at: datetime
    updated_at: datetime


class Notification(BaseModel):
    id: str
    notification: str
    sub_account_id: str
    agency_id: str = ""
    user_id: str = ""
    created_at: datetime


class OutboundEmail(BaseModel):
    """An email queued for delivery by an external mailer."""

    model_config = ConfigDict(frozen=True)

    to: str
    subject: str
    body: str
    from_name: str | None = None
    sub_account_id: str
    workflow_id: str
    instance_id: str
