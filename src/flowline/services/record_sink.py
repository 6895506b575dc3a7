"""Redis-backed sinks for records created by workflow runs."""

import uuid
from datetime import datetime, timezone
from typing import Any

from redis import Redis

from flowline.models.records import Contact, Notification, OutboundEmail


def _decode(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


class RedisRecordSink:
    """Creates and updates contacts, tickets and notifications."""

    def __init__(self, redis_client: Redis):
        if redis_client is None:
            raise ValueError("redis_client is required")
        self._redis = redis_client

    def _contact_key(self, contact_id: str) -> str:
        return f"contact:{contact_id}"

    def _contact_index_key(self, sub_account_id: str) -> str:
        return f"subaccount:{sub_account_id}:contacts"

    def _ticket_key(self, ticket_id: str) -> str:
        return f"ticket:{ticket_id}"

    def _notifications_key(self, sub_account_id: str) -> str:
        return f"subaccount:{sub_account_id}:notifications"

    def _utc_now(self) -> datetime:
        return datetime.now(timezone.utc)

    def create_contact(
        self,
        sub_account_id: str,
        name: str,
        email: str,
        fields: dict[str, str] | None = None,
    ) -> Contact:
        """Create a contact and index it by email within the sub-account."""
        if not sub_account_id:
            raise ValueError("sub_account_id is required")
        if not name:
            raise ValueError("name is required")
        if not email:
            raise ValueError("email is required")

        now = self._utc_now()
        contact = Contact(
            id=str(uuid.uuid4()),
            sub_account_id=sub_account_id,
            name=name,
            email=email,
            fields=fields or {},
            created_at=now,
            updated_at=now,
        )
        self._redis.set(self._contact_key(contact.id), contact.model_dump_json())
        self._redis.hset(self._contact_index_key(sub_account_id), email, contact.id)
        return contact

    def find_contact(self, sub_account_id: str, email: str) -> Contact | None:
        contact_id = self._redis.hget(self._contact_index_key(sub_account_id), email)
        if contact_id is None:
            return None
        data = self._redis.get(self._contact_key(_decode(contact_id)))
        if data is None:
            return None
        return Contact.model_validate_json(data)

    def update_contact(
        self,
        sub_account_id: str,
        email: str,
        fields: dict[str, str],
    ) -> Contact | None:
        """Merge ``fields`` into the contact with ``email``, if it exists."""
        contact = self.find_contact(sub_account_id, email)
        if contact is None:
            return None

        changes: dict[str, Any] = {
            "fields": {**contact.fields, **fields},
            "updated_at": self._utc_now(),
        }
        if "name" in fields:
            changes["name"] = fields["name"]

        updated = contact.model_copy(update=changes)
        self._redis.set(self._contact_key(contact.id), updated.model_dump_json())
        return updated

    def move_ticket(
        self,
        ticket_id: str,
        lane_id: str,
        pipeline_id: str | None = None,
    ) -> None:
        """Record a ticket's new lane (and pipeline, when given)."""
        if not ticket_id:
            raise ValueError("ticket_id is required")
        if not lane_id:
            raise ValueError("lane_id is required")

        mapping = {"laneId": lane_id, "updatedAt": self._utc_now().isoformat()}
        if pipeline_id:
            mapping["pipelineId"] = pipeline_id
        self._redis.hset(self._ticket_key(ticket_id), mapping=mapping)

    def create_notification(
        self,
        sub_account_id: str,
        message: str,
        user_id: str = "",
        agency_id: str = "",
    ) -> Notification:
        if not sub_account_id:
            raise ValueError("sub_account_id is required")
        if not message:
            raise ValueError("message is required")

        notification = Notification(
            id=str(uuid.uuid4()),
            notification=message,
            sub_account_id=sub_account_id,
            agency_id=agency_id,
            user_id=user_id,
            created_at=self._utc_now(),
        )
        self._redis.lpush(
            self._notifications_key(sub_account_id), notification.model_dump_json()
        )
        return notification

    def list_notifications(self, sub_account_id: str, count: int = 50) -> list[Notification]:
        """Newest notifications first."""
        items = self._redis.lrange(self._notifications_key(sub_account_id), 0, count - 1)
        return [Notification.model_validate_json(item) for item in items]


class RedisEmailOutbox:
    """FIFO list of emails waiting for an external mailer."""

    def __init__(self, redis_client: Redis, key: str = "outbox:email"):
        if redis_client is None:
            raise ValueError("redis_client is required")
        self._redis = redis_client
        self._key = key

    def enqueue(self, email: OutboundEmail) -> None:
        self._redis.lpush(self._key, email.model_dump_json())

    def pop(self) -> OutboundEmail | None:
        """Remove and return the oldest queued email."""
        data = self._redis.rpop(self._key)
        if data is None:
            return None
        return OutboundEmail.model_validate_json(data)

    def length(self) -> int:
        return self._redis.llen(self._key)
