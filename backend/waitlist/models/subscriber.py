import enum
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, Enum, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from waitlist.db.base import Base

DEFAULT_SOURCE = "website"
UNKNOWN_PROVENANCE = "unknown"


class SubscriberStatus(str, enum.Enum):
    active = "active"
    unsubscribed = "unsubscribed"


class EmailSubscriber(Base):
    __tablename__ = "email_subscribers"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # Not unique: duplicates are rejected by the subscribe flow, not by the table.
    email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    source: Mapped[str] = mapped_column(Text, nullable=False, default=DEFAULT_SOURCE)
    subscribed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    status: Mapped[SubscriberStatus] = mapped_column(
        Enum(SubscriberStatus, name="subscriber_status"),
        nullable=False,
        default=SubscriberStatus.active,
        index=True,
    )
    ip_address: Mapped[str] = mapped_column(Text, nullable=False, default=UNKNOWN_PROVENANCE)
    user_agent: Mapped[str] = mapped_column(Text, nullable=False, default=UNKNOWN_PROVENANCE)

    def to_document(self) -> dict[str, Any]:
        """Return the record in its camelCase document shape."""
        subscribed_at = self.subscribed_at.isoformat() if self.subscribed_at else None
        status = self.status.value if isinstance(self.status, SubscriberStatus) else self.status
        return {
            "email": self.email,
            "source": self.source,
            "subscribedAt": subscribed_at,
            "status": status,
            "ipAddress": self.ip_address,
            "userAgent": self.user_agent,
        }
