from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from waitlist.models.subscriber import DEFAULT_SOURCE, UNKNOWN_PROVENANCE, EmailSubscriber, SubscriberStatus
from waitlist.schemas.subscribe import SubscribeRequest
from waitlist.services.store import SubscriberStore

logger = logging.getLogger(__name__)


class SubscriptionError(Exception):
    """Base class for subscribe failures the caller can act on."""


class InvalidSubscriptionError(SubscriptionError):
    def __init__(self, errors: list[dict[str, Any]]):
        super().__init__("Invalid email format")
        self.errors = errors


class DuplicateSubscriptionError(SubscriptionError):
    def __init__(self, email: str):
        super().__init__("Email already subscribed")
        self.email = email


@dataclass(frozen=True)
class SubscriptionResult:
    email: str
    subscriber_id: uuid.UUID


def mask_email(email: str) -> str:
    local, _, domain = email.partition("@")
    if not local or not domain:
        return email
    return f"{local[0]}{'*' * min(len(local) - 1, 8)}@{domain}"


def parse_request(payload: Any) -> SubscribeRequest:
    try:
        return SubscribeRequest.model_validate(payload)
    except ValidationError as exc:
        raise InvalidSubscriptionError(exc.errors(include_url=False, include_context=False)) from exc


def client_ip(headers: Mapping[str, str]) -> str:
    return headers.get("x-forwarded-for") or headers.get("x-real-ip") or UNKNOWN_PROVENANCE


def build_subscriber(
    request: SubscribeRequest, headers: Mapping[str, str], *, now: datetime | None = None
) -> EmailSubscriber:
    return EmailSubscriber(
        id=uuid.uuid4(),
        email=str(request.email).lower(),
        source=request.source or DEFAULT_SOURCE,
        subscribed_at=now or datetime.now(timezone.utc),
        status=SubscriberStatus.active,
        ip_address=client_ip(headers),
        user_agent=headers.get("user-agent") or UNKNOWN_PROVENANCE,
    )


async def subscribe(store: SubscriberStore, payload: Any, headers: Mapping[str, str]) -> SubscriptionResult:
    """Validate a signup payload and persist a new active subscriber.

    Raises InvalidSubscriptionError for a missing or malformed email and
    DuplicateSubscriptionError when an active record already exists. The
    lookup and the insert are separate store calls, so two concurrent
    requests for the same address can both succeed.
    """
    request = parse_request(payload)
    subscriber = build_subscriber(request, headers)

    existing = await store.find_active(subscriber.email)
    if existing is not None:
        logger.info("subscribe_duplicate", extra={"email": mask_email(subscriber.email)})
        raise DuplicateSubscriptionError(subscriber.email)

    subscriber_id = await store.insert(subscriber)
    logger.info(
        "subscribe_created",
        extra={"email": mask_email(subscriber.email), "source": subscriber.source, "subscriber_id": str(subscriber_id)},
    )
    return SubscriptionResult(email=subscriber.email, subscriber_id=subscriber_id)
