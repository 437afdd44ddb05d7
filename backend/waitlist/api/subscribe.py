import json
import logging
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from waitlist.core.config import settings
from waitlist.db.session import get_store
from waitlist.schemas.subscribe import MessageResponse, SubscribeResponse, ValidationErrorResponse
from waitlist.services import email as email_service
from waitlist.services import subscribers as subscribers_service
from waitlist.services.store import SubscriberStore
from waitlist.services.subscribers import DuplicateSubscriptionError, InvalidSubscriptionError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["subscribe"])

SUBSCRIBE_FAILED_MESSAGE = "Failed to subscribe. Please try again."
METHOD_NOT_ALLOWED_MESSAGE = "Method not allowed"


async def _read_json(request: Request) -> Any:
    body = await request.body()
    if not body.strip():
        return {}
    return json.loads(body)


@router.post(
    "/subscribe",
    status_code=status.HTTP_201_CREATED,
    response_model=SubscribeResponse,
    responses={
        400: {"model": ValidationErrorResponse},
        409: {"model": MessageResponse},
        500: {"model": MessageResponse},
    },
)
async def subscribe_email(
    request: Request,
    background_tasks: BackgroundTasks,
    store: SubscriberStore = Depends(get_store),
):
    try:
        payload = await _read_json(request)
        result = await subscribers_service.subscribe(store, payload, request.headers)
    except InvalidSubscriptionError as exc:
        body = ValidationErrorResponse(message="Invalid email format", errors=jsonable_encoder(exc.errors))
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump())
    except DuplicateSubscriptionError:
        body = MessageResponse(message="Email already subscribed")
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=body.model_dump())
    except Exception:
        logger.exception("Subscription error")
        body = MessageResponse(message=SUBSCRIBE_FAILED_MESSAGE)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body.model_dump())

    if settings.welcome_email_enabled and settings.smtp_enabled:
        background_tasks.add_task(email_service.send_welcome_email, result.email)

    return SubscribeResponse(email=result.email)


@router.get("/subscribe", status_code=status.HTTP_405_METHOD_NOT_ALLOWED, response_model=MessageResponse)
async def subscribe_method_not_allowed() -> MessageResponse:
    return MessageResponse(message=METHOD_NOT_ALLOWED_MESSAGE)
