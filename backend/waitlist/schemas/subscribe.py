from typing import Annotated, Any

from email_validator import validate_email
from pydantic import AfterValidator, BaseModel


def _check_address(value: str) -> str:
    # Bare local-part@domain only; display-name forms like "Bob <bob@x.com>" are rejected.
    return validate_email(value, check_deliverability=False).normalized


EmailAddress = Annotated[str, AfterValidator(_check_address)]


class SubscribeRequest(BaseModel):
    email: EmailAddress
    source: str | None = None
    # Accepted for compatibility with older form builds; the server clock wins.
    timestamp: str | None = None


class SubscribeResponse(BaseModel):
    message: str = "Successfully subscribed!"
    email: str


class MessageResponse(BaseModel):
    message: str


class ValidationErrorResponse(BaseModel):
    message: str
    errors: list[dict[str, Any]]


class SignupFormInput(BaseModel):
    email: EmailAddress
