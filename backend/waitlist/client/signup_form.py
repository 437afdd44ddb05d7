"""Waitlist signup form: client-side validation plus a single write request.

The form mirrors the landing page widget. It moves through
``idle -> submitting -> success | error`` and only ever has one request in
flight, because the control is disabled while submitting.
"""

from __future__ import annotations

import enum
import logging

import httpx
from pydantic import ValidationError

from waitlist.schemas.subscribe import SignupFormInput

logger = logging.getLogger(__name__)

SUBSCRIBE_PATH = "/api/subscribe"
FORM_SOURCE = "landing-page"

INVALID_EMAIL_MESSAGE = "Please enter a valid email address"
SUCCESS_MESSAGE = "Thank you for subscribing! Check your email for confirmation."
DUPLICATE_MESSAGE = "This email is already subscribed."
FALLBACK_ERROR_MESSAGE = "Something went wrong. Please try again."
NETWORK_ERROR_MESSAGE = "Network error. Please check your connection and try again."


class FormState(str, enum.Enum):
    idle = "idle"
    submitting = "submitting"
    success = "success"
    error = "error"


class SignupForm:
    def __init__(self, client: httpx.Client, *, path: str = SUBSCRIBE_PATH, source: str = FORM_SOURCE):
        self.client = client
        self.path = path
        self.source = source
        self.reset()

    def reset(self) -> None:
        """Return to a freshly mounted form."""
        self.state = FormState.idle
        self.email = ""
        self.message = ""
        self.field_error: str | None = None

    @property
    def disabled(self) -> bool:
        return self.state is FormState.submitting

    def submit(self, email: str | None = None) -> FormState:
        if self.disabled or self.state is FormState.success:
            return self.state
        if email is not None:
            self.email = email

        try:
            SignupFormInput(email=self.email)
        except ValidationError:
            self.field_error = INVALID_EMAIL_MESSAGE
            return self.state

        self.field_error = None
        self.message = ""
        self.state = FormState.submitting
        try:
            response = self.client.post(self.path, json={"email": self.email, "source": self.source})
            result = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Signup request failed: %s", exc)
            return self._fail(NETWORK_ERROR_MESSAGE)

        if response.is_success:
            self.state = FormState.success
            self.message = SUCCESS_MESSAGE
            self.email = ""
        elif response.status_code == 409:
            self._fail(DUPLICATE_MESSAGE)
        else:
            server_message = result.get("message") if isinstance(result, dict) else None
            self._fail(server_message or FALLBACK_ERROR_MESSAGE)
        return self.state

    def _fail(self, message: str) -> FormState:
        self.state = FormState.error
        self.message = message
        return self.state
