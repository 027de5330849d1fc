"""
Error Classifier

Turns a TransportFailure into a recovery decision or a typed error.
This is the only place that inspects failure response bodies.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum

from ..core.errors import ApiError, SessionExpired, SugarRestError, TransportError
from ..core.models import ErrorEnvelope
from .dispatcher import TransportFailure

logger = logging.getLogger(__name__)

INVALID_GRANT = "invalid_grant"
EXPIRED_ACCESS_TOKEN_MESSAGE = "The access token provided is invalid."
INVALID_REFRESH_TOKEN_MESSAGE = "Invalid refresh token"


class Action(Enum):
    """What the orchestrator should do with a failed call."""
    REFRESH_AND_RETRY = "refresh_and_retry"
    FAIL = "fail"


@dataclass(frozen=True)
class Decision:
    action: Action
    error: SugarRestError | None = None
    envelope: ErrorEnvelope | None = None


def parse_error_envelope(failure: TransportFailure) -> ErrorEnvelope:
    """
    Normalize a failure body into an ErrorEnvelope.

    Sugar error bodies look like {"error": "...", "error_message": "..."}.
    Anything else is reported with an "http_<status>" code and the raw text.

    Args:
        failure: Failure carrying a response body

    Returns:
        ErrorEnvelope for the body
    """
    fallback_code = f"http_{failure.status_code}" if failure.status_code else "http_error"
    text = failure.body or ""

    try:
        data = json.loads(text) if text else None
    except json.JSONDecodeError:
        data = None

    if isinstance(data, dict) and data.get("error"):
        message = data.get("error_message") or data.get("error_description") or failure.reason
        return ErrorEnvelope(error_code=str(data["error"]), error_message=str(message))

    return ErrorEnvelope(error_code=fallback_code, error_message=text.strip() or failure.reason)


def classify_failure(failure: TransportFailure, allow_refresh: bool = True) -> Decision:
    """
    Decide how to handle a failed call.

    Args:
        failure: The dispatcher failure
        allow_refresh: Whether an expired access token may be recovered;
            False for token endpoint calls and retried calls

    Returns:
        Decision with REFRESH_AND_RETRY, or FAIL and the error to raise
    """
    if failure.body is None:
        logger.debug(f"Transport failure without body: {failure.reason}")
        error = TransportError(failure.reason)
        error.__cause__ = failure.__cause__
        return Decision(Action.FAIL, error=error)

    envelope = parse_error_envelope(failure)
    logger.debug(f"Classifying error {envelope.error_code}: {envelope.error_message}")

    if envelope.error_code == INVALID_GRANT:
        if envelope.error_message == EXPIRED_ACCESS_TOKEN_MESSAGE and allow_refresh:
            return Decision(Action.REFRESH_AND_RETRY, envelope=envelope)
        if envelope.error_message == INVALID_REFRESH_TOKEN_MESSAGE:
            return Decision(
                Action.FAIL, error=SessionExpired(envelope.error_message), envelope=envelope
            )

    return Decision(
        Action.FAIL,
        error=ApiError(
            envelope.error_message,
            code=envelope.error_code,
            status_code=failure.status_code,
        ),
        envelope=envelope,
    )


def to_error(failure: TransportFailure) -> SugarRestError:
    """Translate a failure into the error to raise, without recovery."""
    return classify_failure(failure, allow_refresh=False).error
