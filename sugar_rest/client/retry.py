"""
Retry Orchestrator

Runs a call through the dispatcher and recovers once from an expired
access token by refreshing and re-issuing the original call.
"""

import logging
from typing import Any

from ..core.errors import SessionExpired
from ..core.models import CallEnvelope
from .auth import AuthManager, AuthState
from .classifier import Action, classify_failure, to_error
from .dispatcher import RequestDispatcher, TransportFailure

logger = logging.getLogger(__name__)


class RetryOrchestrator:
    """Executes calls with at most one refresh-and-retry per call."""

    def __init__(self, dispatcher: RequestDispatcher, auth: AuthManager):
        self.dispatcher = dispatcher
        self.auth = auth

    def execute(self, envelope: CallEnvelope) -> Any:
        """
        Execute a call, refreshing the session once if the access token expired.

        Args:
            envelope: The call to perform

        Returns:
            Decoded result of the call, or of its retry after a refresh

        Raises:
            AuthenticationRequired: If not logged in
            SessionExpired: If the session cannot be renewed
            ApiError: If Sugar rejects the call
            TransportError: If Sugar cannot be reached
        """
        try:
            return self.dispatcher.send(envelope)
        except TransportFailure as failure:
            decision = classify_failure(failure, allow_refresh=not envelope.is_token_call)
            if decision.action is not Action.REFRESH_AND_RETRY:
                raise decision.error from failure.__cause__
            stale_token = failure.access_token
            expired_message = decision.envelope.error_message

        if self.auth.state is AuthState.EXPIRED:
            raise SessionExpired(f"{expired_message} Session expired; log in again")

        logger.warning(
            f"Access token expired on {envelope.method.value} {envelope.path}; "
            f"refreshing and retrying once"
        )
        self.auth.refresh(stale_access_token=stale_token)

        try:
            return self.dispatcher.send(envelope)
        except TransportFailure as failure:
            raise to_error(failure) from failure.__cause__
