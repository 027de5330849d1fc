"""
Authenticated call pipeline for the SugarCRM v10 REST API.
"""

from .credentials import CredentialStore
from .dispatcher import RequestDispatcher, TransportFailure
from .auth import AuthManager, AuthState
from .retry import RetryOrchestrator
from .sugar_client import SugarClient
from .builder import create_client

__all__ = [
    "CredentialStore",
    "RequestDispatcher",
    "TransportFailure",
    "AuthManager",
    "AuthState",
    "RetryOrchestrator",
    "SugarClient",
    "create_client",
]
