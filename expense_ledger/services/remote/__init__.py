"""
Remote Collaborator Package

Provides abstract interfaces and concrete implementations for the Ledger
API and the Identity API. HTTP is the production backend; the in-memory
backend satisfies the same interfaces.
"""

from expense_ledger.services.remote.interface import (
    IdentityRemoteInterface,
    LedgerRemoteInterface,
    MalformedResponse,
    NotFoundError,
    RemoteFailure,
    RemoteUnavailable,
)
from expense_ledger.services.remote.http_api import (
    HttpApiClient,
    HttpIdentityRemote,
    HttpLedgerRemote,
)
from expense_ledger.services.remote.memory import (
    InMemoryIdentityRemote,
    InMemoryLedgerRemote,
    seed_identity,
)

__all__ = [
    # Interfaces
    "IdentityRemoteInterface",
    "LedgerRemoteInterface",
    # Exceptions
    "MalformedResponse",
    "NotFoundError",
    "RemoteFailure",
    "RemoteUnavailable",
    # HTTP implementation
    "HttpApiClient",
    "HttpIdentityRemote",
    "HttpLedgerRemote",
    # In-memory implementation
    "InMemoryIdentityRemote",
    "InMemoryLedgerRemote",
    "seed_identity",
]
