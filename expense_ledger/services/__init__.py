"""Services package."""

from expense_ledger.services.remote import (
    HttpApiClient,
    HttpIdentityRemote,
    HttpLedgerRemote,
    IdentityRemoteInterface,
    InMemoryIdentityRemote,
    InMemoryLedgerRemote,
    LedgerRemoteInterface,
    MalformedResponse,
    NotFoundError,
    RemoteFailure,
    RemoteUnavailable,
)

__all__ = [
    "HttpApiClient",
    "HttpIdentityRemote",
    "HttpLedgerRemote",
    "IdentityRemoteInterface",
    "InMemoryIdentityRemote",
    "InMemoryLedgerRemote",
    "LedgerRemoteInterface",
    "MalformedResponse",
    "NotFoundError",
    "RemoteFailure",
    "RemoteUnavailable",
]
