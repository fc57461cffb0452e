"""
HTTP Remote Implementation

Talks to a JSON REST API (json-server style) for records and identities:

    GET    /records?ownerId=<id>     -> [record, ...]
    POST   /records                  -> created record with id
    PUT    /records/{id}             -> updated record
    DELETE /records/{id}
    GET    /identities?email=&password=
    POST   /identities
    PUT    /identities/{id}
    DELETE /identities/{id}

TRADEOFFS:
- No retries. A failed mutation is surfaced to the user once; retrying a
  POST that may have landed would risk duplicate records.
- Filtering by owner happens on the server; we trust it and do not
  re-filter.
"""

import asyncio
import json
from typing import Any, Callable, Optional, TypeVar

import aiohttp
import structlog

from expense_ledger.config import ApiSettings, get_settings
from expense_ledger.models.identity import (
    Identity,
    RegistrationProfile,
    Role,
    identity_from_wire,
    profile_to_wire,
)
from expense_ledger.models.record import (
    ExpenseInput,
    ExpenseRecord,
    record_from_wire,
    record_to_wire,
)
from expense_ledger.services.remote.interface import (
    IdentityRemoteInterface,
    LedgerRemoteInterface,
    MalformedResponse,
    NotFoundError,
    RemoteFailure,
    RemoteUnavailable,
)

T = TypeVar("T")

logger = structlog.get_logger(__name__)


class HttpApiClient:
    """
    Low-level JSON API client wrapper.

    Owns one aiohttp session, created lazily inside the running loop.
    Maps transport and status failures onto the RemoteFailure hierarchy.
    """

    def __init__(
        self,
        settings: Optional[ApiSettings] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self._settings = settings or get_settings().api
        self._session = session
        self._owns_session = session is None

    @property
    def settings(self) -> ApiSettings:
        return self._settings

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._settings.timeout_seconds),
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the underlying session if we created it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "HttpApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def request(
        self,
        method: str,
        path: str,
        operation: str,
        params: Optional[dict[str, str]] = None,
        payload: Optional[dict[str, Any]] = None,
        expect_body: bool = True,
    ) -> Any:
        """
        Perform one request and return the decoded JSON body.

        Raises:
            NotFoundError: 404
            RemoteFailure: Any other non-2xx status
            RemoteUnavailable: Connection errors and timeouts
            MalformedResponse: A 2xx whose body is not JSON
        """
        url = f"{self._settings.base_url}{path}"
        session = self._get_session()

        try:
            async with session.request(method, url, params=params, json=payload) as response:
                if response.status == 404:
                    raise NotFoundError(f"{operation}: not found", status=404)
                if not 200 <= response.status < 300:
                    raise RemoteFailure(
                        f"{operation} failed with status {response.status}",
                        status=response.status,
                    )
                if not expect_body:
                    return None
                try:
                    return await response.json(content_type=None)
                except (json.JSONDecodeError, aiohttp.ContentTypeError) as e:
                    raise MalformedResponse(
                        f"{operation}: response is not JSON ({e})",
                        status=response.status,
                    ) from e
        except aiohttp.ClientError as e:
            logger.warning("remote_unreachable", operation=operation, url=url, error=str(e))
            raise RemoteUnavailable(f"{operation}: could not reach {url} ({e})") from e
        except asyncio.TimeoutError as e:
            logger.warning("remote_timeout", operation=operation, url=url)
            raise RemoteUnavailable(f"{operation}: timed out calling {url}") from e


def _parse_one(payload: Any, parser: Callable[[Any], T], operation: str) -> T:
    try:
        return parser(payload)
    except ValueError as e:
        raise MalformedResponse(f"{operation}: {e}") from e


def _parse_many(payload: Any, parser: Callable[[Any], T], operation: str) -> list[T]:
    if not isinstance(payload, list):
        raise MalformedResponse(f"{operation}: expected a list, got {type(payload).__name__}")
    return [_parse_one(item, parser, operation) for item in payload]


class HttpLedgerRemote(LedgerRemoteInterface):
    """Ledger API over HTTP."""

    def __init__(self, client: HttpApiClient):
        self._client = client
        self._path = client.settings.records_path

    async def list_records(self, owner_id: str) -> list[ExpenseRecord]:
        payload = await self._client.request(
            "GET", self._path, "list_records", params={"ownerId": owner_id},
        )
        return _parse_many(payload, record_from_wire, "list_records")

    async def list_all_records(self) -> list[ExpenseRecord]:
        payload = await self._client.request("GET", self._path, "list_all_records")
        return _parse_many(payload, record_from_wire, "list_all_records")

    async def create_record(
        self,
        draft: ExpenseInput,
        month: str,
        owner_id: str,
    ) -> ExpenseRecord:
        payload = await self._client.request(
            "POST",
            self._path,
            "create_record",
            payload=record_to_wire(draft, month=month, owner_id=owner_id),
        )
        return _parse_one(payload, record_from_wire, "create_record")

    async def replace_record(self, record: ExpenseRecord) -> ExpenseRecord:
        payload = await self._client.request(
            "PUT",
            f"{self._path}/{record.id}",
            "replace_record",
            payload=record_to_wire(record),
        )
        return _parse_one(payload, record_from_wire, "replace_record")

    async def delete_record(self, record_id: str) -> None:
        await self._client.request(
            "DELETE", f"{self._path}/{record_id}", "delete_record", expect_body=False,
        )


class HttpIdentityRemote(IdentityRemoteInterface):
    """Identity API over HTTP."""

    def __init__(self, client: HttpApiClient):
        self._client = client
        self._path = client.settings.identities_path

    async def find_by_credentials(self, email: str, password: str) -> list[Identity]:
        payload = await self._client.request(
            "GET",
            self._path,
            "find_by_credentials",
            params={"email": email, "password": password},
        )
        return _parse_many(payload, identity_from_wire, "find_by_credentials")

    async def create_identity(
        self,
        profile: RegistrationProfile,
        role: Role = Role.STANDARD,
    ) -> Identity:
        payload = await self._client.request(
            "POST", self._path, "create_identity", payload=profile_to_wire(profile, role),
        )
        return _parse_one(payload, identity_from_wire, "create_identity")

    async def list_identities(self) -> list[Identity]:
        payload = await self._client.request("GET", self._path, "list_identities")
        return _parse_many(payload, identity_from_wire, "list_identities")

    async def update_identity(self, identity_id: str, changes: dict[str, Any]) -> Identity:
        payload = await self._client.request(
            "PUT",
            f"{self._path}/{identity_id}",
            "update_identity",
            payload={**changes, "id": identity_id},
        )
        return _parse_one(payload, identity_from_wire, "update_identity")

    async def delete_identity(self, identity_id: str) -> None:
        await self._client.request(
            "DELETE", f"{self._path}/{identity_id}", "delete_identity", expect_body=False,
        )
