"""
Abstract Remote Collaborator Interfaces

DESIGN DECISION: The ledger and identity data live behind a remote API.
We define abstract interfaces for the calls we make so that:
1. The HTTP API can be swapped for another backend
2. In-memory implementations can stand in during tests
3. Business logic never sees transport details or raw payloads

Every method either returns normalized models or raises a RemoteFailure.
Implementations never retry: a failed call is reported once and the
caller decides what to show the user.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from expense_ledger.models.identity import Identity, RegistrationProfile, Role
from expense_ledger.models.record import ExpenseInput, ExpenseRecord


class LedgerRemoteInterface(ABC):
    """
    Abstract interface for the Ledger API (records scoped by owner).
    """

    @abstractmethod
    async def list_records(self, owner_id: str) -> list[ExpenseRecord]:
        """
        Fetch every record owned by ``owner_id``.

        Raises:
            RemoteFailure: On any non-success response
        """
        pass

    @abstractmethod
    async def list_all_records(self) -> list[ExpenseRecord]:
        """Fetch every record regardless of owner (administration only)."""
        pass

    @abstractmethod
    async def create_record(
        self,
        draft: ExpenseInput,
        month: str,
        owner_id: str,
    ) -> ExpenseRecord:
        """
        Submit a new record (without id).

        Returns:
            The created record carrying its server-assigned id
        """
        pass

    @abstractmethod
    async def replace_record(self, record: ExpenseRecord) -> ExpenseRecord:
        """
        Replace a stored record wholesale.

        Raises:
            NotFoundError: If the record doesn't exist
            RemoteFailure: On any other non-success response
        """
        pass

    @abstractmethod
    async def delete_record(self, record_id: str) -> None:
        """
        Delete a record by id.

        Raises:
            NotFoundError: If the record doesn't exist
        """
        pass


class IdentityRemoteInterface(ABC):
    """
    Abstract interface for the Identity API.
    """

    @abstractmethod
    async def find_by_credentials(self, email: str, password: str) -> list[Identity]:
        """
        Look up identities matching an email and password.

        Returns:
            Matching identities; zero or one are expected
        """
        pass

    @abstractmethod
    async def create_identity(
        self,
        profile: RegistrationProfile,
        role: Role = Role.STANDARD,
    ) -> Identity:
        """Create an identity and return it with its assigned id."""
        pass

    @abstractmethod
    async def list_identities(self) -> list[Identity]:
        """List every identity (administration only)."""
        pass

    @abstractmethod
    async def update_identity(self, identity_id: str, changes: dict[str, Any]) -> Identity:
        """
        Replace an identity's fields.

        Args:
            identity_id: Target identity
            changes: Canonical wire fields to store (password only if changing)
        """
        pass

    @abstractmethod
    async def delete_identity(self, identity_id: str) -> None:
        """Delete an identity by id."""
        pass


class RemoteFailure(Exception):
    """Non-success response from a remote collaborator."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class NotFoundError(RemoteFailure):
    """Entity not found on the remote side."""
    pass


class RemoteUnavailable(RemoteFailure):
    """The remote collaborator could not be reached at all."""
    pass


class MalformedResponse(RemoteFailure):
    """The remote answered successfully with a payload we cannot use."""
    pass
