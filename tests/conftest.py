"""
Shared fixtures.

No real API calls in tests: remotes and stores are the in-memory
implementations and time comes from ``FakeClock``.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from expense_ledger.audit import AuditLogger
from expense_ledger.config import SessionSettings
from expense_ledger.models.identity import Identity, Role
from expense_ledger.models.record import ExpenseRecord
from expense_ledger.services.remote import (
    InMemoryIdentityRemote,
    InMemoryLedgerRemote,
    seed_identity,
)
from expense_ledger.session import CookieTokenMirror, MemorySessionStore, SessionLifecycle


class FakeClock:
    """A clock that only moves when told to."""

    def __init__(self, start: datetime = datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_record(
    record_id: str,
    date: str = "2024-06-10",
    month: str = "6",
    amount: str = "10",
    owner_id: str = "2",
    description: str = "Item",
) -> ExpenseRecord:
    return ExpenseRecord(
        id=record_id,
        description=description,
        category="Food",
        amount=Decimal(amount),
        date=date,
        month=month,
        owner_id=owner_id,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def audit() -> AuditLogger:
    return AuditLogger(keep_events=True)


@pytest.fixture
def alice() -> Identity:
    return Identity(
        id="2",
        display_name="Alice",
        email="alice@example.com",
        role=Role.STANDARD,
        monthly_income=Decimal("1000"),
    )


@pytest.fixture
def bob() -> Identity:
    return Identity(id="3", display_name="Bob", email="bob@example.com")


@pytest.fixture
def identity_remote(alice, bob) -> InMemoryIdentityRemote:
    return InMemoryIdentityRemote([
        seed_identity(alice, "secret1"),
        seed_identity(bob, "secret2"),
    ])


@pytest.fixture
def ledger_remote() -> InMemoryLedgerRemote:
    return InMemoryLedgerRemote()


@pytest.fixture
def session_settings() -> SessionSettings:
    return SessionSettings(ttl_seconds=1800)


@pytest.fixture
def durable_store() -> MemorySessionStore:
    return MemorySessionStore()


@pytest.fixture
def token_mirror(clock) -> CookieTokenMirror:
    return CookieTokenMirror("ledger_token", clock=clock)


@pytest.fixture
def session(identity_remote, durable_store, token_mirror, session_settings, audit, clock):
    return SessionLifecycle(
        identity_remote,
        durable_store,
        token_mirror,
        settings=session_settings,
        audit_logger=audit,
        clock=clock,
    )
