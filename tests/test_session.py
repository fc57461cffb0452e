"""Tests for the session lifecycle and its stores."""

import asyncio
import json
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from expense_ledger.config import SessionSettings
from expense_ledger.models.identity import Credentials, Identity, RegistrationProfile, SessionRecord
from expense_ledger.session import (
    ADMIN_IDENTITY,
    CookieTokenMirror,
    CreationError,
    InvalidCredentials,
    JsonFileSessionStore,
    MemorySessionStore,
    SessionLifecycle,
)
from expense_ledger.services.remote import InMemoryIdentityRemote, RemoteFailure, seed_identity


def stored_record(identity: Identity, expires_at: datetime, token: str = "tok-1") -> str:
    return SessionRecord(identity=identity, token=token, expires_at=expires_at).model_dump_json()


def short_ttl_session(identity_remote, audit) -> SessionLifecycle:
    return SessionLifecycle(
        identity_remote,
        MemorySessionStore(),
        CookieTokenMirror(),
        settings=SessionSettings(ttl_seconds=0.2),
        audit_logger=audit,
    )


def timer_renewals(audit) -> list:
    return [
        e for e in audit.events
        if e.event_type.value == "session_renewed" and e.details["trigger"] == "timer"
    ]


class TestLogin:
    """Tests for login and registration."""

    def test_login_establishes_session(self, session, durable_store, token_mirror, clock):
        """Test a successful login persists both stores."""
        identity = asyncio.run(session.login(Credentials(email="alice@example.com", password="secret1")))
        assert identity.id == "2"
        assert session.is_authenticated
        assert session.expires_at == clock() + timedelta(seconds=1800)
        assert token_mirror.get() == session.token
        assert json.loads(durable_store.text)["token"] == session.token

    def test_invalid_credentials(self, session, durable_store, audit):
        """Test a failed login changes nothing."""
        with pytest.raises(InvalidCredentials):
            asyncio.run(session.login(Credentials(email="alice@example.com", password="wrong")))
        assert session.identity is None
        assert durable_store.text is None
        assert any(e.event_type.value == "login_failed" for e in audit.events)

    def test_admin_sentinel_skips_remote(self, session, identity_remote):
        """Test the administrator pair never reaches the Identity API."""
        identity = asyncio.run(session.login(Credentials(email="admin", password="1234")))
        assert identity == ADMIN_IDENTITY
        assert session.is_admin
        assert identity_remote.calls == []

    def test_first_match_wins(self, durable_store, token_mirror, session_settings, audit, clock):
        """Test duplicated credentials pick the first identity and log it."""
        remote = InMemoryIdentityRemote([
            seed_identity(Identity(id="5", email="dup@x.com"), "pw1234"),
            seed_identity(Identity(id="6", email="dup@x.com"), "pw1234"),
        ])
        session = SessionLifecycle(
            remote, durable_store, token_mirror, session_settings, audit, clock=clock,
        )
        identity = asyncio.run(session.login(Credentials(email="dup@x.com", password="pw1234")))
        assert identity.id == "5"
        assert any(e.event_type.value == "ambiguous_credentials" for e in audit.events)

    def test_remote_failure_propagates(self, session, identity_remote):
        """Test an unreachable Identity API is reported, not hidden."""
        identity_remote.fail_operations.add("find_by_credentials")
        with pytest.raises(RemoteFailure):
            asyncio.run(session.login(Credentials(email="alice@example.com", password="secret1")))
        assert session.identity is None

    def test_register_creates_standard_identity(self, session):
        """Test registration establishes a session for the new identity."""
        profile = RegistrationProfile(
            display_name="Carol", email="carol@x.com", password="secret9",
            monthly_income=Decimal("1500"),
        )
        identity = asyncio.run(session.register(profile))
        assert identity.role.value == "standard"
        assert identity.monthly_income == Decimal("1500")
        assert session.identity == identity

    def test_register_failure(self, session, identity_remote, durable_store):
        """Test a refused registration raises CreationError."""
        identity_remote.fail_operations.add("create_identity")
        profile = RegistrationProfile(display_name="C", email="c@x.com", password="secret9")
        with pytest.raises(CreationError):
            asyncio.run(session.register(profile))
        assert session.identity is None
        assert durable_store.text is None

    def test_listeners_hear_identity_changes(self, session):
        """Test subscribers receive the new identity and then None."""
        seen = []
        session.subscribe(seen.append)

        async def scenario():
            await session.login(Credentials(email="alice@example.com", password="secret1"))
            session.logout()

        asyncio.run(scenario())
        assert [i.id if i else None for i in seen] == ["2", None]


class TestRestore:
    """Tests for restoring the session at process start."""

    def test_restore_valid_record(self, session, durable_store, token_mirror, alice, clock):
        """Test a valid durable record restores and re-derives the mirror."""
        durable_store.text = stored_record(alice, clock() + timedelta(minutes=10))
        identity = asyncio.run(session.restore())
        assert identity == alice
        assert session.token == "tok-1"
        assert token_mirror.get() == "tok-1"
        assert session.expires_at == clock() + timedelta(seconds=1800)

    def test_restore_expired_clears_both_stores(self, session, durable_store, token_mirror, alice, clock):
        """Test an expired record ends the session everywhere."""
        token_mirror.set("tok-1", timedelta(hours=1))
        durable_store.text = stored_record(alice, clock() - timedelta(seconds=1))
        assert asyncio.run(session.restore()) is None
        assert durable_store.text is None
        assert token_mirror.get() is None
        assert session.identity is None

    def test_restore_corrupt_record(self, session, durable_store, audit):
        """Test unreadable state is treated as no session."""
        durable_store.text = "{not json"
        assert asyncio.run(session.restore()) is None
        assert durable_store.text is None
        assert any(e.event_type.value == "session_corrupt" for e in audit.events)

    def test_restore_record_without_expiry(self, session, durable_store, alice):
        """Test a record missing its expiry is cleared."""
        durable_store.text = json.dumps({"identity": alice.model_dump(mode="json"), "token": "t"})
        assert asyncio.run(session.restore()) is None
        assert durable_store.text is None

    def test_restore_without_record(self, session):
        """Test nothing stored means no session."""
        assert asyncio.run(session.restore()) is None
        assert session.is_authenticated is False


class TestRenewal:
    """Tests for sliding expiration."""

    def test_renew_slides_expiry(self, session, clock):
        """Test renewal moves the expiry to now + TTL."""

        async def scenario():
            await session.login(Credentials(email="alice@example.com", password="secret1"))
            clock.advance(minutes=10)
            session.renew()
            return session.expires_at

        assert asyncio.run(scenario()) == clock() + timedelta(seconds=1800)

    def test_renew_after_expiry_logs_out(self, session, clock, durable_store):
        """Test a session found expired is ended instead of renewed."""

        async def scenario():
            await session.login(Credentials(email="alice@example.com", password="secret1"))
            clock.advance(seconds=1801)
            session.on_visibility_change(True)

        asyncio.run(scenario())
        assert session.identity is None
        assert durable_store.text is None

    def test_hidden_does_not_renew(self, session, clock):
        """Test becoming hidden leaves the expiry alone."""

        async def scenario():
            await session.login(Credentials(email="alice@example.com", password="secret1"))
            before = session.expires_at
            clock.advance(minutes=5)
            session.on_visibility_change(False)
            return before

        before = asyncio.run(scenario())
        assert session.expires_at == before

    def test_renew_without_session_is_noop(self, session, durable_store):
        """Test renewing nothing writes nothing."""
        session.renew()
        assert durable_store.text is None

    def test_timer_renews_and_stops_on_logout(self, identity_remote, audit):
        """Test the periodic renewal runs and is cancelled by logout."""
        session = short_ttl_session(identity_remote, audit)

        async def scenario():
            await session.login(Credentials(email="alice@example.com", password="secret1"))
            assert session.renewal_active
            await asyncio.sleep(0.25)
            task = session._renewal_task
            session.logout()
            await asyncio.sleep(0)
            return task

        task = asyncio.run(scenario())
        assert timer_renewals(audit)
        assert task.cancelled()
        assert session.renewal_active is False

    def test_identity_switch_leaves_one_timer(self, identity_remote, audit):
        """Test logging in as someone else cancels the previous timer."""
        session = short_ttl_session(identity_remote, audit)

        async def scenario():
            await session.login(Credentials(email="alice@example.com", password="secret1"))
            first = session._renewal_task
            await session.login(Credentials(email="bob@example.com", password="secret2"))
            second = session._renewal_task
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            live = [t for t in asyncio.all_tasks() if t is not asyncio.current_task()]
            session.logout()
            return first, second, live

        first, second, live = asyncio.run(scenario())
        assert first is not second
        assert first.cancelled()
        assert live == [second]

    def test_timer_fires_while_hidden(self, identity_remote, audit):
        """Test the periodic renewal keeps running in the background."""
        session = short_ttl_session(identity_remote, audit)

        async def scenario():
            await session.login(Credentials(email="alice@example.com", password="secret1"))
            session.on_visibility_change(False)
            await asyncio.sleep(0.25)
            session.logout()

        asyncio.run(scenario())
        assert timer_renewals(audit)

    def test_stale_tick_does_not_renew(self, identity_remote, audit):
        """Test a tick scheduled for an earlier session is ignored."""
        session = short_ttl_session(identity_remote, audit)

        async def scenario():
            await session.login(Credentials(email="alice@example.com", password="secret1"))
            stale_generation = session._generation
            await session.login(Credentials(email="bob@example.com", password="secret2"))
            session.stop()
            expires_at = session.expires_at
            await session._renewal_loop(stale_generation)
            return expires_at

        expires_at = asyncio.run(scenario())
        assert timer_renewals(audit) == []
        assert session.expires_at == expires_at
        assert session.identity.id == "3"

    def test_logout_is_idempotent(self, session, audit):
        """Test logging out twice is harmless."""
        session.logout()
        session.logout()
        assert not any(e.event_type.value == "session_ended" for e in audit.events)


class TestStores:
    """Tests for the durable store and the token mirror."""

    def test_json_file_store(self, tmp_path):
        """Test write, read and clear on disk."""
        store = JsonFileSessionStore(tmp_path / "nested" / "session.json")
        assert store.read() is None
        store.write('{"a": 1}')
        assert store.read() == '{"a": 1}'
        store.clear()
        store.clear()
        assert store.read() is None

    def test_mirror_expires_with_max_age(self, clock):
        """Test the mirror forgets the token after its max-age."""
        mirror = CookieTokenMirror("ledger_token", clock=clock)
        mirror.set("abc", timedelta(seconds=60))
        assert mirror.get() == "abc"
        clock.advance(seconds=61)
        assert mirror.get() is None

    def test_mirror_header(self, clock):
        """Test the rendered Set-Cookie header."""
        mirror = CookieTokenMirror("ledger_token", clock=clock)
        mirror.set("abc", timedelta(seconds=1800))
        header = mirror.header()
        assert header.startswith("ledger_token=abc")
        assert "Max-Age=1800" in header
        mirror.clear()
        assert "Max-Age=0" in mirror.header()
        assert mirror.get() is None
