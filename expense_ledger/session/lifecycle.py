"""
Session Lifecycle

Owns who is logged in, their opaque token and when the session expires.

States:
    NoSession --(login | register | restore)--> ActiveSession
    ActiveSession --(logout | expiry detected)--> NoSession

A failed login or registration changes nothing.

Expiration slides: every renewal pushes ``expires_at`` to now + TTL. Renewal
happens right after a session is established, on a timer every TTL/2, and
whenever the app becomes visible again. The timer fires whether or not the
app is visible.

DESIGN DECISION: One instance per process, passed explicitly to every
consumer. Listeners are told about every identity change so that the
ledger cache can be replaced wholesale.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import uuid4

from expense_ledger.audit import AuditLogger
from expense_ledger.config import SessionSettings, get_settings
from expense_ledger.models.identity import (
    Credentials,
    Identity,
    RegistrationProfile,
    Role,
    SessionRecord,
)
from expense_ledger.services.remote import IdentityRemoteInterface, RemoteFailure
from expense_ledger.session.store import (
    Clock,
    DurableSessionStore,
    TokenMirror,
    utc_now,
)


class SessionError(Exception):
    """Base exception for session operations."""
    pass


class InvalidCredentials(SessionError):
    """No identity matches the given email and password."""
    pass


class CreationError(SessionError):
    """The Identity API refused to create the account."""
    pass


class MalformedSessionState(SessionError):
    """The durable session record is corrupt or incomplete."""
    pass


ADMIN_IDENTITY = Identity(
    id="0",
    display_name="Administrator",
    email="admin@local",
    role=Role.ADMIN,
)

IdentityListener = Callable[[Optional[Identity]], None]


def new_token() -> str:
    return str(uuid4())


class SessionLifecycle:
    """
    Identity, token and sliding expiration for one process.
    """

    def __init__(
        self,
        identity_remote: IdentityRemoteInterface,
        durable_store: DurableSessionStore,
        token_mirror: TokenMirror,
        settings: Optional[SessionSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Clock = utc_now,
        token_factory: Callable[[], str] = new_token,
    ):
        self._identity_remote = identity_remote
        self._durable = durable_store
        self._mirror = token_mirror
        self._settings = settings or get_settings().session
        self._audit = audit_logger or AuditLogger()
        self._clock = clock
        self._token_factory = token_factory
        self._ttl = timedelta(seconds=self._settings.ttl_seconds)

        self._identity: Optional[Identity] = None
        self._token: Optional[str] = None
        self._expires_at: Optional[datetime] = None

        # Bumped on every establish/logout; a renewal tick from an older
        # generation must not touch the current session.
        self._generation = 0
        self._renewal_task: Optional[asyncio.Task] = None
        self._listeners: list[IdentityListener] = []
        self.loading = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def expires_at(self) -> Optional[datetime]:
        return self._expires_at

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    @property
    def is_authenticated(self) -> bool:
        return self._identity is not None and self._token is not None

    @property
    def is_admin(self) -> bool:
        return self._identity is not None and self._identity.is_admin

    @property
    def renewal_active(self) -> bool:
        return self._renewal_task is not None and not self._renewal_task.done()

    def subscribe(self, listener: IdentityListener) -> None:
        """Call ``listener`` with the new identity (or None) on every change."""
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in self._listeners:
            listener(self._identity)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def login(self, credentials: Credentials) -> Identity:
        """
        Authenticate and establish a session.

        Raises:
            InvalidCredentials: No identity matches
            RemoteFailure: The Identity API could not answer
        """
        self.loading = True
        try:
            if (
                credentials.email == self._settings.admin_login
                and credentials.password == self._settings.admin_password
            ):
                identity = ADMIN_IDENTITY
                via = "admin_sentinel"
            else:
                matches = await self._identity_remote.find_by_credentials(
                    credentials.email, credentials.password,
                )
                if not matches:
                    self._audit.log_login_failed(credentials.email, "no matching identity")
                    raise InvalidCredentials("Invalid email or password")
                if len(matches) > 1:
                    # Observed behavior of the Identity API; kept as is
                    self._audit.log_ambiguous_credentials(
                        credentials.email, len(matches), matches[0].id,
                    )
                identity = matches[0]
                via = "login"
        finally:
            self.loading = False

        self._establish(identity, via)
        return identity

    async def register(self, profile: RegistrationProfile) -> Identity:
        """
        Create a standard identity and establish a session for it.

        Raises:
            CreationError: The Identity API did not create the account
        """
        self.loading = True
        try:
            identity = await self._identity_remote.create_identity(profile, Role.STANDARD)
        except RemoteFailure as e:
            self._audit.log_remote_failure("register", str(e), e.status)
            raise CreationError("Could not create the account") from e
        finally:
            self.loading = False

        self._establish(identity, "register")
        return identity

    async def restore(self) -> Optional[Identity]:
        """
        Pick up the session left by a previous run, once per process start.

        Anything wrong with the durable record (absent, corrupt, no usable
        expiry, expired) clears the session completely.
        """
        try:
            record = self._read_durable()
        except MalformedSessionState as e:
            self._audit.log_session_corrupt(str(e))
            self._clear()
            return None

        if record is None:
            self._clear()
            return None

        if record.expires_at <= self._clock():
            self._audit.log_session_expired(record.identity.id, "expired while stopped")
            self._clear()
            return None

        self._stop_renewal_timer()
        self._generation += 1
        self._identity = record.identity
        self._token = record.token
        self._expires_at = record.expires_at

        self._audit.log_session_restored(record.identity.id, record.expires_at)
        self._start_renewal_timer()
        # Re-derives the mirror from the durable token
        self.renew(trigger="restore")
        self._notify()
        return self._identity

    def renew(self, trigger: str = "manual") -> None:
        """
        Slide the expiry to now + TTL and rewrite both stores.

        A session found already expired is ended instead.
        """
        if not self.is_authenticated:
            return

        now = self._clock()
        if self._expires_at is None or now >= self._expires_at:
            self._audit.log_session_expired(self._identity.id, f"expired before {trigger} renewal")
            self.logout()
            return

        self._expires_at = now + self._ttl
        self._persist()
        self._audit.log_session_renewed(self._identity.id, self._expires_at, trigger)

    def on_visibility_change(self, visible: bool) -> None:
        """Renew when the app comes back to the foreground."""
        if visible:
            self.renew(trigger="visibility")

    def logout(self) -> None:
        """End the session. Safe to call without one."""
        had_session = self._identity is not None or self._token is not None
        identity_id = self._identity.id if self._identity else None
        self._clear()
        if had_session:
            self._audit.log_session_ended(identity_id)
            self._notify()

    def stop(self) -> None:
        """Stop the renewal timer at shutdown; the durable record stays."""
        self._stop_renewal_timer()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _establish(self, identity: Identity, via: str) -> None:
        self._stop_renewal_timer()
        self._generation += 1
        self._identity = identity
        self._token = self._token_factory()
        self._expires_at = self._clock() + self._ttl
        self._persist()

        self._audit.log_session_established(identity.id, identity.role.value, via)
        self._start_renewal_timer()
        self.renew(trigger=via)
        self._notify()

    def _clear(self) -> None:
        self._stop_renewal_timer()
        self._generation += 1
        self._identity = None
        self._token = None
        self._expires_at = None
        self._durable.clear()
        self._mirror.clear()

    def _persist(self) -> None:
        record = SessionRecord(
            identity=self._identity,
            token=self._token,
            expires_at=self._expires_at,
        )
        self._durable.write(record.model_dump_json())
        self._mirror.set(self._token, self._ttl)

    def _read_durable(self) -> Optional[SessionRecord]:
        try:
            raw = self._durable.read()
        except (OSError, ValueError) as e:
            raise MalformedSessionState(f"unreadable session record: {e}") from e
        if raw is None:
            return None
        try:
            return SessionRecord.model_validate_json(raw)
        except ValueError as e:
            raise MalformedSessionState(f"invalid session record: {e}") from e

    def _start_renewal_timer(self) -> None:
        loop = asyncio.get_running_loop()
        self._renewal_task = loop.create_task(self._renewal_loop(self._generation))

    def _stop_renewal_timer(self) -> None:
        if self._renewal_task is not None and not self._renewal_task.done():
            self._renewal_task.cancel()
        self._renewal_task = None

    async def _renewal_loop(self, generation: int) -> None:
        interval = self._ttl.total_seconds() / 2
        while True:
            await asyncio.sleep(interval)
            if generation != self._generation:
                return
            self.renew(trigger="timer")
            if generation != self._generation:
                return
