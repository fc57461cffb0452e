"""
Main Orchestrator for the Expense Ledger

This module ties together the session, the ledger cache and the view
engine and defines the user-facing flows:
1. Session (start -> restore -> load, login, register, logout)
2. Ledger (add, edit, delete expenses)
3. Navigation (month, year, page)

DESIGN DECISION: The orchestrator enforces the boundaries:
- The cache is replaced wholesale on every identity change
- Forms are validated before any remote call
- The snapshot is recomputed after every change, never lazily
- Every failure ends as one visible message, never as an exception
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from expense_ledger.admin import AdminConsole
from expense_ledger.audit import AuditLogger
from expense_ledger.config import LedgerSettings, Settings, get_settings
from expense_ledger.ledger.cache import LedgerCache
from expense_ledger.ledger.views import LedgerSnapshot, LedgerView, format_currency
from expense_ledger.models.identity import Credentials, Identity
from expense_ledger.models.record import ExpenseRecord
from expense_ledger.services.remote import (
    HttpApiClient,
    HttpIdentityRemote,
    HttpLedgerRemote,
    InMemoryIdentityRemote,
    InMemoryLedgerRemote,
    RemoteFailure,
)
from expense_ledger.session import (
    CookieTokenMirror,
    CreationError,
    InvalidCredentials,
    JsonFileSessionStore,
    SessionLifecycle,
)
from expense_ledger.validation import (
    ValidationError,
    validate_expense_input,
    validate_registration,
)


class LedgerApp:
    """
    One running ledger application.

    Owns one session, one ledger cache and one view. ``snapshot`` always
    reflects the latest records, selection and identity.
    """

    def __init__(
        self,
        session: SessionLifecycle,
        cache: LedgerCache,
        view: Optional[LedgerView] = None,
        ledger_settings: Optional[LedgerSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
        admin: Optional[AdminConsole] = None,
        client: Optional[HttpApiClient] = None,
    ):
        self._settings = ledger_settings or get_settings().ledger
        self._session = session
        self._cache = cache
        self._view = view or LedgerView(page_size=self._settings.page_size)
        self._audit = audit_logger or AuditLogger()
        self._admin = admin
        self._client = client
        self._error: Optional[str] = None

        self._snapshot = self._view.refresh(())
        session.subscribe(self._on_identity_changed)
        cache.subscribe(self._recompute)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def session(self) -> SessionLifecycle:
        return self._session

    @property
    def cache(self) -> LedgerCache:
        return self._cache

    @property
    def admin(self) -> Optional[AdminConsole]:
        return self._admin

    @property
    def identity(self) -> Optional[Identity]:
        return self._session.identity

    @property
    def snapshot(self) -> LedgerSnapshot:
        return self._snapshot

    @property
    def error(self) -> Optional[str]:
        """The one message to show, if any."""
        return self._error or self._cache.error

    @property
    def loading(self) -> bool:
        return self._session.loading or self._cache.loading

    def format_amount(self, amount: Decimal) -> str:
        return format_currency(amount, self._settings.currency_symbol)

    def _monthly_income(self) -> Decimal:
        identity = self._session.identity
        return identity.monthly_income if identity is not None else Decimal("0")

    def _recompute(self) -> None:
        self._snapshot = self._view.refresh(self._cache.records, self._monthly_income())

    def _on_identity_changed(self, identity: Optional[Identity]) -> None:
        self._cache.reset(identity)
        self._recompute()

    def _validation_failed(self, error: ValidationError) -> None:
        self._audit.log_validation_failed(error.field, error.message)
        self._error = error.message

    # ------------------------------------------------------------------
    # Session flows
    # ------------------------------------------------------------------

    async def start(self) -> Optional[Identity]:
        """Restore the previous session (if still valid) and load its ledger."""
        identity = await self._session.restore()
        if identity is not None:
            await self._cache.load(identity)
        return identity

    async def login(self, email: str, password: str) -> bool:
        self._begin_action()
        try:
            identity = await self._session.login(Credentials(email=email, password=password))
        except InvalidCredentials:
            self._error = "Invalid email or password."
            return False
        except RemoteFailure as e:
            self._audit.log_remote_failure("login", str(e), e.status)
            self._error = "Could not reach the server. Please try again."
            return False

        await self._cache.load(identity)
        return True

    async def register(
        self,
        display_name: str,
        email: str,
        password: str,
        confirm_password: str,
        income_text: Optional[str] = None,
    ) -> bool:
        self._begin_action()
        try:
            profile = validate_registration(
                display_name, email, password, confirm_password, income_text,
            )
        except ValidationError as e:
            self._validation_failed(e)
            return False

        try:
            identity = await self._session.register(profile)
        except CreationError as e:
            self._error = f"{e}. Please try again."
            return False

        await self._cache.load(identity)
        return True

    def logout(self) -> None:
        self._begin_action()
        self._session.logout()

    def on_visibility_change(self, visible: bool) -> None:
        self._session.on_visibility_change(visible)

    async def reload(self) -> None:
        """Load the current identity's records again."""
        self._begin_action()
        await self._cache.load(self._session.identity)

    # ------------------------------------------------------------------
    # Ledger flows
    # ------------------------------------------------------------------

    def _begin_action(self) -> None:
        # Messages belong to the action that produced them
        self._error = None
        self._cache.clear_error()

    def _owner(self) -> Optional[Identity]:
        identity = self._session.identity
        if identity is None or identity.is_admin:
            self._error = "Log in to manage your expenses."
            return None
        return identity

    async def add_expense(
        self,
        description: str,
        category: str,
        amount_text: str,
        date_text: str = "",
    ) -> Optional[ExpenseRecord]:
        """
        Create an expense for the current identity.

        A blank date files the record under the selected month.
        """
        self._begin_action()
        owner = self._owner()
        if owner is None:
            return None
        try:
            data = validate_expense_input(description, category, amount_text, date_text)
        except ValidationError as e:
            self._validation_failed(e)
            return None

        return await self._cache.create(
            data,
            fallback_month=self._view.state.selected_month,
            owner_id=owner.id,
        )

    def begin_edit(self, record_id: str) -> bool:
        self._begin_action()
        if not self._cache.begin_edit(record_id):
            self._error = "That expense is no longer available."
            return False
        return True

    def cancel_edit(self) -> None:
        self._begin_action()
        self._cache.cancel_edit()

    async def save_edit(
        self,
        description: str,
        category: str,
        amount_text: str,
        date_text: str = "",
    ) -> Optional[ExpenseRecord]:
        """Submit the record being edited with the new field values."""
        self._begin_action()
        record = self._cache.editing_record
        if record is None:
            self._error = "No expense is being edited."
            return None
        try:
            data = validate_expense_input(description, category, amount_text, date_text)
        except ValidationError as e:
            self._validation_failed(e)
            return None

        candidate = record.with_changes(
            description=data.description,
            category=data.category,
            amount=data.amount,
            date=data.date,
        )
        return await self._cache.update(candidate)

    async def delete_expense(self, record_id: str) -> bool:
        self._begin_action()
        return await self._cache.remove(record_id)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def select_month(self, month: str) -> LedgerSnapshot:
        self._begin_action()
        self._view.select_month(month)
        self._recompute()
        return self._snapshot

    def select_year(self, year: int) -> LedgerSnapshot:
        self._begin_action()
        self._view.select_year(year)
        self._recompute()
        return self._snapshot

    def next_page(self) -> LedgerSnapshot:
        self._begin_action()
        self._view.next_page()
        self._recompute()
        return self._snapshot

    def previous_page(self) -> LedgerSnapshot:
        self._begin_action()
        self._view.previous_page()
        self._recompute()
        return self._snapshot

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Stop the renewal timer and release the HTTP session."""
        self._session.stop()
        if self._client is not None:
            await self._client.close()


def create_app(
    settings: Optional[Settings] = None,
    today: Optional[date] = None,
) -> LedgerApp:
    """
    Factory function to create the application.

    Args:
        settings: Settings to use; defaults to ``get_settings()``.
        today: Date used for the initial month/year selection.

    Returns:
        A LedgerApp; call ``await app.start()`` before use.
    """
    settings = settings or get_settings()
    audit_logger = AuditLogger()

    client = None
    if settings.api.backend == "memory":
        ledger_remote = InMemoryLedgerRemote()
        identity_remote = InMemoryIdentityRemote()
    else:
        client = HttpApiClient(settings.api)
        ledger_remote = HttpLedgerRemote(client)
        identity_remote = HttpIdentityRemote(client)

    session = SessionLifecycle(
        identity_remote,
        JsonFileSessionStore(settings.session.durable_path),
        CookieTokenMirror(settings.session.cookie_name),
        settings=settings.session,
        audit_logger=audit_logger,
    )
    cache = LedgerCache(ledger_remote, audit_logger)
    view = LedgerView(today=today, page_size=settings.ledger.page_size)
    admin = AdminConsole(session, identity_remote, ledger_remote, audit_logger)

    return LedgerApp(
        session,
        cache,
        view,
        ledger_settings=settings.ledger,
        audit_logger=audit_logger,
        admin=admin,
        client=client,
    )
