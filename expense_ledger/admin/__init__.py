"""Administration package."""

from expense_ledger.admin.console import AdminConsole, PermissionDenied, require_admin

__all__ = ["AdminConsole", "PermissionDenied", "require_admin"]
