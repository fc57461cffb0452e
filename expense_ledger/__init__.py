"""
Expense Ledger - Source Package

A personal expense ledger backed by a remote records API, with a local
session, a confirm-then-apply record cache and derived monthly and
annual views.

DESIGN PRINCIPLES:
1. The remote API is authoritative
2. Month tags are derived from dates, never typed in
3. Fail visibly, never partially
4. Every session and ledger change is logged
5. Remote backends are swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Ledger Team"
