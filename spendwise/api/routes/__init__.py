"""HTTP routes, grouped by area."""

from spendwise.api.routes import admin, auth, intel, transactions

__all__ = ["admin", "auth", "intel", "transactions"]
