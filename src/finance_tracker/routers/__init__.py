"""API routers."""

from . import budgets, savings

__all__ = ["budgets", "savings"]
