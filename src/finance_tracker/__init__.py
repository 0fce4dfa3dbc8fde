"""Personal finance backend: budgets, savings ledger and budget-to-savings transfers."""

__version__ = "0.1.0"
