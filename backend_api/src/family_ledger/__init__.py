"""Family Ledger API: shared family expense, income and commitment tracking."""

__version__ = "0.1.0"
