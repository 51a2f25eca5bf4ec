from .categories import DEFAULT_CATEGORIES, CategoryStore
from .families import FamilyStore
from .ledger import ExpenseStore, FutureExpenseStore, IncomeStore, month_of
from .users import UserStore

__all__ = [
    "DEFAULT_CATEGORIES",
    "CategoryStore",
    "ExpenseStore",
    "FamilyStore",
    "FutureExpenseStore",
    "IncomeStore",
    "UserStore",
    "month_of",
]
