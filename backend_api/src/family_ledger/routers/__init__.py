from .analytics import analytics_router
from .auth import auth_router
from .categories import categories_router
from .expenses import expenses_router
from .families import families_router
from .future_expenses import future_expenses_router
from .income import income_router
from .users import users_router

__all__ = [
    "analytics_router",
    "auth_router",
    "categories_router",
    "expenses_router",
    "families_router",
    "future_expenses_router",
    "income_router",
    "users_router",
]
