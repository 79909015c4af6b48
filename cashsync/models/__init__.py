from .user import User
from .expense import Expense, CURRENCIES, CATEGORIES, OTHER_CATEGORY
from .share import ShareLink, JoinRecord

__all__ = ["User", "Expense", "ShareLink", "JoinRecord", "CURRENCIES", "CATEGORIES", "OTHER_CATEGORY"]
