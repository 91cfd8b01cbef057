"""User accounts and live balances."""

from .account_book import AccountBook
from .client import HttpAccountClient
from .models import UserAccount

__all__ = ["AccountBook", "HttpAccountClient", "UserAccount"]
