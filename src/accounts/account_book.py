"""In-memory book of user accounts and their live balances."""
import logging
from decimal import Decimal

from src.accounts.models import UserAccount


logger = logging.getLogger(__name__)


class AccountBook:
    """Holds the live view of user balances.

    Balances only change through settlement reports from the backend; the
    engine never debits accounts itself.
    """

    def __init__(self, accounts: list[UserAccount] | None = None):
        self._accounts: dict[str, UserAccount] = {}
        for account in accounts or []:
            self._accounts[account.id] = account

    @property
    def accounts(self) -> list[UserAccount]:
        return list(self._accounts.values())

    def get(self, user_id: str) -> UserAccount | None:
        return self._accounts.get(user_id)

    def replace_all(self, accounts: list[UserAccount]) -> None:
        """Replace the book with a freshly fetched account list."""
        self._accounts = {account.id: account for account in accounts}

    def snapshot(self) -> dict[str, Decimal]:
        """Return a detached ``{user_id: balance}`` copy."""
        return {user_id: account.balance for user_id, account in self._accounts.items()}

    def apply_settlement(self, user_id: str, current_balance: Decimal) -> None:
        """Apply a server-reported balance after a scenario settles.

        Unknown users are ignored; the backend is the source of truth and the
        next account refresh will pick them up.
        """
        account = self._accounts.get(user_id)
        if account is None:
            logger.debug(f"Settlement for unknown user {user_id} ignored")
            return

        logger.info(f"Balance for {user_id}: {account.balance:.2f} -> {current_balance:.2f}")
        account.balance = current_balance
