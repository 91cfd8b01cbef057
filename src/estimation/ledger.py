"""Shadow balance ledger used during one admission run."""
from decimal import Decimal
from typing import Mapping


class ShadowLedger:
    """Private copy of user balances for simulating sequential admission.

    Seeded once from a snapshot and never re-read from the source, so debits
    made here never touch real balances.
    """

    def __init__(self, balances: Mapping[str, Decimal | int | float | str]):
        self._balances: dict[str, Decimal] = {
            user_id: Decimal(str(balance)) for user_id, balance in balances.items()
        }

    def balance(self, user_id: str) -> Decimal:
        """Return the remaining balance; unknown users have nothing."""
        return self._balances.get(user_id, Decimal("0"))

    def can_afford(self, user_id: str, cost: Decimal) -> bool:
        return self.balance(user_id) >= cost

    def debit(self, user_id: str, cost: Decimal) -> Decimal:
        """Reserve ``cost`` for a user and return the new balance.

        Raises:
            ValueError: If the reservation would overdraw the user.
        """
        if not self.can_afford(user_id, cost):
            raise ValueError(
                f"Cannot reserve {cost:.2f} for {user_id}: only {self.balance(user_id):.2f} left"
            )
        remaining = self.balance(user_id) - cost
        self._balances[user_id] = remaining
        return remaining

    def snapshot(self) -> dict[str, Decimal]:
        return dict(self._balances)
