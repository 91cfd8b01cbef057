"""Data models for user accounts."""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any


@dataclass
class UserAccount:
    """A client account that pays for scenario execution.

    Attributes:
        id: Account id referenced by scenarios.
        address: Wallet address on the test network.
        balance: Token balance as last reported by the backend.
        role: "admin" or "client".
        name: Optional display name.
    """

    id: str
    address: str
    balance: Decimal
    role: str = "client"
    name: str | None = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "UserAccount":
        return cls(
            id=str(data["id"]),
            address=data.get("address", ""),
            balance=Decimal(str(data.get("balance", 0))),
            role=data.get("role", "client"),
            name=data.get("name"),
        )
