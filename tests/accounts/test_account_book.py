"""Tests for AccountBook and HttpAccountClient."""
from decimal import Decimal

import httpx
import pytest

from src.accounts.account_book import AccountBook
from src.accounts.client import HttpAccountClient
from src.accounts.models import UserAccount
from src.config.backend import BackendConfig


def make_account(user_id: str = "u1", balance: str = "100") -> UserAccount:
    """Create a UserAccount for testing."""
    return UserAccount(id=user_id, address=f"addr-{user_id}", balance=Decimal(balance))


class TestUserAccount:
    def test_from_payload(self):
        account = UserAccount.from_payload(
            {"id": 7, "address": "raid1xyz", "balance": 12.5, "role": "admin", "name": "Ops"}
        )

        assert account.id == "7"
        assert account.address == "raid1xyz"
        assert account.balance == Decimal("12.5")
        assert account.role == "admin"
        assert account.name == "Ops"

    def test_from_payload_defaults(self):
        account = UserAccount.from_payload({"id": "u1"})

        assert account.balance == Decimal("0")
        assert account.role == "client"
        assert account.name is None


class TestAccountBook:
    def test_snapshot_is_detached(self):
        book = AccountBook([make_account("u1", "100")])

        snapshot = book.snapshot()
        snapshot["u1"] = Decimal("0")

        assert book.get("u1").balance == Decimal("100")

    def test_apply_settlement_overwrites_balance(self):
        book = AccountBook([make_account("u1", "100")])

        book.apply_settlement("u1", Decimal("55"))

        assert book.get("u1").balance == Decimal("55")

    def test_apply_settlement_unknown_user_ignored(self):
        book = AccountBook([make_account("u1", "100")])

        book.apply_settlement("ghost", Decimal("1"))

        assert book.get("ghost") is None
        assert book.snapshot() == {"u1": Decimal("100")}

    def test_replace_all(self):
        book = AccountBook([make_account("u1")])

        book.replace_all([make_account("u2", "5")])

        assert [a.id for a in book.accounts] == ["u2"]
        assert book.get("u1") is None


class TestHttpAccountClient:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"users": [{"id": "u1", "address": "a", "balance": 10}]},
            [{"id": "u1", "address": "a", "balance": 10}],
        ],
    )
    async def test_fetch_users(self, body):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/economy/users"
            return httpx.Response(200, json=body)

        transport = httpx.MockTransport(handler)
        async with httpx.AsyncClient(base_url="http://backend", transport=transport) as client:
            users = await HttpAccountClient(BackendConfig(base_url="http://backend"), client).fetch_users()

        assert len(users) == 1
        assert users[0].id == "u1"
        assert users[0].balance == Decimal("10")

    @pytest.mark.asyncio
    async def test_fetch_users_error_status_raises(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        async with httpx.AsyncClient(base_url="http://backend", transport=transport) as client:
            with pytest.raises(httpx.HTTPStatusError):
                await HttpAccountClient(BackendConfig(), client).fetch_users()
