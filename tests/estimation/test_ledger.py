"""Tests for ShadowLedger."""
from decimal import Decimal

import pytest

from src.estimation.ledger import ShadowLedger


class TestShadowLedger:
    def test_seeds_balances_as_decimal(self):
        ledger = ShadowLedger({"u1": 100, "u2": "12.50", "u3": 0.5})

        assert ledger.balance("u1") == Decimal("100")
        assert ledger.balance("u2") == Decimal("12.50")
        assert ledger.balance("u3") == Decimal("0.5")

    def test_unknown_user_has_zero(self):
        ledger = ShadowLedger({})

        assert ledger.balance("ghost") == Decimal("0")
        assert ledger.can_afford("ghost", Decimal("0"))
        assert not ledger.can_afford("ghost", Decimal("0.01"))

    def test_debit_reduces_balance(self):
        ledger = ShadowLedger({"u1": 100})

        remaining = ledger.debit("u1", Decimal("40"))

        assert remaining == Decimal("60")
        assert ledger.balance("u1") == Decimal("60")

    def test_debit_exact_balance_allowed(self):
        ledger = ShadowLedger({"u1": 40})

        assert ledger.debit("u1", Decimal("40")) == Decimal("0")

    def test_overdraw_raises(self):
        ledger = ShadowLedger({"u1": 10})

        with pytest.raises(ValueError, match="Cannot reserve"):
            ledger.debit("u1", Decimal("10.01"))
        assert ledger.balance("u1") == Decimal("10")

    def test_source_mapping_not_modified(self):
        source = {"u1": Decimal("100")}
        ledger = ShadowLedger(source)

        ledger.debit("u1", Decimal("30"))

        assert source["u1"] == Decimal("100")

    def test_snapshot_is_a_copy(self):
        ledger = ShadowLedger({"u1": 5})

        snapshot = ledger.snapshot()
        snapshot["u1"] = Decimal("999")

        assert ledger.balance("u1") == Decimal("5")
