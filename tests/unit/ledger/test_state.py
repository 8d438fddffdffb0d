"""Tests for ledger entry state and its persisted tag."""

import pytest

from aqua.constants import DOCKED_TAG, MAX_AMOUNT, UNREGISTERED_TAG
from aqua.ledger import BalanceEntry, EntryStatus


class TestBalanceEntry:
    """Tests for BalanceEntry validation."""

    def test_default_is_unregistered(self):
        """A fresh entry is UNREGISTERED with zero amount."""
        entry = BalanceEntry()
        assert entry.status is EntryStatus.UNREGISTERED
        assert entry.amount == 0
        assert not entry.is_active

    def test_active_token_count_bounds(self):
        """Active entries need a token count in 1..254."""
        assert BalanceEntry.active(5, 1).token_count == 1
        assert BalanceEntry.active(5, 254).token_count == 254
        with pytest.raises(ValueError):
            BalanceEntry.active(5, 0)
        with pytest.raises(ValueError):
            BalanceEntry.active(5, 255)

    def test_amount_bounds(self):
        """Amounts are uint248."""
        assert BalanceEntry.active(MAX_AMOUNT, 2).amount == MAX_AMOUNT
        with pytest.raises(ValueError):
            BalanceEntry.active(MAX_AMOUNT + 1, 2)
        with pytest.raises(ValueError):
            BalanceEntry.active(-1, 2)

    def test_docked_has_no_amount(self):
        """DOCKED entries must be zero."""
        assert BalanceEntry.docked().amount == 0
        with pytest.raises(ValueError):
            BalanceEntry(amount=1, status=EntryStatus.DOCKED)

    def test_inactive_cannot_carry_count(self):
        """Only ACTIVE entries carry a token count."""
        with pytest.raises(ValueError):
            BalanceEntry(status=EntryStatus.DOCKED, token_count=2)

    def test_with_amount_keeps_state(self):
        """with_amount replaces only the amount."""
        entry = BalanceEntry.active(10, 3).with_amount(7)
        assert entry == BalanceEntry.active(7, 3)


class TestRawTag:
    """Tests for the (amount, state_tag) layout."""

    @pytest.mark.parametrize(
        "entry,expected",
        [
            (BalanceEntry(), (0, UNREGISTERED_TAG)),
            (BalanceEntry.active(42, 2), (42, 2)),
            (BalanceEntry.active(1, 254), (1, 254)),
            (BalanceEntry.docked(), (0, DOCKED_TAG)),
        ],
    )
    def test_raw(self, entry, expected):
        """Each state maps to its tag."""
        assert entry.raw == expected
        assert BalanceEntry.from_raw(*expected) == entry
