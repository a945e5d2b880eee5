"""Tests for point balance updates."""

import pytest

from refpoints.errors import CustomerNotFoundError


class TestApplyPoints:

    def test_adds_points_and_records_entry(self, ledger_service, customer, set_balance):
        set_balance(customer.id, 40)

        updated = ledger_service.apply_points(customer.id, 15, description="Bonus")

        assert updated.total_points == 55
        history = ledger_service.get_history(customer.id)
        assert len(history) == 1
        assert history[0].points_delta == 15
        assert history[0].total_after == 55
        assert history[0].transaction_id is None
        assert history[0].description == "Bonus"

    def test_negative_delta_has_no_floor(self, ledger_service, customer, set_balance):
        set_balance(customer.id, 10, 5)

        ledger_service.apply_points(customer.id, -30)

        balance = ledger_service.get_balance(customer.id)
        assert balance.total_points == -20
        assert balance.redeemed_points == 5
        assert balance.available_points == -25

    def test_unknown_customer(self, ledger_service):
        with pytest.raises(CustomerNotFoundError):
            ledger_service.apply_points(999, 10)

    def test_history_newest_first(self, ledger_service, customer):
        for delta in (1, 2, 3):
            ledger_service.apply_points(customer.id, delta)

        history = ledger_service.get_history(customer.id)
        assert [entry.points_delta for entry in history] == [3, 2, 1]
        assert [entry.total_after for entry in history] == [6, 3, 1]
        assert len(ledger_service.get_history(customer.id, limit=2)) == 2

    def test_joins_callers_session(self, ledger_service, customer, database):
        # Rolled back together with the enclosing unit of work
        with pytest.raises(RuntimeError):
            with database.session() as session:
                ledger_service.apply_points(customer.id, 50, session=session)
                raise RuntimeError("abort")

        assert ledger_service.get_balance(customer.id).total_points == 0
        assert ledger_service.get_history(customer.id) == []


class TestGetBalance:

    def test_available_points(self, ledger_service, customer, set_balance):
        set_balance(customer.id, 300, 120)
        balance = ledger_service.get_balance(customer.id)
        assert balance.customer_id == customer.id
        assert balance.available_points == 180

    def test_unknown_customer(self, ledger_service):
        with pytest.raises(CustomerNotFoundError):
            ledger_service.get_balance(999)
