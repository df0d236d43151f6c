"""
Tests for expense CRUD and the key-value settings store.
"""

from datetime import date

import pytest

from bizbooks.errors import NotFoundError
from bizbooks.models import Setting
from bizbooks.services import expense_service, settings_service
from bizbooks.validation import ValidationError


class TestExpenses:
    def test_create_and_get(self, db_session, make_expense):
        expense = make_expense(amount_cents=1999, store_vendor="Sam's Club")

        fetched = expense_service.get_expense(expense.id)

        assert fetched.amount_cents == 1999
        assert fetched.store_vendor == "Sam's Club"
        assert fetched.to_dict()["date"] == "2024-03-10"

    def test_delete(self, db_session, make_expense):
        expense = make_expense()
        expense_service.delete_expense(expense.id)

        with pytest.raises(NotFoundError):
            expense_service.get_expense(expense.id)
        with pytest.raises(NotFoundError):
            expense_service.delete_expense(expense.id)

    def test_list_filters(self, db_session, make_expense):
        make_expense(category="Supplies", description="Paper cones", on=date(2024, 3, 1))
        make_expense(category="Fuel", description="Generator gas", on=date(2024, 3, 2))
        make_expense(category="Supplies", description="Straws", on=date(2024, 3, 3))

        assert [e.description for e in expense_service.list_expenses()] == [
            "Straws", "Generator gas", "Paper cones",
        ]
        assert len(expense_service.list_expenses(category="Supplies")) == 2
        assert [e.description for e in expense_service.list_expenses(search="GAS")] == ["Generator gas"]
        assert [e.description for e in expense_service.list_expenses(search="fuel")] == ["Generator gas"]
        assert [e.description for e in expense_service.list_expenses(date=date(2024, 3, 1))] == ["Paper cones"]


class TestSettings:
    def test_missing_setting_is_none(self, db_session):
        assert settings_service.get_setting("bankBalance") is None
        assert settings_service.get_bank_balance_cents() == 0

    def test_upsert_replaces_value(self, db_session):
        settings_service.set_setting("bankBalance", "10.00")
        settings_service.set_setting("bankBalance", 1234.5)

        assert settings_service.get_setting("bankBalance") == "1234.5"
        assert settings_service.get_bank_balance_cents() == 123450
        assert db_session.query(Setting).count() == 1

    def test_set_bank_balance_cents_formats(self, db_session):
        settings_service.set_bank_balance_cents(50005)
        assert settings_service.get_setting("bankBalance") == "500.05"

    @pytest.mark.parametrize("key,value", [("bankBalance", None), ("bankBalance", True), ("", "1"), ("k", {"a": 1})])
    def test_rejects_bad_values(self, db_session, key, value):
        with pytest.raises(ValidationError):
            settings_service.set_setting(key, value)

    def test_ensure_defaults_is_idempotent(self, db_session):
        assert settings_service.ensure_default_settings() == 1
        assert settings_service.ensure_default_settings() == 0
        assert settings_service.get_setting("bankBalance") == "0"

    def test_ensure_defaults_keeps_existing_value(self, db_session):
        settings_service.set_setting("bankBalance", "42.00")
        assert settings_service.ensure_default_settings() == 0
        assert settings_service.get_setting("bankBalance") == "42.00"
