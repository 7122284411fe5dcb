from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError

from salary_ledger.core.exceptions import ConfigurationError, InvalidUserError, ValidationError
from salary_ledger.core.validators import validate_positive_amount, validate_user_id
from salary_ledger.ledger.aggregator import BalanceAggregator, RateAggregation, resolve_rate, to_cents
from salary_ledger.ledger.schemas import HourlyRateSet, HourlyRateUpdate, HoursCreate, PermanentSalaryCreate
from salary_ledger.ledger.store import SqlAlchemyLedgerStore


class TestValidators:
    @pytest.mark.parametrize("value, expected", [(1, 1), (42, 42), ("7", 7), (" 12 ", 12)])
    def test_valid_user_ids(self, value, expected):
        assert validate_user_id(value) == expected

    @pytest.mark.parametrize("value", [0, -1, None, "", "abc", "1.5", 3.0, True, False])
    def test_invalid_user_ids(self, value):
        with pytest.raises(InvalidUserError) as exc_info:
            validate_user_id(value)
        assert exc_info.value.status_code == 400
        assert exc_info.value.error_code == "INVALID_USER"

    def test_positive_amount_is_decimal(self):
        assert validate_positive_amount("8.5", "hours") == Decimal("8.5")
        assert validate_positive_amount(3, "hours") == Decimal("3")

    @pytest.mark.parametrize("value", [0, -2, "nan", "Infinity", "ten", None])
    def test_rejects_non_positive_amounts(self, value):
        with pytest.raises(ValidationError) as exc_info:
            validate_positive_amount(value, "hours")
        assert exc_info.value.error_data["field"] == "hours"

    @pytest.mark.parametrize("value", ["0.004", "100.005", Decimal("8.001")])
    def test_rejects_sub_cent_amounts(self, value):
        with pytest.raises(ValidationError) as exc_info:
            validate_positive_amount(value, "salary")
        assert "2 decimal places" in exc_info.value.detail

    @pytest.mark.parametrize("value, expected", [("8.50", "8.5"), ("100.000", "100"), ("0.01", "0.01")])
    def test_accepts_cent_precision(self, value, expected):
        assert validate_positive_amount(value, "salary") == Decimal(expected)


class TestRequestSchemas:
    @pytest.mark.parametrize("schema, field", [
        (HoursCreate, "hours"),
        (PermanentSalaryCreate, "salary"),
        (HourlyRateSet, "salary"),
        (HourlyRateUpdate, "new_salary"),
    ])
    def test_sub_cent_values_rejected(self, schema, field):
        with pytest.raises(PydanticValidationError):
            schema(**{field: "0.004"})

    def test_cent_values_accepted(self):
        assert HoursCreate(hours="7.25").hours == Decimal("7.25")

    def test_hours_beyond_column_precision_rejected(self):
        with pytest.raises(PydanticValidationError):
            HoursCreate(hours="1000000")


class TestRateResolution:
    rates = (Decimal("15"), Decimal("20"), Decimal("10"))

    def test_sum_policy(self):
        assert resolve_rate(self.rates, RateAggregation.SUM) == Decimal("45")

    def test_max_policy(self):
        assert resolve_rate(self.rates, RateAggregation.MAX) == Decimal("20")

    def test_first_policy_uses_oldest_row(self):
        assert resolve_rate(self.rates, RateAggregation.FIRST) == Decimal("15")

    @pytest.mark.parametrize("policy", list(RateAggregation))
    def test_no_rates_resolve_to_zero(self, policy):
        assert resolve_rate((), policy) == Decimal("0")

    def test_parse_is_case_insensitive(self):
        assert RateAggregation.parse("MAX") is RateAggregation.MAX

    def test_unknown_policy_is_rejected(self):
        with pytest.raises(ConfigurationError):
            RateAggregation.parse("average")


class TestBalanceAggregator:
    def test_scenario_totals(self, db_session, employee, add_unpaid):
        add_unpaid(employee.id, hours=[8, 5], rates=[15], permanent=[100])

        totals = BalanceAggregator(SqlAlchemyLedgerStore(db_session), "sum").compute_balance(employee.id)

        assert totals.user_id == employee.id
        assert totals.unpaid_hours == Decimal("13")
        assert totals.effective_rate == Decimal("15")
        assert totals.unpaid_permanent == Decimal("100")
        assert totals.total_owed == Decimal("295")

    def test_absent_sources_count_as_zero(self, db_session, employee):
        totals = BalanceAggregator(SqlAlchemyLedgerStore(db_session)).compute_balance(employee.id)

        assert totals.unpaid_hours == 0
        assert totals.effective_rate == 0
        assert totals.unpaid_permanent == 0
        assert totals.total_owed == 0
        assert totals.nothing_owed

    def test_rate_without_hours_owes_nothing(self, db_session, employee, add_unpaid):
        add_unpaid(employee.id, rates=[20])

        totals = BalanceAggregator(SqlAlchemyLedgerStore(db_session)).compute_balance(employee.id)

        assert totals.effective_rate == Decimal("20")
        assert totals.total_owed == 0
        assert totals.nothing_owed

    def test_hours_without_rate_owe_nothing_for_hours(self, db_session, employee, add_unpaid):
        add_unpaid(employee.id, hours=[4], permanent=[50])

        totals = BalanceAggregator(SqlAlchemyLedgerStore(db_session)).compute_balance(employee.id)

        assert totals.total_owed == Decimal("50")
        assert not totals.nothing_owed

    @pytest.mark.parametrize("policy, expected", [("sum", "300"), ("max", "200"), ("first", "100")])
    def test_multiple_rates_follow_policy(self, db_session, employee, add_unpaid, policy, expected):
        add_unpaid(employee.id, hours=[10], rates=[10, 20])

        totals = BalanceAggregator(SqlAlchemyLedgerStore(db_session), policy).compute_balance(employee.id)

        assert totals.total_owed == Decimal(expected)

    def test_balance_is_scoped_to_user(self, db_session, make_user, add_unpaid):
        first = make_user()
        second = make_user()
        add_unpaid(first.id, hours=[3], rates=[10])
        add_unpaid(second.id, hours=[7], rates=[30])

        totals = BalanceAggregator(SqlAlchemyLedgerStore(db_session)).compute_balance(first.id)

        assert totals.total_owed == Decimal("30")

    def test_same_result_from_memory_store(self, memory_store):
        memory_store.add_user(5)
        memory_store.add_hours(5, "8")
        memory_store.add_hours(5, "5")
        memory_store.add_rate(5, "15")
        memory_store.add_permanent(5, "100")

        totals = BalanceAggregator(memory_store, "sum").compute_balance(5)

        assert totals.total_owed == Decimal("295")

    @pytest.mark.parametrize("user_id", [0, -3, "abc", None])
    def test_invalid_user_is_rejected(self, memory_store, user_id):
        with pytest.raises(InvalidUserError):
            BalanceAggregator(memory_store).compute_balance(user_id)


class TestCentRounding:
    @pytest.mark.parametrize("amount, expected", [
        ("2.5025", "2.50"),
        ("2.5075", "2.51"),
        ("2.505", "2.51"),
        ("295", "295.00"),
    ])
    def test_to_cents_rounds_half_up(self, amount, expected):
        assert str(to_cents(Decimal(amount))) == expected

    def test_total_owed_has_cent_precision(self, memory_store):
        memory_store.add_user(9)
        memory_store.add_hours(9, "0.25")
        memory_store.add_rate(9, "10.01")

        totals = BalanceAggregator(memory_store, "sum").compute_balance(9)

        assert totals.total_owed == Decimal("2.50")
        assert totals.total_owed.as_tuple().exponent == -2
