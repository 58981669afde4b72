from dataclasses import replace
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

import pytest

from fleet_finance.engine.rates import record_rate_change
from fleet_finance.engine.schedule import build_schedule, schedule_totals, validate_contract
from fleet_finance.errors import ContractDataError
from fleet_finance.models.contract import Vehicle, VehicleStatus

TWO_PLACES = Decimal("0.01")


class TestFixedSchedule:
    def test_length(self, fixed_contract):
        assert len(build_schedule(fixed_contract)) == 12

    def test_even_split(self, fixed_contract):
        for entry in build_schedule(fixed_contract):
            assert entry.capital_due == Decimal("1000")
            assert entry.interest_due == Decimal("50")

    def test_closes_at_zero(self, fixed_contract):
        schedule = build_schedule(fixed_contract)
        assert schedule[-1].closing_balance == Decimal("0")
        assert schedule[5].closing_balance == Decimal("6000")

    def test_period_bounds(self, fixed_contract):
        feb = build_schedule(fixed_contract)[1]
        assert feb.period_start == date(2024, 2, 1)
        assert feb.period_end == date(2024, 2, 29)
        assert feb.days_in_period == 29
        assert feb.annual_rate is None


class TestVariableSchedule:
    def test_first_month(self, variable_contract):
        first = build_schedule(variable_contract)[0]
        assert first.interest_due == Decimal("59.45")
        assert first.capital_due == Decimal("1000")
        assert first.closing_balance == Decimal("9000")
        assert first.annual_rate == Decimal("7")

    def test_leap_february(self, variable_contract):
        """£9,000 x 7% x 29/365."""
        assert build_schedule(variable_contract)[1].interest_due == Decimal("50.05")

    def test_actual_day_counts(self, variable_contract):
        for e in build_schedule(variable_contract):
            expected = (e.opening_balance * Decimal("7") / 100 / 365 * e.days_in_period).quantize(
                TWO_PLACES, ROUND_HALF_UP
            )
            assert e.interest_due == expected

    def test_declining_interest(self, variable_contract):
        schedule = build_schedule(variable_contract)
        assert schedule[-1].interest_due < schedule[0].interest_due

    def test_rate_change_splits_period(self, variable_contract):
        """15 days at 7% then 16 days at 5% on £10,000."""
        c = record_rate_change(variable_contract, date(2024, 1, 16), Decimal("3"))
        schedule = build_schedule(c)
        assert schedule[0].interest_due == Decimal("50.68")
        assert schedule[1].annual_rate == Decimal("5")


class TestCapitalReconciliation:
    def test_rounding_spread_across_instalments(self, fixed_contract):
        c = replace(fixed_contract, total_capital=Decimal("10000"), total_instalments=3)
        schedule = build_schedule(c)
        assert [e.capital_due for e in schedule] == [
            Decimal("3333.33"), Decimal("3333.34"), Decimal("3333.33"),
        ]

    def test_long_uneven_term_stays_within_a_penny(self, fixed_contract):
        c = replace(fixed_contract, total_capital=Decimal("1000"), total_instalments=60)
        schedule = build_schedule(c)
        exact = Decimal("1000") / 60
        assert all(abs(e.capital_due - exact) <= TWO_PLACES for e in schedule)
        assert sum(e.capital_due for e in schedule) == Decimal("1000")
        assert schedule[-1].capital_due == Decimal("16.67")

    def test_capital_sums_exactly(self, pooled_contract, settle):
        c = replace(pooled_contract, total_capital=Decimal("33333.33"), total_instalments=7)
        c = settle(c, {"AA11AAA": date(2024, 3, 17)})
        totals = schedule_totals(build_schedule(c))
        assert totals["capital"] + totals["settled_capital"] == Decimal("33333.33")


class TestPooledSettlement:
    def test_settled_month_still_posts_full_capital(self, pooled_contract, settle):
        c = settle(pooled_contract, {"AA11AAA": date(2024, 5, 10)})
        may = build_schedule(c)[4]
        assert may.capital_due == Decimal("4000")
        assert may.active_vehicle_count == 2
        assert may.settlements[0].capital == Decimal("10000")
        assert may.closing_balance == Decimal("10000")

    def test_later_postings_drop_one_share(self, pooled_contract, settle):
        c = settle(pooled_contract, {"AA11AAA": date(2024, 5, 10)})
        for e in build_schedule(c)[5:]:
            assert e.capital_due == Decimal("2000")
            assert e.active_vehicle_count == 1

    def test_interest_split_at_settlement(self, pooled_contract, settle):
        """9 days on £24,000 then 22 days on £14,000 at 7%."""
        c = settle(pooled_contract, {"AA11AAA": date(2024, 5, 10)})
        schedule = build_schedule(c)
        assert schedule[4].interest_due == Decimal("100.49")
        assert schedule[5].interest_due == Decimal("57.53")

    def test_two_settlements_in_one_period(self, pooled_contract, settle):
        c = settle(pooled_contract, {"AA11AAA": date(2024, 5, 10), "BB22BBB": date(2024, 5, 20)})
        may = build_schedule(c)[4]
        assert [s.registration for s in may.settlements] == ["AA11AAA", "BB22BBB"]
        assert may.settlements[1].capital == Decimal("10000")
        assert may.closing_balance == Decimal("0")
        # 9 days on 24,000, 10 on 14,000, 12 on 4,000
        expected = (
            (Decimal("24000") * 9 + Decimal("14000") * 10 + Decimal("4000") * 12) * Decimal("7") / 100 / 365
        ).quantize(TWO_PLACES, ROUND_HALF_UP)
        assert may.interest_due == expected

    def test_fully_settled_contract_has_nothing_after(self, pooled_contract, settle):
        c = settle(pooled_contract, {"AA11AAA": date(2024, 5, 10), "BB22BBB": date(2024, 7, 20)})
        schedule = build_schedule(c)
        assert schedule[6].closing_balance == Decimal("0")
        for e in schedule[7:]:
            assert e.capital_due == Decimal("0")
            assert e.interest_due == Decimal("0")

    def test_settlement_after_term_ignored(self, pooled_contract, settle):
        baseline = build_schedule(pooled_contract)
        c = settle(pooled_contract, {"AA11AAA": date(2024, 11, 1)})
        assert build_schedule(c) == baseline

    def test_fixed_interest_stops_after_full_settlement(self, fixed_contract, settle):
        c = settle(fixed_contract, {"AB12CDE": date(2024, 3, 15)})
        schedule = build_schedule(c)
        assert [e.interest_due for e in schedule[:3]] == [Decimal("50")] * 3
        assert all(e.interest_due == Decimal("0") for e in schedule[3:])
        assert schedule_totals(schedule)["total_payable"] == Decimal("12150")


class TestIdempotence:
    def test_same_input_same_output(self, pooled_contract, settle):
        c = settle(pooled_contract, {"AA11AAA": date(2024, 5, 10)})
        assert build_schedule(c) == build_schedule(c)


class TestValidation:
    def test_zero_instalments(self, fixed_contract):
        with pytest.raises(ContractDataError):
            build_schedule(replace(fixed_contract, total_instalments=0))

    def test_negative_capital(self, fixed_contract):
        with pytest.raises(ContractDataError):
            build_schedule(replace(fixed_contract, total_capital=Decimal("-1")))

    def test_no_vehicles_in_pool(self, fixed_contract):
        with pytest.raises(ContractDataError):
            build_schedule(replace(fixed_contract, original_vehicle_count=0))

    def test_negative_interest(self, fixed_contract):
        with pytest.raises(ContractDataError):
            validate_contract(replace(fixed_contract, total_interest=Decimal("-5")))

    def test_settled_without_date(self, fixed_contract):
        v = Vehicle("AB12CDE", status=VehicleStatus.SETTLED)
        with pytest.raises(ContractDataError):
            validate_contract(replace(fixed_contract, vehicles=(v,)))

    def test_settled_before_start(self, fixed_contract, settle):
        with pytest.raises(ContractDataError):
            validate_contract(settle(fixed_contract, {"AB12CDE": date(2023, 12, 1)}))

    def test_duplicate_registration(self, pooled_contract):
        v = pooled_contract.vehicles[0]
        with pytest.raises(ContractDataError):
            validate_contract(replace(pooled_contract, vehicles=(v, v)))

    def test_more_vehicles_than_pool(self, fixed_contract):
        extra = fixed_contract.vehicles + (Vehicle("ZZ99ZZZ"),)
        with pytest.raises(ContractDataError):
            validate_contract(replace(fixed_contract, vehicles=extra))
