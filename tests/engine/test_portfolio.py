from dataclasses import replace
from datetime import date
from decimal import Decimal

from fleet_finance.engine.metrics import contract_metrics
from fleet_finance.engine.portfolio import aggregate, maturity_report, payment_calendar


class TestAggregate:
    def test_sums_active_contracts(self, fixed_contract, variable_contract):
        as_of = date(2024, 3, 15)
        summary = aggregate([fixed_contract, variable_contract], as_of)
        m1 = contract_metrics(fixed_contract, as_of)
        m2 = contract_metrics(variable_contract, as_of)
        assert summary.active_contracts == 2
        assert summary.capital_outstanding == m1.capital_outstanding + m2.capital_outstanding
        assert summary.interest_outstanding == m1.interest_outstanding + m2.interest_outstanding
        assert summary.next_month_capital_due == Decimal("2000")
        assert summary.total_outstanding == summary.capital_outstanding + summary.interest_outstanding

    def test_settled_counted_not_summed(self, fixed_contract, variable_contract, settle):
        done = settle(variable_contract, {"CD34EFG": date(2024, 2, 10)})
        summary = aggregate([fixed_contract, done], date(2024, 3, 15))
        assert summary.active_contracts == 1
        assert summary.settled_contracts == 1
        assert summary.capital_outstanding == Decimal("9000")
        assert summary.active_vehicles == 1
        assert summary.settled_vehicles == 1

    def test_empty(self):
        summary = aggregate([], date(2024, 1, 1))
        assert summary.capital_outstanding == Decimal("0")
        assert summary.active_contracts == 0


class TestMaturityReport:
    def test_buckets(self, fixed_contract, variable_contract):
        # Fixed ends 1 Jan 2025; variable moved to end 1 Feb 2025
        later = replace(variable_contract, contract_number="VAR002", first_instalment_date=date(2024, 4, 1))
        report = maturity_report([fixed_contract, later], date(2024, 12, 10))
        assert [e.contract_number for e in report.within_one_month] == ["CON001"]
        assert report.within_one_month[0].days_until_end == 22
        assert [e.contract_number for e in report.within_two_months] == ["VAR002"]
        assert report.within_three_months == []

    def test_excludes_concluded(self, fixed_contract):
        report = maturity_report([fixed_contract], date(2025, 1, 5))
        assert report.within_one_month == []

    def test_soonest_first(self, fixed_contract):
        sooner = replace(fixed_contract, contract_number="CON000", first_instalment_date=date(2023, 12, 20))
        report = maturity_report([fixed_contract, sooner], date(2024, 12, 10))
        assert [e.contract_number for e in report.within_one_month] == ["CON000", "CON001"]


class TestPaymentCalendar:
    def test_one_entry_per_day(self, fixed_contract):
        days = payment_calendar([fixed_contract], 2024, 2)
        assert len(days) == 29
        assert days[0].day == date(2024, 2, 1)

    def test_instalment_day(self, fixed_contract):
        days = payment_calendar([fixed_contract], 2024, 3)
        assert len(days[0].payments) == 1
        assert days[0].total_capital == Decimal("1000")
        assert days[0].total_interest == Decimal("50")
        assert all(not d.payments for d in days[1:])

    def test_mid_month_anchor(self, fixed_contract, variable_contract):
        c = replace(variable_contract, first_instalment_date=date(2024, 1, 15))
        days = payment_calendar([fixed_contract, c], 2024, 3)
        assert [p.contract_number for p in days[14].payments] == ["VAR001"]

    def test_outside_term(self, fixed_contract):
        days = payment_calendar([fixed_contract], 2025, 3)
        assert all(not d.payments for d in days)
