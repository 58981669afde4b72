from datetime import date
from decimal import Decimal

from fleet_finance.engine.metrics import contract_metrics, contract_status
from fleet_finance.models.contract import ContractStatus


class TestContractStatus:
    def test_active_mid_term(self, fixed_contract):
        assert contract_status(fixed_contract, date(2024, 6, 1)) == ContractStatus.ACTIVE

    def test_term_elapsed(self, fixed_contract):
        assert contract_status(fixed_contract, date(2025, 1, 1)) == ContractStatus.SETTLED

    def test_all_vehicles_settled(self, fixed_contract, settle):
        c = settle(fixed_contract, {"AB12CDE": date(2024, 6, 15)})
        assert contract_status(c, date(2024, 3, 1)) == ContractStatus.SETTLED


class TestContractMetrics:
    def test_before_first_instalment(self, fixed_contract):
        m = contract_metrics(fixed_contract, date(2023, 12, 1))
        assert m.instalments_elapsed == 0
        assert m.capital_outstanding == Decimal("12000")
        assert m.interest_outstanding == Decimal("600")
        assert m.next_instalment_date == date(2024, 1, 1)
        assert m.next_month_capital_due == Decimal("1000")

    def test_mid_term(self, fixed_contract):
        m = contract_metrics(fixed_contract, date(2024, 3, 15))
        assert m.instalments_elapsed == 3
        assert m.months_remaining == 9
        assert m.progress_pct == Decimal("25.00")
        assert m.capital_outstanding == Decimal("9000")
        assert m.interest_outstanding == Decimal("450")
        assert m.next_instalment_date == date(2024, 4, 1)
        assert m.next_month_capital_due == Decimal("1000")
        assert m.next_month_interest_due == Decimal("50")
        assert m.effective_annual_rate is None
        assert m.end_date == date(2025, 1, 1)

    def test_instalment_day_counts_as_paid(self, fixed_contract):
        m = contract_metrics(fixed_contract, date(2024, 4, 1))
        assert m.instalments_elapsed == 4
        assert m.capital_outstanding == Decimal("8000")

    def test_after_term(self, fixed_contract):
        m = contract_metrics(fixed_contract, date(2025, 2, 1))
        assert m.status == ContractStatus.SETTLED
        assert m.capital_outstanding == Decimal("0")
        assert m.interest_outstanding == Decimal("0")
        assert m.next_instalment_date is None

    def test_pool_rates(self, pooled_contract, settle):
        c = settle(pooled_contract, {"AA11AAA": date(2024, 5, 10)})
        m = contract_metrics(c, date(2024, 6, 10))
        assert m.per_vehicle_capital_rate == Decimal("2000")
        assert m.monthly_capital_instalment == Decimal("4000")
        assert m.current_monthly_capital == Decimal("2000")
        assert m.active_vehicles == 1
        assert m.settled_vehicles == 1
        assert m.capital_outstanding == Decimal("8000")
        assert m.effective_annual_rate == Decimal("7")

    def test_fully_settled_owes_nothing(self, fixed_contract, settle):
        c = settle(fixed_contract, {"AB12CDE": date(2024, 6, 15)})
        m = contract_metrics(c, date(2024, 7, 1))
        assert m.capital_outstanding == Decimal("0")
        assert m.interest_outstanding == Decimal("0")
