import os
import sys
import math
import pytest
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../src')))
from calc.investment_returns import calculate_investment_returns
from calc.notional_accounts import (
    CAPITAL,
    NON_ELIGIBLE,
    deplete_accounts,
    deposit_to_corporation,
    dividend_capacity,
    process_salary_payment,
    update_accounts_from_returns,
    withdraw_from_corporation,
)
from model.ProjectionData import NotionalAccounts

REFUND_RATE = 0.3833


@pytest.fixture
def accounts():
    return NotionalAccounts(cda=10000, erdtoh=3833, nrdtoh=3833, grip=5000,
                            corporate_investments=500000, corporate_acb=400000)


class TestWithdrawals:
    def test_withdraw_reduces_acb_proportionally(self):
        start = NotionalAccounts(corporate_investments=100000, corporate_acb=50000)
        after = withdraw_from_corporation(start, 20000)
        assert math.isclose(after.corporate_investments, 80000)
        assert math.isclose(after.corporate_acb, 40000)
        # Input is left untouched
        assert start.corporate_investments == 100000

    def test_withdraw_nothing(self, accounts):
        assert withdraw_from_corporation(accounts, 0) is accounts

    def test_salary_payment_includes_employer_cost(self, accounts):
        after = process_salary_payment(accounts, 60000, 5000)
        assert math.isclose(after.corporate_investments, 435000)


class TestReturns:
    def test_update_from_returns(self):
        start = NotionalAccounts(corporate_investments=100000, corporate_acb=100000)
        returns = calculate_investment_returns(100000, 0.0431, 100, 0, 0, 0)
        after = update_accounts_from_returns(start, returns, 0.5017)

        # Non-refundable tax on the taxable half of the realized gain
        non_refundable = 150 * 0.5017 - 150 * 0.3067
        assert math.isclose(after.corporate_investments, 100000 + 4310 - non_refundable)
        assert math.isclose(after.cda, 150)
        assert math.isclose(after.erdtoh, 2800 * 0.3833)
        assert math.isclose(after.grip, 2800)
        assert math.isclose(after.corporate_acb, 100000 + 4310 - non_refundable - returns.unrealized_capital_gain)


class TestCapacity:
    def test_dividend_capacity(self, accounts):
        capacity = dividend_capacity(accounts, REFUND_RATE)
        assert capacity.capital_dividend_capacity == 10000
        # eRDTOH-backed eligible dividends stop at GRIP
        assert math.isclose(capacity.eligible_dividend_capacity, 5000)
        # nRDTOH, then the eRDTOH left after the eligible draw
        assert math.isclose(capacity.non_eligible_dividend_capacity, 10000 + 5000)
        assert math.isclose(capacity.total_capacity, 30000)

    def test_capacity_matches_what_waterfall_pays(self, accounts):
        capacity = dividend_capacity(accounts, REFUND_RATE)
        result = deplete_accounts(1e9, accounts, REFUND_RATE, 0.1, 0.25)
        assert math.isclose(result.funding.gross_dividends, capacity.total_capacity, rel_tol=1e-9)
        assert math.isclose(result.funding.eligible_dividends, capacity.eligible_dividend_capacity, rel_tol=1e-9)


class TestDeposits:
    def test_deposit_is_fully_cost_based(self):
        start = NotionalAccounts(corporate_investments=100000, corporate_acb=80000)
        after = deposit_to_corporation(start, 40000)
        assert math.isclose(after.corporate_investments, 140000)
        assert math.isclose(after.corporate_acb, 120000)

    def test_deposit_repays_overdraft_first(self):
        start = NotionalAccounts(corporate_investments=-30000, corporate_acb=0)
        after = deposit_to_corporation(start, 50000)
        assert math.isclose(after.corporate_investments, 20000)
        assert math.isclose(after.corporate_acb, 20000)

    def test_deposit_into_deeper_overdraft(self):
        start = NotionalAccounts(corporate_investments=-30000, corporate_acb=0)
        after = deposit_to_corporation(start, 10000)
        assert math.isclose(after.corporate_investments, -20000)
        assert after.corporate_acb == 0.0

    def test_negative_deposit_withdraws(self):
        start = NotionalAccounts(corporate_investments=100000, corporate_acb=50000)
        after = deposit_to_corporation(start, -20000)
        assert math.isclose(after.corporate_investments, 80000)
        assert math.isclose(after.corporate_acb, 40000)


class TestWaterfall:
    def test_capital_dividends_first(self, accounts):
        result = deplete_accounts(5000, accounts, REFUND_RATE, 0.1, 0.25)
        assert math.isclose(result.funding.capital_dividends, 5000)
        assert result.funding.eligible_dividends == 0.0
        assert math.isclose(result.accounts.cda, 5000)
        assert result.rdtoh_refund == 0.0
        assert math.isclose(result.accounts.corporate_investments, 495000)
        assert result.draws[0].kind == CAPITAL

    def test_eligible_dividends_limited_by_grip(self, accounts):
        result = deplete_accounts(20000, accounts, REFUND_RATE, 0.1, 0.25)
        # GRIP (5000) caps the refundable eligible dividend
        assert math.isclose(result.draws[1].gross_dividend, 5000)
        assert math.isclose(result.accounts.grip, 0.0, abs_tol=1e-9)

    def test_erdtoh_cascades_to_non_eligible(self):
        start = NotionalAccounts(erdtoh=3833, corporate_investments=100000, corporate_acb=100000)
        result = deplete_accounts(1000, start, REFUND_RATE, 0.1, 0.25)
        gross = 1000 / 0.75
        assert math.isclose(result.funding.non_eligible_dividends, gross)
        assert math.isclose(result.rdtoh_refund, gross * REFUND_RATE)
        assert math.isclose(result.accounts.erdtoh, 3833 - gross * REFUND_RATE)
        assert result.draws[0].kind == NON_ELIGIBLE
        # The refund covers part of the payout
        assert math.isclose(result.accounts.corporate_investments, 100000 - gross * (1 - REFUND_RATE))

    def test_retained_earnings_only_when_allowed(self):
        start = NotionalAccounts(cda=1000, corporate_investments=100000, corporate_acb=100000)
        without = deplete_accounts(5000, start, REFUND_RATE, 0.1, 0.25)
        assert math.isclose(without.funding.gross_dividends, 1000)
        assert math.isclose(without.funding.after_tax_income, 1000)

        with_retained = deplete_accounts(5000, start, REFUND_RATE, 0.1, 0.25, allow_retained_earnings=True)
        assert math.isclose(with_retained.funding.after_tax_income, 5000)
        assert math.isclose(with_retained.funding.regular_dividends, 4000 / 0.75)

    def test_payout_capped_by_cash(self):
        start = NotionalAccounts(cda=10000, corporate_investments=1000, corporate_acb=1000)
        result = deplete_accounts(5000, start, REFUND_RATE, 0.1, 0.25)
        assert math.isclose(result.funding.capital_dividends, 1000)
        assert math.isclose(result.accounts.corporate_investments, 0.0, abs_tol=1e-9)

    def test_additional_cash_extends_payout(self):
        start = NotionalAccounts(cda=10000, corporate_investments=1000, corporate_acb=1000)
        result = deplete_accounts(5000, start, REFUND_RATE, 0.1, 0.25, additional_cash=2000)
        assert math.isclose(result.funding.capital_dividends, 3000)

    def test_no_requirement(self, accounts):
        result = deplete_accounts(0, accounts, REFUND_RATE, 0.1, 0.25)
        assert result.funding.gross_dividends == 0.0
        assert result.accounts == accounts

    def test_accounts_never_negative(self, accounts):
        result = deplete_accounts(200000, accounts, REFUND_RATE, 0.1, 0.25, allow_retained_earnings=True)
        for value in (result.accounts.cda, result.accounts.erdtoh, result.accounts.nrdtoh, result.accounts.grip):
            assert value >= 0
