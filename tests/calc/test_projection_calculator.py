"""Tests for the ProjectionCalculator.

Each year credits investment returns, pays the shareholders according to the
salary strategy, funds IPP and RRSP contributions, and settles corporate tax.
"""

import logging
import os
import sys
import pytest
from dataclasses import replace

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../src')))

from calc.projection_calculator import ProjectionCalculator
from model.UserInputs import UserInputs
from tax.TaxYearProvider import TaxYearProvider


@pytest.fixture(scope="module")
def calculator():
    return ProjectionCalculator(TaxYearProvider(0.02, 2035))


@pytest.fixture
def inputs():
    return UserInputs(expected_inflation_rate=0.02)


def assert_accounts_non_negative(summary):
    for year in summary.yearly_results:
        accounts = year.notional_accounts
        assert accounts.cda >= 0
        assert accounts.erdtoh >= 0
        assert accounts.nrdtoh >= 0
        assert accounts.grip >= 0
        assert accounts.corporate_acb >= 0


class TestProjectionShape:
    def test_one_result_per_year(self, calculator, inputs):
        summary = calculator.calculate(inputs)
        assert len(summary.yearly_results) == 5
        assert [y.calendar_year for y in summary.yearly_results] == [2026, 2027, 2028, 2029, 2030]
        assert [y.year for y in summary.yearly_results] == [1, 2, 3, 4, 5]
        assert summary.first_year == 2026
        assert summary.last_year == 2030

    def test_summary_totals_match_years(self, calculator, inputs):
        summary = calculator.calculate(inputs)
        years = summary.yearly_results
        assert summary.total_salary == pytest.approx(sum(y.salary for y in years))
        assert summary.total_dividends == pytest.approx(sum(y.dividends.gross_dividends for y in years))
        assert summary.total_personal_tax == pytest.approx(sum(y.personal_tax for y in years))
        assert summary.total_corporate_tax == pytest.approx(sum(y.corporate_tax for y in years))
        assert summary.total_compensation == pytest.approx(summary.total_salary + summary.total_dividends)
        assert summary.total_tax == pytest.approx(summary.total_personal_tax + summary.total_corporate_tax)
        assert summary.final_corporate_balance == years[-1].notional_accounts.corporate_investments
        assert summary.average_annual_income == pytest.approx(summary.total_compensation / 5)

    def test_required_income_inflates(self, calculator, inputs):
        summary = calculator.calculate(inputs)
        assert summary.yearly_results[0].required_income == pytest.approx(100000)
        assert summary.yearly_results[1].required_income == pytest.approx(102000)

    def test_required_income_fixed_when_not_inflated(self, calculator, inputs):
        summary = calculator.calculate(replace(inputs, inflate_spending_needs=False))
        assert all(y.required_income == pytest.approx(100000) for y in summary.yearly_results)

    def test_grind_reported_every_year(self, calculator, inputs):
        summary = calculator.calculate(inputs)
        assert all(y.passive_income_grind is not None for y in summary.yearly_results)

    def test_unknown_year(self, calculator, inputs):
        summary = calculator.calculate(inputs)
        with pytest.raises(ValueError):
            summary.get_year(2040)


class TestStrategies:
    def test_dividends_only(self, calculator, inputs):
        summary = calculator.calculate(replace(inputs, salary_strategy="dividends-only"))
        for year in summary.yearly_results:
            assert year.salary == 0.0
            assert year.cpp == 0.0
            assert year.ei == 0.0
            assert year.rrsp_room_generated == 0.0
            assert year.after_tax_income == pytest.approx(year.required_income, rel=0.02)
        assert_accounts_non_negative(summary)

    def test_fixed_salary(self, calculator, inputs):
        summary = calculator.calculate(replace(inputs, salary_strategy="fixed", fixed_salary_amount=60000))
        first = summary.yearly_results[0]
        assert first.salary == pytest.approx(60000)
        assert first.rrsp_room_generated == pytest.approx(10800)
        assert first.cpp > 0
        assert first.employer_payroll_cost > 0
        # Salary is indexed along with spending needs
        assert summary.yearly_results[1].salary == pytest.approx(61200)
        assert_accounts_non_negative(summary)

    def test_dynamic_uses_accounts_before_salary(self, calculator, inputs):
        summary = calculator.calculate(inputs)
        first = summary.yearly_results[0]
        assert first.dividends.capital_dividends > 0
        assert first.notional_accounts.cda == pytest.approx(0.0, abs=1e-6)
        assert first.salary > 0
        assert_accounts_non_negative(summary)

    def test_salary_reduces_taxable_business_income(self, calculator, inputs):
        base = replace(inputs, annual_corporate_retained_earnings=200000)
        dividends = calculator.calculate(replace(base, salary_strategy="dividends-only")).yearly_results[0]
        salary = calculator.calculate(replace(base, salary_strategy="fixed", fixed_salary_amount=80000)).yearly_results[0]
        assert dividends.taxable_business_income == pytest.approx(200000)
        assert salary.taxable_business_income < dividends.taxable_business_income

    def test_compare_strategies(self, calculator, inputs):
        fixed = replace(inputs, salary_strategy="fixed", fixed_salary_amount=74600)
        dividends = replace(inputs, salary_strategy="dividends-only")
        result = calculator.compare_strategies(fixed, dividends)
        assert result["tax_savings"] == pytest.approx(result["strategy2"].total_tax - result["strategy1"].total_tax)
        assert result["rrsp_room_difference"] > 0


class TestQuebec:
    def test_quebec_payroll(self, calculator, inputs):
        summary = calculator.calculate(replace(inputs, province="QC", salary_strategy="fixed",
                                               fixed_salary_amount=80000))
        first = summary.yearly_results[0]
        assert first.qpip > 0
        assert first.cpp == pytest.approx((74600 - 3500) * 0.064)


class TestContributions:
    def test_tfsa_funded_from_compensation(self, calculator, inputs):
        summary = calculator.calculate(replace(inputs, maximize_tfsa=True, tfsa_room=7000))
        first = summary.yearly_results[0]
        assert first.tfsa_contribution == 7000
        assert first.required_income == pytest.approx(107000)
        # Room is replenished by the next year's limit
        assert summary.yearly_results[1].tfsa_contribution == 7000

    def test_resp_inflated_and_debt_nominal(self, calculator, inputs):
        summary = calculator.calculate(replace(inputs, contribute_to_resp=True, resp_contribution_amount=2500,
                                               pay_down_debt=True, debt_paydown_amount=10000))
        second = summary.yearly_results[1]
        assert second.resp_contribution == pytest.approx(2550)
        assert second.debt_paydown == 10000

    def test_rrsp_room_carries_forward(self, calculator, inputs):
        summary = calculator.calculate(replace(inputs, salary_strategy="fixed", fixed_salary_amount=60000,
                                               contribute_to_rrsp=True, rrsp_room=0))
        years = summary.yearly_results
        assert years[0].rrsp_contribution == 0.0
        assert 0 < years[1].rrsp_contribution <= years[0].rrsp_room_generated


class TestIPP:
    def test_ipp_funded_with_salary(self, calculator, inputs):
        summary = calculator.calculate(replace(inputs, salary_strategy="fixed", fixed_salary_amount=120000,
                                               consider_ipp=True, ipp_member_age=52, ipp_years_of_service=10))
        years = summary.yearly_results
        assert years[0].ipp is not None
        assert years[0].ipp.admin_costs == 4500
        assert years[1].ipp.admin_costs == 2000
        assert years[0].ipp.member_age == 52
        assert years[1].ipp.member_age == 53
        assert years[0].ipp.years_of_service == 11
        assert years[0].ipp.pension_adjustment > 0
        assert summary.ipp is not None
        assert summary.ipp.total_contributions == pytest.approx(sum(y.ipp.contribution for y in years))

    def test_no_ipp_without_salary(self, calculator, inputs):
        summary = calculator.calculate(replace(inputs, salary_strategy="dividends-only", consider_ipp=True))
        assert all(y.ipp is None for y in summary.yearly_results)
        assert summary.ipp is None


class TestSpouse:
    def test_spouse_paid_from_same_corporation(self, calculator, inputs):
        summary = calculator.calculate(replace(inputs, has_spouse=True, spouse_required_income=40000,
                                               spouse_salary_strategy="dividends-only"))
        years = summary.yearly_results
        assert all(y.spouse is not None for y in years)
        assert years[0].spouse.salary == 0.0
        assert years[0].spouse.after_tax_income == pytest.approx(40000, rel=0.02)
        assert summary.spouse is not None
        assert summary.spouse.total_dividends == pytest.approx(sum(y.spouse.dividends.gross_dividends for y in years))
        assert summary.total_dividends == pytest.approx(
            sum(y.dividends.gross_dividends + y.spouse.dividends.gross_dividends for y in years))
        assert_accounts_non_negative(summary)

    def test_no_spouse(self, calculator, inputs):
        summary = calculator.calculate(inputs)
        assert summary.spouse is None
        assert all(y.spouse is None for y in summary.yearly_results)


def opening_balances(inputs, summary):
    """(corporate investments, eRDTOH, nRDTOH) at the start of each year."""
    opening = [(inputs.corporate_investment_balance, inputs.erdtoh_balance, inputs.nrdtoh_balance)]
    for year in summary.yearly_results[:-1]:
        accounts = year.notional_accounts
        opening.append((accounts.corporate_investments, accounts.erdtoh, accounts.nrdtoh))
    return opening


@pytest.fixture
def funded_inputs(inputs):
    return replace(inputs, cda_balance=20000, erdtoh_balance=5000, nrdtoh_balance=3000, grip_balance=10000,
                   annual_corporate_retained_earnings=150000)


STRATEGY_CASES = [
    {"salary_strategy": "dynamic"},
    {"salary_strategy": "dividends-only"},
    {"salary_strategy": "fixed", "fixed_salary_amount": 60000},
]


class TestInvariants:
    @pytest.mark.parametrize("strategy", STRATEGY_CASES)
    def test_corporate_cash_reconciles(self, calculator, funded_inputs, strategy):
        inputs = replace(funded_inputs, **strategy)
        summary = calculator.calculate(inputs)
        for (opening, _, _), year in zip(opening_balances(inputs, summary), summary.yearly_results):
            returns = year.investment_returns
            non_refundable = max(0.0, year.corporate_tax_on_passive - returns.nrdtoh_increase)
            expected = (opening
                        + returns.total_return - non_refundable
                        + inputs.annual_corporate_retained_earnings
                        - year.employer_health_tax - year.corporate_tax_on_active
                        - year.salary - year.employer_payroll_cost
                        - (year.dividends.gross_dividends - year.rdtoh_refund))
            assert year.notional_accounts.corporate_investments == pytest.approx(expected, abs=0.01)

    @pytest.mark.parametrize("strategy", STRATEGY_CASES)
    def test_tax_and_income_identities(self, calculator, funded_inputs, strategy):
        summary = calculator.calculate(replace(funded_inputs, **strategy))
        for year in summary.yearly_results:
            payroll = year.cpp + year.cpp2 + year.ei + year.qpip
            assert year.total_tax == pytest.approx(year.personal_tax + year.corporate_tax + payroll)
            assert year.after_tax_income == pytest.approx(
                year.salary + year.dividends.gross_dividends - year.personal_tax - payroll)

    @pytest.mark.parametrize("strategy", STRATEGY_CASES)
    def test_refund_bounded_by_rdtoh(self, calculator, funded_inputs, strategy):
        inputs = replace(funded_inputs, **strategy)
        summary = calculator.calculate(inputs)
        for (_, erdtoh, nrdtoh), year in zip(opening_balances(inputs, summary), summary.yearly_results):
            returns = year.investment_returns
            available = erdtoh + nrdtoh + returns.erdtoh_increase + returns.nrdtoh_increase
            assert year.rdtoh_refund <= available + 1e-6

    def test_deterministic(self, funded_inputs):
        first = ProjectionCalculator(TaxYearProvider(0.02, 2035)).calculate(funded_inputs)
        second = ProjectionCalculator(TaxYearProvider(0.02, 2035)).calculate(funded_inputs)
        assert repr(first) == repr(second)


class TestReferenceScenarios:
    def test_ontario_fixed_salary_100k(self, calculator, inputs):
        # Salary alone covers the requirement, so no dividends are paid
        summary = calculator.calculate(replace(inputs, salary_strategy="fixed", fixed_salary_amount=100000,
                                               required_income=50000, planning_horizon=1))
        first = summary.yearly_results[0]
        assert first.salary == pytest.approx(100000)
        assert first.dividends.gross_dividends == 0.0
        assert first.federal_tax == pytest.approx(13323.35, abs=0.01)
        assert first.provincial_tax == pytest.approx(5751.98, abs=0.01)
        assert first.health_premium == 900.0
        assert first.cpp == pytest.approx(4230.45, abs=0.01)
        assert first.cpp2 == pytest.approx(416.00, abs=0.01)
        assert first.ei == pytest.approx(1123.07, abs=0.01)
        assert first.after_tax_income == pytest.approx(
            100000 - 13323.35 - 5751.98 - 900 - 4230.45 - 416.00 - 1123.07, abs=0.05)

    def test_dividends_only_draws_cda_then_erdtoh(self, calculator, inputs):
        summary = calculator.calculate(replace(inputs, salary_strategy="dividends-only",
                                               cda_balance=50000, erdtoh_balance=20000))
        first = summary.yearly_results[0]
        returns = first.investment_returns
        refund_rate = calculator.provider.get_tax_year_data(2026, "ON").rdtoh_refund_rate

        assert first.salary == 0.0
        assert first.cpp == 0.0
        assert first.ei == 0.0
        assert first.after_tax_income == pytest.approx(first.required_income, rel=0.02)
        # The whole CDA, including this year's increase, goes out as capital dividends
        assert first.dividends.capital_dividends == pytest.approx(50000 + returns.cda_increase)
        assert first.notional_accounts.cda == pytest.approx(0.0, abs=1e-6)
        # eRDTOH is recovered through non-eligible dividends once nRDTOH runs out
        assert first.dividends.non_eligible_dividends > 0
        refund_without_cascade = returns.nrdtoh_increase + first.dividends.eligible_dividends * refund_rate
        assert first.rdtoh_refund > refund_without_cascade + 1.0
        assert first.notional_accounts.erdtoh < 20000 + returns.erdtoh_increase


class TestCorporateBalance:
    def test_acb_gap_is_unrealized_gain(self, calculator, inputs):
        summary = calculator.calculate(replace(inputs, required_income=0, planning_horizon=3))
        unrealized = 0.0
        for year in summary.yearly_results:
            unrealized += year.investment_returns.unrealized_capital_gain
            accounts = year.notional_accounts
            assert accounts.corporate_investments - accounts.corporate_acb == pytest.approx(unrealized, abs=0.01)

    def test_business_income_restores_cost_base_after_overdraft(self, calculator, inputs):
        summary = calculator.calculate(replace(inputs, corporate_investment_balance=0, required_income=10000,
                                               salary_strategy="dividends-only",
                                               annual_corporate_retained_earnings=200000, planning_horizon=1))
        accounts = summary.yearly_results[0].notional_accounts
        assert accounts.corporate_investments > 0
        assert accounts.corporate_acb == pytest.approx(accounts.corporate_investments)

    def test_ipp_deduction_limited_to_cash_paid(self, calculator, inputs):
        # Salary overdraws an empty portfolio, leaving nothing to fund the IPP
        summary = calculator.calculate(replace(inputs, corporate_investment_balance=0, salary_strategy="fixed",
                                               fixed_salary_amount=120000, consider_ipp=True,
                                               ipp_member_age=52, ipp_years_of_service=10,
                                               annual_corporate_retained_earnings=200000, planning_horizon=1))
        first = summary.yearly_results[0]
        assert first.ipp is not None
        assert first.ipp.contribution > 0
        assert first.taxable_business_income == pytest.approx(
            200000 - first.salary - first.employer_payroll_cost - first.employer_health_tax)

    def test_overdraft_logged_once(self, calculator, inputs, caplog):
        with caplog.at_level(logging.WARNING, logger="calc.projection_calculator"):
            summary = calculator.calculate(replace(inputs, corporate_investment_balance=0,
                                                   annual_corporate_retained_earnings=0))
        assert summary.yearly_results[-1].notional_accounts.corporate_investments < 0
        warnings = [r for r in caplog.records if "overdrawn" in r.getMessage()]
        assert len(warnings) == 1
        assert "2026" in warnings[0].getMessage()

    def test_no_overdraft_warning_when_funded(self, calculator, inputs, caplog):
        with caplog.at_level(logging.WARNING, logger="calc.projection_calculator"):
            calculator.calculate(replace(inputs, planning_horizon=3))
        assert not [r for r in caplog.records if "overdrawn" in r.getMessage()]
