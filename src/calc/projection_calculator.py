import logging
from dataclasses import dataclass, replace
from typing import Optional

from calc.investment_returns import blended_return_rate, calculate_investment_returns
from calc.ipp import (
    ANNUAL_ACTUARIAL_COST,
    ANNUAL_ADMIN_COST,
    SETUP_COST,
    IPPMember,
    calculate_ipp_contribution,
    calculate_pension_adjustment,
)
from calc.notional_accounts import (
    WaterfallResult,
    deplete_accounts,
    deposit_to_corporation,
    process_salary_payment,
    update_accounts_from_returns,
    withdraw_from_corporation,
)
from model.ProjectionData import (
    DividendFunding,
    IPPSummary,
    IPPYear,
    NotionalAccounts,
    ProjectionSummary,
    SpouseResult,
    SpouseSummary,
    YearlyResult,
)
from model.TaxYearData import TaxYearData
from model.UserInputs import UserInputs
from tax.CorporateTax import (
    calculate_aaii,
    calculate_active_income_tax,
    calculate_passive_income_grind,
    calculate_passive_tax,
)
from tax.Payroll import PayrollDeductions, calculate_payroll
from tax.PersonalTax import calculate_personal_tax, effective_dividend_rate, solve_required_salary
from tax.TaxYearProvider import TaxYearProvider

logger = logging.getLogger(__name__)

# Dividend calibration: re-run the waterfall until after-tax income lands within a dollar
CALIBRATION_TOLERANCE = 1.0
MAX_CALIBRATION_ITERATIONS = 10
# Rough gross-up from required after-tax income to taxable income
ESTIMATED_INCOME_MULTIPLIER = 1.5
# Share of salary assumed available after tax for an RRSP contribution
NET_SALARY_FRACTION = 0.6


@dataclass
class Compensation:
    """Salary and dividends paid to one shareholder in a year."""
    salary: float
    payroll: PayrollDeductions
    waterfall: WaterfallResult
    accounts: NotionalAccounts


class ProjectionCalculator:
    """Projects salary, dividends, taxes and the corporation's accounts year by year.

    Each year starts from the previous year's closing NotionalAccounts:
    investment returns are credited, shareholders are paid according to the
    salary strategy, IPP contributions are funded, and corporate tax on active
    business income is settled.
    """

    def __init__(self, provider: Optional[TaxYearProvider] = None, reference_dir: Optional[str] = None):
        """
        Args:
            provider: Tax data provider. When omitted, one is built per run from
                the inputs' inflation rate and horizon.
            reference_dir: Reference data directory for a provider built per run.
        """
        self.provider = provider
        self.reference_dir = reference_dir

    def provider_for(self, inputs: UserInputs) -> TaxYearProvider:
        if self.provider is not None:
            return self.provider
        return TaxYearProvider(inputs.expected_inflation_rate, inputs.final_year, self.reference_dir)

    def calculate(self, inputs: UserInputs) -> ProjectionSummary:
        """Run the full projection.

        Args:
            inputs: Validated user inputs.

        Returns:
            ProjectionSummary with one YearlyResult per year of the horizon.
        """
        provider = self.provider_for(inputs)
        inflation_rate = provider.inflation_rate
        return_rate = inputs.investment_return_rate
        if return_rate is None:
            return_rate = blended_return_rate(inputs.canadian_equity_percent, inputs.us_equity_percent,
                                              inputs.international_equity_percent, inputs.fixed_income_percent)

        logger.info("Projecting %d years for %s with %s strategy", inputs.planning_horizon,
                    inputs.province, inputs.salary_strategy)

        starting_acb = inputs.corporate_acb
        if starting_acb is None:
            starting_acb = inputs.corporate_investment_balance
        accounts = NotionalAccounts(
            cda=inputs.cda_balance,
            erdtoh=inputs.erdtoh_balance,
            nrdtoh=inputs.nrdtoh_balance,
            grip=inputs.grip_balance,
            corporate_investments=inputs.corporate_investment_balance,
            corporate_acb=min(max(0.0, starting_acb), max(0.0, inputs.corporate_investment_balance)),
        )

        rrsp_room = inputs.rrsp_room
        tfsa_room = inputs.tfsa_room
        spouse_rrsp_room = inputs.spouse_rrsp_room if inputs.has_spouse else 0
        spouse_tfsa_room = inputs.spouse_tfsa_room if inputs.has_spouse else 0

        yearly_results = []
        overdrawn = False
        for year_index in range(inputs.planning_horizon):
            calendar_year = inputs.starting_year + year_index
            tax_data = provider.get_tax_year_data(calendar_year, inputs.province)

            result = self._calculate_year(inputs, provider, tax_data, accounts, year_index, return_rate,
                                          inflation_rate, rrsp_room, tfsa_room,
                                          spouse_rrsp_room, spouse_tfsa_room)
            yearly_results.append(result)
            accounts = result.notional_accounts
            if accounts.corporate_investments < 0 and not overdrawn:
                overdrawn = True
                logger.warning("Corporate investments overdrawn in %d: balance %.2f", calendar_year,
                               accounts.corporate_investments)

            # Room carried into next year
            rrsp_room += result.rrsp_room_generated - result.rrsp_contribution
            if result.ipp:
                rrsp_room = max(0.0, rrsp_room - result.ipp.pension_adjustment)
            tfsa_room += tax_data.tfsa_limit - result.tfsa_contribution

            if result.spouse:
                spouse_rrsp_room += result.spouse.rrsp_room_generated - result.spouse.rrsp_contribution
                if result.spouse.ipp:
                    spouse_rrsp_room = max(0.0, spouse_rrsp_room - result.spouse.ipp.pension_adjustment)
                spouse_tfsa_room += tax_data.tfsa_limit - result.spouse.tfsa_contribution

        return self._summarize(yearly_results)

    def compare_strategies(self, inputs_a: UserInputs, inputs_b: UserInputs) -> dict:
        """Run two projections and report how the second differs from the first."""
        summary_a = self.calculate(inputs_a)
        summary_b = self.calculate(inputs_b)
        return {
            "strategy1": summary_a,
            "strategy2": summary_b,
            "tax_savings": summary_b.total_tax - summary_a.total_tax,
            "final_balance_difference": summary_a.final_corporate_balance - summary_b.final_corporate_balance,
            "rrsp_room_difference": summary_a.total_rrsp_room_generated - summary_b.total_rrsp_room_generated,
        }

    def _fund_with_dividends(self, target: float, salary: float, accounts: NotionalAccounts,
                             tax_data: TaxYearData, eligible_rate: float, non_eligible_rate: float,
                             allow_retained_earnings: bool, earnings_cash: float) -> WaterfallResult:
        """Pay dividends until their after-tax value (by the full personal tax
        calculation, on top of any salary) meets the target.

        The waterfall itself works with marginal-rate estimates; the target passed
        to it is nudged by the shortfall until the result settles or the
        accounts can't pay more.
        """
        if target <= 0:
            return WaterfallResult(funding=DividendFunding(), accounts=accounts)

        salary_only_tax = calculate_personal_tax(salary, 0, 0, 0, tax_data).total_tax
        # Cash from this year's business income not already spent on pre-financing
        extra_cash = max(0.0, earnings_cash + min(0.0, accounts.corporate_investments))

        def run(request):
            result = deplete_accounts(request, accounts, tax_data.rdtoh_refund_rate, eligible_rate,
                                      non_eligible_rate, allow_retained_earnings, extra_cash)
            funding = result.funding
            tax = calculate_personal_tax(salary, funding.eligible_dividends,
                                         funding.non_eligible_dividends, 0, tax_data).total_tax
            actual = funding.gross_dividends - (tax - salary_only_tax)
            return replace(result, funding=replace(funding, after_tax_income=actual))

        request = target
        result = run(request)
        for iteration in range(MAX_CALIBRATION_ITERATIONS):
            shortfall = target - result.funding.after_tax_income
            if abs(shortfall) < CALIBRATION_TOLERANCE:
                break
            candidate = run(request + shortfall)
            if shortfall > 0 and candidate.funding.gross_dividends <= result.funding.gross_dividends + 0.01:
                # Accounts and cash are exhausted
                break
            request += shortfall
            result = candidate
            logger.debug("Dividend calibration %d: request %.2f, after-tax %.2f",
                         iteration + 1, request, result.funding.after_tax_income)
        return result

    def _compensate(self, strategy: str, fixed_salary: float, required: float, estimated_income: float,
                    accounts: NotionalAccounts, tax_data: TaxYearData, earnings_cash: float) -> Compensation:
        eligible_rate = effective_dividend_rate(tax_data, True, estimated_income)
        non_eligible_rate = effective_dividend_rate(tax_data, False, estimated_income)

        if strategy == "fixed" and fixed_salary > 0:
            salary = fixed_salary
            payroll = calculate_payroll(salary, tax_data)
            salary_tax = calculate_personal_tax(salary, 0, 0, 0, tax_data).total_tax
            salary_after_tax = salary - salary_tax - payroll.total_employee
            accounts = process_salary_payment(accounts, salary, payroll.employer_cost)
            waterfall = self._fund_with_dividends(max(0.0, required - salary_after_tax), salary, accounts, tax_data,
                                                  eligible_rate, non_eligible_rate, True, earnings_cash)
            return Compensation(salary, payroll, waterfall, waterfall.accounts)

        if strategy == "dividends-only":
            waterfall = self._fund_with_dividends(required, 0.0, accounts, tax_data,
                                                  eligible_rate, non_eligible_rate, True, earnings_cash)
            return Compensation(0.0, PayrollDeductions(), waterfall, waterfall.accounts)

        # Dynamic: notional accounts first, salary for whatever is left
        waterfall = self._fund_with_dividends(required, 0.0, accounts, tax_data,
                                              eligible_rate, non_eligible_rate, False, earnings_cash)
        accounts = waterfall.accounts
        salary = 0.0
        payroll = PayrollDeductions()
        remaining = required - waterfall.funding.after_tax_income
        if remaining > 1:
            salary = solve_required_salary(remaining, tax_data).salary
            payroll = calculate_payroll(salary, tax_data)
            accounts = process_salary_payment(accounts, salary, payroll.employer_cost)
        return Compensation(salary, payroll, waterfall, accounts)

    def _fund_ipp(self, accounts: NotionalAccounts, member_age: int, years_of_service: int,
                  salary: float, tax_data: TaxYearData, year_index: int):
        contribution = calculate_ipp_contribution(IPPMember(member_age, years_of_service, salary),
                                                  tax_data.small_business_rate, tax_data.year)
        admin_costs = ANNUAL_ACTUARIAL_COST + ANNUAL_ADMIN_COST
        if year_index == 0:
            admin_costs += SETUP_COST
        total_deductible = contribution.total_annual_contribution + admin_costs

        # The contribution can't overdraw the portfolio
        draw = min(total_deductible, max(0.0, accounts.corporate_investments))
        accounts = withdraw_from_corporation(accounts, draw)
        if draw < total_deductible:
            logger.debug("IPP funding in %d capped at %.2f of %.2f", tax_data.year, draw, total_deductible)

        ipp_year = IPPYear(
            member_age=member_age,
            years_of_service=years_of_service,
            contribution=contribution.total_annual_contribution,
            admin_costs=admin_costs,
            pension_adjustment=calculate_pension_adjustment(salary, tax_data.year),
            projected_annual_pension=contribution.projected_annual_pension,
            corporate_tax_savings=contribution.effective_tax_savings,
        )
        # Only what was actually paid is deductible
        return accounts, ipp_year, draw

    def _calculate_year(self, inputs: UserInputs, provider: TaxYearProvider, tax_data: TaxYearData,
                        starting_accounts: NotionalAccounts, year_index: int, return_rate: float,
                        inflation_rate: float, rrsp_room: float, tfsa_room: float,
                        spouse_rrsp_room: float, spouse_tfsa_room: float) -> YearlyResult:
        inflation = (1 + inflation_rate) ** year_index
        inflate = inflation if inputs.inflate_spending_needs else 1.0
        active_income = inputs.annual_corporate_retained_earnings or 0.0
        earnings_cash = max(0.0, active_income) * (1 - tax_data.general_rate)

        # 1. Investment returns on the opening balance
        returns = calculate_investment_returns(
            starting_accounts.corporate_investments, return_rate,
            inputs.canadian_equity_percent, inputs.us_equity_percent,
            inputs.international_equity_percent, inputs.fixed_income_percent)
        accounts = update_accounts_from_returns(starting_accounts, returns, tax_data.passive_investment_rate)

        # 2. Required income plus funded contributions
        base_required = inputs.required_income * inflate
        required = base_required
        tfsa_contribution = 0.0
        if inputs.maximize_tfsa and tfsa_room > 0:
            tfsa_contribution = min(tax_data.tfsa_limit, tfsa_room)
            required += tfsa_contribution
        resp_contribution = 0.0
        if inputs.contribute_to_resp and inputs.resp_contribution_amount:
            resp_contribution = inputs.resp_contribution_amount * inflate
            required += resp_contribution
        debt_paydown = 0.0
        if inputs.pay_down_debt and inputs.debt_paydown_amount:
            # Nominal amount, not inflated
            debt_paydown = inputs.debt_paydown_amount
            required += debt_paydown

        # 3. Salary and dividends
        primary = self._compensate(inputs.salary_strategy, inputs.fixed_salary_amount * inflate, required,
                                   base_required * ESTIMATED_INCOME_MULTIPLIER, accounts, tax_data, earnings_cash)
        accounts = primary.accounts
        salary = primary.salary
        funding = primary.waterfall.funding
        rdtoh_refund = primary.waterfall.rdtoh_refund
        logger.debug("Year %d: salary %.2f, dividends %.2f", tax_data.year, salary, funding.gross_dividends)

        # 4. Spouse, drawing on the same corporate accounts
        spouse = None
        spouse_comp = None
        spouse_required = 0.0
        spouse_base_required = inputs.spouse_required_income * inflate if inputs.has_spouse else 0.0
        spouse_tfsa_contribution = 0.0
        if inputs.has_spouse and spouse_base_required > 0:
            spouse_required = spouse_base_required
            if inputs.spouse_maximize_tfsa and spouse_tfsa_room > 0:
                spouse_tfsa_contribution = min(tax_data.tfsa_limit, spouse_tfsa_room)
                spouse_required += spouse_tfsa_contribution
            spouse_comp = self._compensate(inputs.spouse_salary_strategy, inputs.spouse_fixed_salary_amount * inflate,
                                           spouse_required, spouse_base_required * ESTIMATED_INCOME_MULTIPLIER,
                                           accounts, tax_data, earnings_cash)
            accounts = spouse_comp.accounts
            rdtoh_refund += spouse_comp.waterfall.rdtoh_refund
        spouse_salary = spouse_comp.salary if spouse_comp else 0.0
        spouse_employer_cost = spouse_comp.payroll.employer_cost if spouse_comp else 0.0

        # 5. IPP contributions
        ipp_deductible = 0.0
        primary_ipp = None
        if inputs.consider_ipp and salary > 0:
            accounts, primary_ipp, deductible = self._fund_ipp(
                accounts, inputs.ipp_member_age + year_index, inputs.ipp_years_of_service + year_index + 1,
                salary, tax_data, year_index)
            ipp_deductible += deductible
        spouse_ipp = None
        if inputs.has_spouse and inputs.spouse_consider_ipp and spouse_salary > 0:
            accounts, spouse_ipp, deductible = self._fund_ipp(
                accounts, inputs.spouse_ipp_age + year_index, inputs.spouse_ipp_years_of_service + year_index + 1,
                spouse_salary, tax_data, year_index)
            ipp_deductible += deductible

        # 6. RRSP contribution from this year's income
        rrsp_contribution = 0.0
        if inputs.contribute_to_rrsp and rrsp_room > 0:
            available = funding.after_tax_income + (salary * NET_SALARY_FRACTION if salary > 0 else 0.0)
            rrsp_contribution = max(0.0, min(rrsp_room, tax_data.rrsp_limit, available))

        # 7. Personal tax on combined salary and dividends, payroll, employer health tax
        personal = calculate_personal_tax(salary, funding.eligible_dividends, funding.non_eligible_dividends,
                                          rrsp_contribution, tax_data)
        payroll = calculate_payroll(salary, tax_data)
        employer_health_tax = provider.employer_health_tax(inputs.province, salary + spouse_salary, tax_data.year)

        if spouse_comp is not None:
            spouse = self._spouse_result(inputs, spouse_comp, spouse_ipp, spouse_rrsp_room,
                                         spouse_tfsa_contribution, tax_data)

        # 8. Corporate tax on active business income, with the passive income grind
        deductible = (salary + payroll.employer_cost + spouse_salary + spouse_employer_cost
                      + employer_health_tax + ipp_deductible)
        taxable_business_income = max(0.0, active_income - deductible)
        aaii = calculate_aaii(returns.foreign_income, returns.realized_capital_gain)
        grind = calculate_passive_income_grind(aaii, taxable_business_income,
                                               tax_data.small_business_rate, tax_data.general_rate)
        active_tax = calculate_active_income_tax(taxable_business_income, grind.reduced_sbd_limit,
                                                 tax_data.small_business_rate, tax_data.general_rate)
        # Salaries, payroll costs and IPP were paid out of the portfolio when made
        accounts = deposit_to_corporation(accounts, active_income - employer_health_tax - active_tax)
        passive_tax = calculate_passive_tax(aaii, tax_data.passive_investment_rate)

        # 9. Outputs
        after_tax_income = (salary + funding.gross_dividends - personal.total_tax
                            - payroll.cpp - payroll.cpp2 - payroll.ei - payroll.qpip)
        spouse_dividends = spouse.dividends.gross_dividends if spouse else 0.0
        compensation = salary + funding.gross_dividends + spouse_salary + spouse_dividends
        after_tax_business_income = taxable_business_income - active_tax
        corp_tax_portion = 0.0
        if after_tax_business_income > 0:
            corp_tax_portion = active_tax * min(1.0, (funding.gross_dividends + spouse_dividends)
                                                / after_tax_business_income)
        year_personal_tax = personal.total_tax + (spouse.personal_tax if spouse else 0.0)
        effective_integrated_rate = (year_personal_tax + corp_tax_portion) / compensation if compensation > 0 else 0.0

        total_tax = (personal.total_tax + active_tax + passive_tax
                     + payroll.cpp + payroll.cpp2 + payroll.ei + payroll.qpip)
        if spouse:
            total_tax += spouse.personal_tax + spouse.cpp + spouse.cpp2 + spouse.ei + spouse.qpip

        return YearlyResult(
            year=year_index + 1,
            calendar_year=tax_data.year,
            required_income=required,
            salary=salary,
            dividends=funding,
            personal_tax=personal.total_tax,
            federal_tax=personal.federal_tax,
            provincial_tax=personal.provincial_tax,
            provincial_surtax=personal.provincial_surtax,
            health_premium=personal.health_premium,
            cpp=payroll.cpp,
            cpp2=payroll.cpp2,
            ei=payroll.ei,
            qpip=payroll.qpip,
            employer_payroll_cost=payroll.employer_cost,
            employer_health_tax=employer_health_tax,
            taxable_business_income=taxable_business_income,
            corporate_tax=active_tax + passive_tax,
            corporate_tax_on_active=active_tax,
            corporate_tax_on_passive=passive_tax,
            rdtoh_refund=rdtoh_refund,
            total_tax=total_tax,
            after_tax_income=after_tax_income,
            effective_integrated_rate=effective_integrated_rate,
            rrsp_room_generated=salary * tax_data.rrsp_rate,
            rrsp_contribution=rrsp_contribution,
            tfsa_contribution=tfsa_contribution,
            resp_contribution=resp_contribution,
            debt_paydown=debt_paydown,
            notional_accounts=accounts,
            investment_returns=returns,
            passive_income_grind=grind,
            ipp=primary_ipp,
            spouse=spouse,
        )

    def _spouse_result(self, inputs: UserInputs, comp: Compensation, ipp: Optional[IPPYear],
                       rrsp_room: float, tfsa_contribution: float, tax_data: TaxYearData) -> SpouseResult:
        funding = comp.waterfall.funding
        rrsp_contribution = 0.0
        if inputs.spouse_contribute_to_rrsp and rrsp_room > 0:
            available = funding.after_tax_income + (comp.salary * NET_SALARY_FRACTION if comp.salary > 0 else 0.0)
            rrsp_contribution = max(0.0, min(rrsp_room, tax_data.rrsp_limit, available))

        personal = calculate_personal_tax(comp.salary, funding.eligible_dividends, funding.non_eligible_dividends,
                                          rrsp_contribution, tax_data)
        payroll = comp.payroll
        return SpouseResult(
            salary=comp.salary,
            dividends=funding,
            personal_tax=personal.total_tax,
            cpp=payroll.cpp,
            cpp2=payroll.cpp2,
            ei=payroll.ei,
            qpip=payroll.qpip,
            provincial_surtax=personal.provincial_surtax,
            health_premium=personal.health_premium,
            employer_payroll_cost=payroll.employer_cost,
            after_tax_income=comp.salary + funding.gross_dividends - personal.total_tax - payroll.total_employee,
            rrsp_room_generated=comp.salary * tax_data.rrsp_rate,
            rrsp_contribution=rrsp_contribution,
            tfsa_contribution=tfsa_contribution,
            ipp=ipp,
        )

    def _summarize(self, yearly_results: list) -> ProjectionSummary:
        summary = ProjectionSummary(yearly_results=yearly_results)
        total_passive_income = 0.0
        ipp = IPPSummary()
        has_ipp = False
        spouse = SpouseSummary()
        spouse_ipp = IPPSummary()
        has_spouse = False
        has_spouse_ipp = False

        for year in yearly_results:
            summary.total_salary += year.salary
            summary.total_dividends += year.dividends.gross_dividends
            summary.total_personal_tax += year.personal_tax
            summary.total_corporate_tax += year.corporate_tax
            summary.total_corporate_tax_on_active += year.corporate_tax_on_active
            summary.total_corporate_tax_on_passive += year.corporate_tax_on_passive
            summary.total_rdtoh_refund += year.rdtoh_refund
            summary.total_rrsp_room_generated += year.rrsp_room_generated
            summary.total_rrsp_contributions += year.rrsp_contribution
            summary.total_tfsa_contributions += year.tfsa_contribution
            summary.total_payroll_contributions += year.cpp + year.cpp2 + year.ei + year.qpip
            total_passive_income += year.investment_returns.total_return

            if year.spouse:
                has_spouse = True
                sp = year.spouse
                summary.total_salary += sp.salary
                summary.total_dividends += sp.dividends.gross_dividends
                summary.total_personal_tax += sp.personal_tax
                summary.total_rrsp_room_generated += sp.rrsp_room_generated
                summary.total_rrsp_contributions += sp.rrsp_contribution
                summary.total_tfsa_contributions += sp.tfsa_contribution
                summary.total_payroll_contributions += sp.cpp + sp.cpp2 + sp.ei + sp.qpip

                spouse.total_salary += sp.salary
                spouse.total_dividends += sp.dividends.gross_dividends
                spouse.total_personal_tax += sp.personal_tax
                spouse.total_after_tax_income += sp.after_tax_income
                spouse.total_rrsp_room_generated += sp.rrsp_room_generated
                spouse.total_rrsp_contributions += sp.rrsp_contribution
                spouse.total_tfsa_contributions += sp.tfsa_contribution
                if sp.ipp:
                    has_spouse_ipp = True
                    spouse_ipp.total_contributions += sp.ipp.contribution
                    spouse_ipp.total_admin_costs += sp.ipp.admin_costs
                    spouse_ipp.total_corporate_tax_savings += sp.ipp.corporate_tax_savings
                    spouse_ipp.total_pension_adjustments += sp.ipp.pension_adjustment
                    spouse_ipp.projected_annual_pension_at_end = sp.ipp.projected_annual_pension

            if year.ipp:
                has_ipp = True
                ipp.total_contributions += year.ipp.contribution
                ipp.total_admin_costs += year.ipp.admin_costs
                ipp.total_corporate_tax_savings += year.ipp.corporate_tax_savings
                ipp.total_pension_adjustments += year.ipp.pension_adjustment
                ipp.projected_annual_pension_at_end = year.ipp.projected_annual_pension

        summary.total_compensation = summary.total_salary + summary.total_dividends
        summary.total_tax = summary.total_personal_tax + summary.total_corporate_tax
        if summary.total_compensation > 0:
            summary.effective_tax_rate = summary.total_tax / summary.total_compensation
            summary.effective_compensation_rate = ((summary.total_personal_tax + summary.total_corporate_tax_on_active)
                                                   / summary.total_compensation)
        if total_passive_income > 0:
            summary.effective_passive_rate = ((summary.total_corporate_tax_on_passive - summary.total_rdtoh_refund)
                                              / total_passive_income)
        if yearly_results:
            summary.final_corporate_balance = yearly_results[-1].notional_accounts.corporate_investments
            summary.average_annual_income = summary.total_compensation / len(yearly_results)
        if has_ipp:
            summary.ipp = ipp
        if has_spouse:
            if has_spouse_ipp:
                spouse.ipp = spouse_ipp
            summary.spouse = spouse
        return summary
