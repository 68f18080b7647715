import logging
from dataclasses import dataclass
from typing import Sequence

from model.TaxYearData import Bracket, HealthPremiumBracket, Surtax, TaxYearData
from tax.Payroll import calculate_payroll

logger = logging.getLogger(__name__)

# Ontario Health Premium is nil at or below this income
HEALTH_PREMIUM_FLOOR = 20000


@dataclass
class PersonalTaxResult:
    federal_tax: float = 0.0
    provincial_tax: float = 0.0  # Includes surtax
    provincial_surtax: float = 0.0
    health_premium: float = 0.0
    dividend_tax_credits: float = 0.0
    taxable_income: float = 0.0
    total_tax: float = 0.0


@dataclass
class SalarySolution:
    salary: float
    after_tax: float
    iterations: int
    converged: bool


def bracket_tax(brackets: Sequence[Bracket], income: float) -> float:
    """Progressive tax on income for brackets given by their starting threshold."""
    if income <= 0:
        return 0.0
    tax = 0.0
    for i, bracket in enumerate(brackets):
        if income <= bracket.threshold:
            break
        upper = brackets[i + 1].threshold if i + 1 < len(brackets) else float('inf')
        tax += (min(income, upper) - bracket.threshold) * bracket.rate
    return tax


def marginal_rate(brackets: Sequence[Bracket], income: float) -> float:
    """Return the rate of the highest bracket whose threshold is below income."""
    if not brackets:
        return 0.0
    rate = brackets[0].rate
    for bracket in brackets:
        if income > bracket.threshold:
            rate = bracket.rate
    return rate


def calculate_surtax(provincial_tax: float, surtax: Surtax) -> float:
    """Surtax applied on provincial tax after credits (Ontario, PEI)."""
    if surtax is None:
        return 0.0
    total = 0.0
    if provincial_tax > surtax.first_threshold:
        total += (provincial_tax - surtax.first_threshold) * surtax.first_rate
    if surtax.second_threshold is not None and provincial_tax > surtax.second_threshold:
        total += (provincial_tax - surtax.second_threshold) * surtax.second_rate
    return total


def calculate_health_premium(income: float, brackets: Sequence[HealthPremiumBracket]) -> float:
    if not brackets or income <= HEALTH_PREMIUM_FLOOR:
        return 0.0
    applicable = None
    for bracket in brackets:
        if income > bracket.threshold:
            applicable = bracket
    if applicable is None:
        return 0.0
    premium = applicable.base + (income - applicable.threshold) * applicable.rate
    return min(premium, applicable.max_premium)


def calculate_personal_tax(salary: float, eligible_dividends: float, non_eligible_dividends: float,
                           rrsp_deduction: float, tax_data: TaxYearData) -> PersonalTaxResult:
    """Calculate combined federal and provincial personal income tax.

    Dividends are grossed up into taxable income and offset by the dividend tax
    credits. The basic personal amount is deducted from taxable income before the
    brackets are applied. Provincial surtax is computed on provincial tax after
    credits, and the health premium on actual (not grossed-up) income.

    Args:
        salary: Employment income.
        eligible_dividends: Actual eligible dividends received.
        non_eligible_dividends: Actual non-eligible dividends received.
        rrsp_deduction: RRSP contribution deducted this year.
        tax_data: Tax snapshot for the year and province.

    Returns:
        PersonalTaxResult with the components and total.
    """
    div = tax_data.dividends
    grossed_eligible = eligible_dividends * (1 + div.eligible_gross_up)
    grossed_non_eligible = non_eligible_dividends * (1 + div.non_eligible_gross_up)

    taxable_income = max(0.0, salary + grossed_eligible + grossed_non_eligible - rrsp_deduction)
    if taxable_income <= 0:
        return PersonalTaxResult()

    federal_credits = (grossed_eligible * div.eligible_federal_credit
                       + grossed_non_eligible * div.non_eligible_federal_credit)
    provincial_credits = (grossed_eligible * div.eligible_provincial_credit
                          + grossed_non_eligible * div.non_eligible_provincial_credit)

    federal_taxable = max(0.0, taxable_income - tax_data.federal_basic_personal_amount)
    federal_tax = max(0.0, bracket_tax(tax_data.federal_brackets, federal_taxable) - federal_credits)

    provincial_taxable = max(0.0, taxable_income - tax_data.provincial_basic_personal_amount)
    basic_provincial = max(0.0, bracket_tax(tax_data.provincial_brackets, provincial_taxable) - provincial_credits)
    surtax = calculate_surtax(basic_provincial, tax_data.surtax)
    provincial_tax = basic_provincial + surtax

    actual_income = salary + eligible_dividends + non_eligible_dividends - rrsp_deduction
    health_premium = calculate_health_premium(actual_income, tax_data.health_premium)

    return PersonalTaxResult(
        federal_tax=federal_tax,
        provincial_tax=provincial_tax,
        provincial_surtax=surtax,
        health_premium=health_premium,
        dividend_tax_credits=federal_credits + provincial_credits,
        taxable_income=taxable_income,
        total_tax=federal_tax + provincial_tax + health_premium,
    )


def effective_dividend_rate(tax_data: TaxYearData, eligible: bool, estimated_income: float) -> float:
    """Approximate personal tax rate on an extra dollar of dividends.

    Uses the marginal federal and provincial rates at the estimated income on the
    grossed-up dividend, less the dividend tax credits.
    """
    div = tax_data.dividends
    if eligible:
        gross_up = div.eligible_gross_up
        credit = div.eligible_federal_credit + div.eligible_provincial_credit
    else:
        gross_up = div.non_eligible_gross_up
        credit = div.non_eligible_federal_credit + div.non_eligible_provincial_credit

    combined_marginal = (marginal_rate(tax_data.federal_brackets, estimated_income)
                         + marginal_rate(tax_data.provincial_brackets, estimated_income))
    grossed = 1 + gross_up
    return max(0.0, grossed * combined_marginal - grossed * credit)


def solve_required_salary(target_after_tax: float, tax_data: TaxYearData,
                          max_iterations: int = 10, tolerance: float = 1.0) -> SalarySolution:
    """Find the salary whose after-tax, after-payroll amount meets a target.

    Starts at 1.5x the target and steps by 1.4x the shortfall each iteration.
    """
    if target_after_tax <= 0:
        return SalarySolution(0.0, 0.0, 0, True)

    salary = target_after_tax * 1.5
    after_tax = 0.0
    for iteration in range(1, max_iterations + 1):
        tax = calculate_personal_tax(salary, 0, 0, 0, tax_data).total_tax
        payroll = calculate_payroll(salary, tax_data)
        after_tax = salary - tax - payroll.total_employee
        diff = target_after_tax - after_tax
        if abs(diff) < tolerance:
            logger.debug("Salary solver converged at %.2f after %d iterations", salary, iteration)
            return SalarySolution(salary, after_tax, iteration, True)
        salary = max(0.0, salary + diff * 1.4)

    logger.warning("Salary solver did not converge for target %.2f; using %.2f", target_after_tax, salary)
    tax = calculate_personal_tax(salary, 0, 0, 0, tax_data).total_tax
    after_tax = salary - tax - calculate_payroll(salary, tax_data).total_employee
    return SalarySolution(salary, after_tax, max_iterations, False)
