"""Individual Pension Plan contribution estimates.

Contributions are the present value of the pension accrued for a year of
service, discounted from normal retirement at 65 and paid for 25 years.
"""

from dataclasses import dataclass, field
from typing import List

# Maximum pension per year of service (defined benefit limit)
MAX_BENEFIT_PER_YEAR = {
    2025: 3610.67,
    2026: 3725.00,
}
DEFAULT_LIMIT_YEAR = 2026
BENEFIT_ACCRUAL_RATE = 0.02
ACTUARIAL_DISCOUNT_RATE = 0.0525
NORMAL_RETIREMENT_AGE = 65
ANNUITY_YEARS = 25
PA_MULTIPLIER = 9
PA_OFFSET = 600

SETUP_COST = 2500
ANNUAL_ACTUARIAL_COST = 1500
ANNUAL_ADMIN_COST = 500
TRIENNIAL_VALUATION_COST = 3000


@dataclass
class IPPMember:
    age: int
    years_of_service: int
    current_salary: float


@dataclass
class IPPContribution:
    current_service_cost: float
    past_service_cost: float
    total_annual_contribution: float
    projected_annual_pension: float
    rrsp_room_reduction: float  # Pension adjustment
    effective_tax_savings: float
    break_even_age: int


@dataclass
class IPPComparison:
    ipp_contribution: float
    rrsp_contribution: float
    difference: float
    ipp_advantage: bool
    notes: List[str] = field(default_factory=list)


@dataclass
class NetIPPBenefit:
    gross_contribution: float
    admin_costs: float
    net_contribution: float
    tax_savings: float
    net_benefit: float


def max_benefit_per_year(year: int) -> float:
    return MAX_BENEFIT_PER_YEAR.get(year, MAX_BENEFIT_PER_YEAR[DEFAULT_LIMIT_YEAR])


def calculate_annual_pension(years_of_service: int, average_earnings: float, year: int) -> float:
    per_year = min(average_earnings * BENEFIT_ACCRUAL_RATE, max_benefit_per_year(year))
    return per_year * years_of_service


def present_value_factor(current_age: int, retirement_age: int = NORMAL_RETIREMENT_AGE,
                         discount_rate: float = ACTUARIAL_DISCOUNT_RATE) -> float:
    years_to_retirement = max(0, retirement_age - current_age)
    annuity = (1 - (1 + discount_rate) ** -ANNUITY_YEARS) / discount_rate
    return annuity / (1 + discount_rate) ** years_to_retirement


def calculate_current_service_cost(member: IPPMember, year: int) -> float:
    accrual = calculate_annual_pension(1, member.current_salary, year)
    return accrual * present_value_factor(member.age)


def calculate_past_service_cost(member: IPPMember, past_years: int, average_past_earnings: float, year: int) -> float:
    if past_years <= 0:
        return 0.0
    return calculate_annual_pension(past_years, average_past_earnings, year) * present_value_factor(member.age)


def calculate_pension_adjustment(current_salary: float, year: int) -> float:
    accrual = calculate_annual_pension(1, current_salary, year)
    return max(0.0, PA_MULTIPLIER * accrual - PA_OFFSET)


def calculate_ipp_contribution(member: IPPMember, corporate_tax_rate: float, year: int) -> IPPContribution:
    """Annual IPP funding for one more year of service.

    Past service is not funded here; see calculate_past_service_cost.
    """
    current = calculate_current_service_cost(member, year)
    past = 0.0
    total = current + past
    return IPPContribution(
        current_service_cost=current,
        past_service_cost=past,
        total_annual_contribution=total,
        projected_annual_pension=calculate_annual_pension(member.years_of_service + 1, member.current_salary, year),
        rrsp_room_reduction=calculate_pension_adjustment(member.current_salary, year),
        effective_tax_savings=total * corporate_tax_rate,
        break_even_age=40 if member.current_salary > 150000 else 45,
    )


def annual_admin_cost() -> float:
    """Ongoing yearly cost, with the triennial valuation amortized."""
    return ANNUAL_ACTUARIAL_COST + ANNUAL_ADMIN_COST + TRIENNIAL_VALUATION_COST / 3


def calculate_net_ipp_benefit(member: IPPMember, corporate_tax_rate: float, year: int) -> NetIPPBenefit:
    gross = calculate_ipp_contribution(member, corporate_tax_rate, year).total_annual_contribution
    admin = annual_admin_cost()
    net = gross - admin
    tax_savings = (gross + admin) * corporate_tax_rate
    return NetIPPBenefit(
        gross_contribution=gross,
        admin_costs=admin,
        net_contribution=net,
        tax_savings=tax_savings,
        net_benefit=net + tax_savings,
    )


def compare_ipp_vs_rrsp(member: IPPMember, rrsp_limit: float, year: int) -> IPPComparison:
    contribution = calculate_ipp_contribution(member, 0.12, year).total_annual_contribution
    difference = contribution - rrsp_limit
    advantage = difference > 0

    notes = []
    if member.age < 40:
        notes.append("IPP typically not advantageous under age 40")
    elif member.age >= 50:
        notes.append("IPP provides significantly higher contribution room at 50+")
    if member.current_salary < 100000:
        notes.append("IPP benefits increase with higher pensionable earnings")
    if advantage:
        notes.append(f"IPP allows ${difference:,.0f} more in annual contributions")
    else:
        notes.append("RRSP may be simpler with similar contribution room at your age")

    return IPPComparison(
        ipp_contribution=contribution,
        rrsp_contribution=rrsp_limit,
        difference=difference,
        ipp_advantage=advantage,
        notes=notes,
    )
