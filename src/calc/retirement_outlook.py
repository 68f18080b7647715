from dataclasses import dataclass, field
from typing import List, Optional

from calc.cpp_benefit import CPPBenefitCalculator, CPPBenefitResult, CPPProjectionInputs
from calc.investment_returns import blended_return_rate
from calc.oas import OASResult, calculate_oas
from calc.rrif import RRIF_CONVERSION_AGE, RRIFYear, calculate_rrif_minimum, calculate_rrif_year
from model.ProjectionData import ProjectionSummary
from model.UserInputs import UserInputs
from tax.TaxYearProvider import TaxYearProvider


@dataclass
class RetirementOutlook:
    """Government benefits and registered withdrawals once the owner retires."""
    birth_year: int
    cpp: CPPBenefitResult
    cpp_start_age: int
    oas: OASResult
    oas_start_age: int
    rrsp_balance_at_conversion: float
    rrif_start_age: int
    rrif_schedule: List[RRIFYear] = field(default_factory=list)

    @property
    def first_year_income(self) -> float:
        """CPP, net OAS and the first RRIF minimum, before personal tax."""
        rrif = self.rrif_schedule[0].withdrawal if self.rrif_schedule else 0.0
        return self.cpp.total_annual_benefit + self.oas.net_oas + rrif


def project_retirement_outlook(inputs: UserInputs, summary: ProjectionSummary,
                               provider: Optional[TaxYearProvider] = None,
                               reference_dir: Optional[str] = None) -> RetirementOutlook:
    """Compose the CPP, OAS and RRIF projections for a completed projection.

    Salaries from the projection feed the CPP earnings history; RRSP
    contributions made during it are added to the actual RRSP balance, which
    then grows until conversion to a RRIF.

    Args:
        inputs: The inputs the projection was run with.
        summary: The projection's results.
        provider: Tax data provider, used for the inflation rate.
        reference_dir: Reference data directory for the CPP history.

    Returns:
        RetirementOutlook with the benefits and the RRIF minimum schedule.
    """
    provider = provider or TaxYearProvider(inputs.expected_inflation_rate, inputs.final_year, reference_dir)
    inflation_rate = provider.inflation_rate
    return_rate = inputs.investment_return_rate
    if return_rate is None:
        return_rate = blended_return_rate(inputs.canadian_equity_percent, inputs.us_equity_percent,
                                          inputs.international_equity_percent, inputs.fixed_income_percent)

    birth_year = inputs.starting_year - inputs.current_age
    projected_salaries = [year.salary for year in summary.yearly_results]
    cpp = CPPBenefitCalculator(inflation_rate, reference_dir).project_benefit(CPPProjectionInputs(
        birth_year=birth_year,
        salary_start_age=inputs.salary_start_age,
        average_historical_salary=inputs.average_historical_salary,
        current_age=inputs.current_age,
        cpp_start_age=inputs.cpp_start_age,
        projected_salaries=projected_salaries,
    ))

    # RRSP grows until it must become a RRIF, or until retirement if that is later
    rrif_start_age = max(RRIF_CONVERSION_AGE, inputs.retirement_age)
    contributions = [year.rrsp_contribution for year in summary.yearly_results]
    balance = max(0.0, inputs.actual_rrsp_balance)
    for index in range(max(0, rrif_start_age - inputs.current_age)):
        if index < len(contributions):
            balance += contributions[index]
        balance *= 1 + return_rate
    rrsp_balance_at_conversion = balance

    schedule = []
    for age in range(rrif_start_age, inputs.planning_end_age + 1):
        if balance <= 0:
            break
        rrif_year = calculate_rrif_year(balance, age, return_rate)
        schedule.append(rrif_year)
        balance = rrif_year.balance_after_growth

    oas_age = inputs.oas_start_age
    base_income = cpp.total_annual_benefit
    rrif_index = oas_age - rrif_start_age
    if 0 <= rrif_index < len(schedule):
        base_income += calculate_rrif_minimum(schedule[rrif_index].opening_balance, oas_age)
    oas = calculate_oas(birth_year + oas_age, oas_age, inputs.oas_start_age, inputs.oas_eligible,
                        base_income, inflation_rate)

    return RetirementOutlook(
        birth_year=birth_year,
        cpp=cpp,
        cpp_start_age=inputs.cpp_start_age,
        oas=oas,
        oas_start_age=inputs.oas_start_age,
        rrsp_balance_at_conversion=rrsp_balance_at_conversion,
        rrif_start_age=rrif_start_age,
        rrif_schedule=schedule,
    )
