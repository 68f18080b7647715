from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class NotionalAccounts:
    """Corporate notional tax accounts and the investment portfolio.

    Transitions always build a new instance (dataclasses.replace); nothing
    mutates a NotionalAccounts in place.
    """
    cda: float = 0.0  # Capital Dividend Account
    erdtoh: float = 0.0  # Eligible RDTOH
    nrdtoh: float = 0.0  # Non-eligible RDTOH
    grip: float = 0.0  # General Rate Income Pool
    corporate_investments: float = 0.0  # Market value of the corporate portfolio
    corporate_acb: float = 0.0  # Adjusted cost base of the portfolio


@dataclass
class GrindResult:
    total_passive_income: float
    excess_passive_income: float
    sbd_reduction: float
    reduced_sbd_limit: float
    is_fully_grounded: bool
    grind_percentage: float
    additional_tax_from_grind: float  # Extra tax from active income moved to the general rate


@dataclass(frozen=True)
class InvestmentReturns:
    total_return: float = 0.0
    canadian_dividends: float = 0.0
    foreign_dividends: float = 0.0
    foreign_income: float = 0.0  # Foreign dividends + interest
    realized_capital_gain: float = 0.0
    unrealized_capital_gain: float = 0.0
    cda_increase: float = 0.0
    nrdtoh_increase: float = 0.0
    erdtoh_increase: float = 0.0
    grip_increase: float = 0.0


@dataclass(frozen=True)
class DividendFunding:
    capital_dividends: float = 0.0  # Tax-free, from CDA
    eligible_dividends: float = 0.0
    non_eligible_dividends: float = 0.0
    regular_dividends: float = 0.0  # Taxable dividends paid without an RDTOH refund
    gross_dividends: float = 0.0
    after_tax_income: float = 0.0  # Estimated personal after-tax amount


@dataclass
class IPPYear:
    member_age: int
    years_of_service: int
    contribution: float
    admin_costs: float
    pension_adjustment: float
    projected_annual_pension: float
    corporate_tax_savings: float


@dataclass
class SpouseResult:
    salary: float = 0.0
    dividends: DividendFunding = field(default_factory=DividendFunding)
    personal_tax: float = 0.0
    cpp: float = 0.0
    cpp2: float = 0.0
    ei: float = 0.0
    qpip: float = 0.0
    provincial_surtax: float = 0.0
    health_premium: float = 0.0
    employer_payroll_cost: float = 0.0
    after_tax_income: float = 0.0
    rrsp_room_generated: float = 0.0
    rrsp_contribution: float = 0.0
    tfsa_contribution: float = 0.0
    ipp: Optional[IPPYear] = None


@dataclass
class YearlyResult:
    """One projected year; accounts reflect balances after the year's activity."""
    year: int  # 1-based index into the projection
    calendar_year: int
    required_income: float = 0.0

    # Compensation
    salary: float = 0.0
    dividends: DividendFunding = field(default_factory=DividendFunding)

    # Personal tax
    personal_tax: float = 0.0
    federal_tax: float = 0.0
    provincial_tax: float = 0.0
    provincial_surtax: float = 0.0
    health_premium: float = 0.0

    # Payroll
    cpp: float = 0.0
    cpp2: float = 0.0
    ei: float = 0.0
    qpip: float = 0.0
    employer_payroll_cost: float = 0.0
    employer_health_tax: float = 0.0

    # Corporate
    taxable_business_income: float = 0.0
    corporate_tax: float = 0.0
    corporate_tax_on_active: float = 0.0
    corporate_tax_on_passive: float = 0.0
    rdtoh_refund: float = 0.0

    # Totals
    total_tax: float = 0.0
    after_tax_income: float = 0.0
    effective_integrated_rate: float = 0.0

    # Registered accounts and other uses of income
    rrsp_room_generated: float = 0.0
    rrsp_contribution: float = 0.0
    tfsa_contribution: float = 0.0
    resp_contribution: float = 0.0
    debt_paydown: float = 0.0

    notional_accounts: NotionalAccounts = field(default_factory=NotionalAccounts)
    investment_returns: InvestmentReturns = field(default_factory=InvestmentReturns)
    passive_income_grind: Optional[GrindResult] = None
    ipp: Optional[IPPYear] = None
    spouse: Optional[SpouseResult] = None


@dataclass
class IPPSummary:
    total_contributions: float = 0.0
    total_admin_costs: float = 0.0
    total_corporate_tax_savings: float = 0.0
    total_pension_adjustments: float = 0.0
    projected_annual_pension_at_end: float = 0.0


@dataclass
class SpouseSummary:
    total_salary: float = 0.0
    total_dividends: float = 0.0
    total_personal_tax: float = 0.0
    total_after_tax_income: float = 0.0
    total_rrsp_room_generated: float = 0.0
    total_rrsp_contributions: float = 0.0
    total_tfsa_contributions: float = 0.0
    ipp: Optional[IPPSummary] = None


@dataclass
class ProjectionSummary:
    total_compensation: float = 0.0
    total_salary: float = 0.0
    total_dividends: float = 0.0
    total_personal_tax: float = 0.0
    total_corporate_tax: float = 0.0
    total_corporate_tax_on_active: float = 0.0
    total_corporate_tax_on_passive: float = 0.0
    total_rdtoh_refund: float = 0.0
    total_payroll_contributions: float = 0.0  # Employee CPP/CPP2/EI/QPIP
    total_tax: float = 0.0  # Personal + corporate
    effective_tax_rate: float = 0.0
    effective_compensation_rate: float = 0.0
    effective_passive_rate: float = 0.0
    final_corporate_balance: float = 0.0
    total_rrsp_room_generated: float = 0.0
    total_rrsp_contributions: float = 0.0
    total_tfsa_contributions: float = 0.0
    average_annual_income: float = 0.0
    yearly_results: List[YearlyResult] = field(default_factory=list)
    ipp: Optional[IPPSummary] = None
    spouse: Optional[SpouseSummary] = None

    def get_year(self, calendar_year: int) -> YearlyResult:
        for result in self.yearly_results:
            if result.calendar_year == calendar_year:
                return result
        raise ValueError(f"No projection data available for year {calendar_year}")

    @property
    def first_year(self) -> int:
        return self.yearly_results[0].calendar_year if self.yearly_results else 0

    @property
    def last_year(self) -> int:
        return self.yearly_results[-1].calendar_year if self.yearly_results else 0
