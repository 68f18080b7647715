"""Immutable tax-year snapshots handed to the calculators.

A TaxYearData is assembled by tax.TaxYearProvider for one (year, province)
pair. Corporate rates are combined federal + provincial.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


class TaxDataUnavailableError(ValueError):
    """Raised when no tax data exists for a requested year or province."""


@dataclass(frozen=True)
class Bracket:
    threshold: float  # Income at which this rate starts
    rate: float


@dataclass(frozen=True)
class Surtax:
    first_threshold: float
    first_rate: float
    second_threshold: Optional[float] = None  # PEI has a single threshold
    second_rate: float = 0.0


@dataclass(frozen=True)
class HealthPremiumBracket:
    threshold: float
    base: float
    rate: float
    max_premium: float


@dataclass(frozen=True)
class PayrollParameters:
    """CPP/CPP2/EI parameters, or QPP/QPP2/QPIP/EI for Quebec."""
    pension_rate: float
    ympe: float
    basic_exemption: float
    pension_max: float
    second_rate: float
    yampe: float
    second_max: float
    ei_rate: float
    ei_max_insurable: float
    ei_max_premium: float
    ei_employer_multiplier: float = 1.4
    qpip_employee_rate: float = 0.0
    qpip_employer_rate: float = 0.0
    qpip_max_insurable: float = 0.0
    qpip_max_employee: float = 0.0
    qpip_max_employer: float = 0.0
    is_quebec: bool = False


@dataclass(frozen=True)
class DividendRates:
    eligible_gross_up: float
    eligible_federal_credit: float
    eligible_provincial_credit: float
    non_eligible_gross_up: float
    non_eligible_federal_credit: float
    non_eligible_provincial_credit: float


@dataclass(frozen=True)
class TaxYearData:
    year: int
    province: str
    federal_brackets: Tuple[Bracket, ...]
    federal_basic_personal_amount: float
    provincial_brackets: Tuple[Bracket, ...]
    provincial_basic_personal_amount: float
    payroll: PayrollParameters
    dividends: DividendRates
    small_business_rate: float  # Combined federal + provincial
    general_rate: float  # Combined federal + provincial
    passive_investment_rate: float
    top_combined_rate: float
    rrsp_rate: float
    rrsp_limit: float
    tfsa_limit: float
    rdtoh_refund_rate: float
    surtax: Optional[Surtax] = None
    health_premium: Tuple[HealthPremiumBracket, ...] = ()
