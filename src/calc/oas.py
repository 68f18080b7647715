"""Old Age Security: age-based maximum, deferral bonus and the recovery tax."""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

OAS_BASE_YEAR = 2025
OAS_MAX_MONTHLY_65_74 = 727.67
OAS_MAX_MONTHLY_75_PLUS = 800.44  # Includes the 10% supplement at 75
OAS_CLAWBACK_THRESHOLD_2025 = 93454
OAS_CLAWBACK_RATE = 0.15
OAS_DEFERRAL_BONUS_PER_MONTH = 0.006
OAS_MAX_DEFERRAL_MONTHS = 60
OAS_MIN_START_AGE = 65
OAS_MAX_START_AGE = 70


@dataclass
class OASResult:
    gross_oas: float = 0.0  # Annual, before recovery tax
    clawback: float = 0.0
    net_oas: float = 0.0
    iterations: int = 0


def max_oas_benefit(calendar_year: int, age: int, start_age: int, inflation_rate: float) -> float:
    """Maximum annual OAS including the deferral bonus; 0 before the start age."""
    if age < start_age:
        return 0.0
    clamped_start = max(OAS_MIN_START_AGE, min(OAS_MAX_START_AGE, start_age))
    factor = (1 + inflation_rate) ** (calendar_year - OAS_BASE_YEAR)
    monthly = (OAS_MAX_MONTHLY_75_PLUS if age >= 75 else OAS_MAX_MONTHLY_65_74) * factor
    deferral_months = min((clamped_start - OAS_MIN_START_AGE) * 12, OAS_MAX_DEFERRAL_MONTHS)
    return monthly * (1 + deferral_months * OAS_DEFERRAL_BONUS_PER_MONTH) * 12


def clawback_threshold(calendar_year: int, inflation_rate: float) -> float:
    return OAS_CLAWBACK_THRESHOLD_2025 * (1 + inflation_rate) ** (calendar_year - OAS_BASE_YEAR)


def solve_oas_with_clawback(base_income: float, max_oas: float, threshold: float,
                            max_iterations: int = 10, tolerance: float = 0.01) -> OASResult:
    """Resolve the recovery tax, which depends on income that includes OAS itself.

    Args:
        base_income: Taxable income before OAS.
        max_oas: Maximum annual OAS for the year.
        threshold: Recovery tax threshold for the year.

    Returns:
        OASResult; iterations is 0 when a closed-form case applied.
    """
    if max_oas <= 0:
        return OASResult()

    full_clawback_income = threshold + max_oas / OAS_CLAWBACK_RATE
    if base_income >= full_clawback_income:
        return OASResult(gross_oas=max_oas, clawback=max_oas, net_oas=0.0)
    if base_income + max_oas <= threshold:
        return OASResult(gross_oas=max_oas, clawback=0.0, net_oas=max_oas)

    net_oas = max_oas
    for iteration in range(1, max_iterations + 1):
        excess = max(0.0, base_income + net_oas - threshold)
        new_net = max_oas - min(max_oas, excess * OAS_CLAWBACK_RATE)
        converged = abs(new_net - net_oas) < tolerance
        net_oas = new_net
        if converged:
            return OASResult(gross_oas=max_oas, clawback=max_oas - net_oas, net_oas=net_oas, iterations=iteration)

    logger.warning("OAS clawback solver did not converge for income %.2f", base_income)
    return OASResult(gross_oas=max_oas, clawback=max_oas - net_oas, net_oas=net_oas, iterations=max_iterations)


def calculate_oas(calendar_year: int, age: int, start_age: int, eligible: bool,
                  base_income_before_oas: float, inflation_rate: float) -> OASResult:
    if not eligible or age < start_age:
        return OASResult()
    max_oas = max_oas_benefit(calendar_year, age, start_age, inflation_rate)
    threshold = clawback_threshold(calendar_year, inflation_rate)
    return solve_oas_with_clawback(base_income_before_oas, max_oas, threshold)
