import json
import math
import os
from dataclasses import dataclass, field
from typing import List, Optional

from tax.indexation import inflation_factor, round_dollars, validate_tax_years

FIRST_CPP_YEAR = 1966
MIN_CONTRIBUTORY_AGE = 18
MAX_CONTRIBUTORY_AGE = 70
NORMAL_START_AGE = 65
MIN_START_AGE = 60
MAX_START_AGE = 70
EARLY_REDUCTION_PER_MONTH = 0.006
LATE_INCREASE_PER_MONTH = 0.007
GENERAL_DROPOUT_FRACTION = 0.17
BASE_REPLACEMENT_RATE = 0.25
ENHANCED_REPLACEMENT_RATE = 0.0833
CPP2_REPLACEMENT_RATE = 0.3333
FULL_CONTRIBUTORY_MONTHS = 40 * 12
ENHANCED_START_YEAR = 2019
CPP2_START_YEAR = 2024
FROZEN_BASIC_EXEMPTION = 3500


@dataclass
class CPPBenefitResult:
    base_cpp: float = 0.0  # After early/late adjustment
    enhanced_cpp: float = 0.0
    cpp2_benefit: float = 0.0
    total_annual_benefit: float = 0.0
    monthly_benefit: float = 0.0
    ampe: float = 0.0  # Average monthly pensionable earnings after dropout
    contributory_months: int = 0
    dropped_months: int = 0


@dataclass
class CPPProjectionInputs:
    birth_year: int
    salary_start_age: int
    average_historical_salary: float
    current_age: int
    cpp_start_age: int
    projected_salaries: List[float] = field(default_factory=list)  # One per year from current_age


def apply_general_dropout(monthly_earnings: List[float]):
    """Drop the lowest 17% of earning periods.

    Returns:
        Tuple of (kept earnings sorted ascending, number dropped).
    """
    drop_count = math.floor(len(monthly_earnings) * GENERAL_DROPOUT_FRACTION)
    kept = sorted(monthly_earnings)[drop_count:]
    return kept, drop_count


def calculate_base_cpp(ampe: float) -> float:
    """Annual base CPP at 65: 25% of average monthly pensionable earnings."""
    return ampe * BASE_REPLACEMENT_RATE * 12


def early_late_factor(start_age: int) -> float:
    """-0.6% per month before 65, +0.7% per month after; start age clamped to 60-70."""
    age = max(MIN_START_AGE, min(MAX_START_AGE, start_age))
    months_from_normal = (age - NORMAL_START_AGE) * 12
    if months_from_normal < 0:
        return 1 - abs(months_from_normal) * EARLY_REDUCTION_PER_MONTH
    if months_from_normal > 0:
        return 1 + months_from_normal * LATE_INCREASE_PER_MONTH
    return 1.0


def apply_early_late_adjustment(annual_benefit_at_65: float, start_age: int) -> float:
    return annual_benefit_at_65 * early_late_factor(start_age)


class CPPBenefitCalculator:
    """Projects a CPP retirement pension from a contributory earnings history.

    Historical YMPE and basic exemption values come from reference/cpp-history.json;
    later years are projected from the last entry with the inflation rate.
    """

    def __init__(self, inflation_rate: float, reference_dir: Optional[str] = None):
        self.inflation_rate = inflation_rate
        self.reference_dir = reference_dir or os.path.join(os.path.dirname(__file__), '../../reference')
        self.data_by_year = {}
        self.enhanced_phase_in = {}
        self._load_history()

    def _load_history(self):
        ref_path = os.path.join(self.reference_dir, 'cpp-history.json')
        with open(ref_path, 'r') as f:
            data = json.load(f)

        tax_years = validate_tax_years(data.get("taxYears", []), "cpp-history.json")
        for year_data in tax_years:
            self.data_by_year[year_data["year"]] = year_data
        self.last_known_year = tax_years[-1]["year"]
        self.enhanced_phase_in = {int(k): v for k, v in data.get("enhancedPhaseIn", {}).items()}

    def get_ympe(self, year: int) -> float:
        if year <= self.last_known_year:
            data = self.data_by_year.get(year)
            return data["ympe"] if data else 0.0
        base = self.data_by_year[self.last_known_year]["ympe"]
        return round_dollars(base * inflation_factor(self.inflation_rate, year - self.last_known_year))

    def get_yampe(self, year: int) -> float:
        if year < CPP2_START_YEAR:
            return 0.0
        if year <= self.last_known_year:
            return self.data_by_year[year].get("yampe", 0.0)
        base = self.data_by_year[self.last_known_year]["yampe"]
        return round_dollars(base * inflation_factor(self.inflation_rate, year - self.last_known_year))

    def get_basic_exemption(self, year: int) -> float:
        if year <= self.last_known_year:
            data = self.data_by_year.get(year)
            return data["basicExemption"] if data else 0.0
        return FROZEN_BASIC_EXEMPTION

    def _salary_for_year(self, inputs: CPPProjectionInputs, year: int) -> float:
        projection_start_year = inputs.birth_year + inputs.current_age
        age = year - inputs.birth_year
        if year < projection_start_year:
            return inputs.average_historical_salary if age >= inputs.salary_start_age else 0.0
        index = year - projection_start_year
        if index < len(inputs.projected_salaries):
            return inputs.projected_salaries[index]
        return 0.0

    def build_contributory_earnings(self, inputs: CPPProjectionInputs):
        """Pensionable earnings for each contributory year.

        The period runs from age 18 (or 1966) to the year before the pension
        starts, ending no later than age 70.

        Returns:
            Tuple of (pensionable earnings list, calendar years list).
        """
        start_age = max(MIN_CONTRIBUTORY_AGE, FIRST_CPP_YEAR - inputs.birth_year)
        end_age = min(inputs.cpp_start_age - 1, MAX_CONTRIBUTORY_AGE)

        earnings = []
        years = []
        for age in range(start_age, end_age + 1):
            year = inputs.birth_year + age
            if year < FIRST_CPP_YEAR:
                continue
            salary = self._salary_for_year(inputs, year)
            pensionable = max(0.0, min(salary, self.get_ympe(year)) - self.get_basic_exemption(year))
            earnings.append(pensionable)
            years.append(year)
        return earnings, years

    def calculate_enhanced_cpp(self, years: List[int], monthly_earnings: List[float]) -> float:
        """First additional CPP: 8.33% replacement, prorated by phased-in months over 40 years."""
        if not years or not monthly_earnings:
            return 0.0
        enhanced_months = 0.0
        for year in years:
            if year < ENHANCED_START_YEAR:
                continue
            enhanced_months += 12 * self.enhanced_phase_in.get(year, 1.0)
        if enhanced_months == 0:
            return 0.0
        proportion = min(enhanced_months / FULL_CONTRIBUTORY_MONTHS, 1.0)
        average = sum(monthly_earnings) / len(monthly_earnings)
        return average * ENHANCED_REPLACEMENT_RATE * 12 * proportion

    def calculate_cpp2_benefit(self, years: List[int], salary_by_year: dict) -> float:
        """Second additional CPP: 33.33% of average earnings in the YMPE-YAMPE band."""
        band_total = 0.0
        band_years = 0
        for year in years:
            if year < CPP2_START_YEAR:
                continue
            ympe = self.get_ympe(year)
            yampe = self.get_yampe(year)
            salary = salary_by_year.get(year, 0.0)
            if salary > ympe and yampe > ympe:
                band_total += min(salary, yampe) - ympe
                band_years += 1
        if band_years == 0:
            return 0.0
        proportion = min(band_years * 12 / FULL_CONTRIBUTORY_MONTHS, 1.0)
        average_monthly_band = band_total / band_years / 12
        return average_monthly_band * CPP2_REPLACEMENT_RATE * 12 * proportion

    def project_benefit(self, inputs: CPPProjectionInputs) -> CPPBenefitResult:
        """Project the annual CPP retirement pension at the chosen start age.

        The early/late adjustment applies to the base component only.
        """
        earnings, years = self.build_contributory_earnings(inputs)
        if not earnings:
            return CPPBenefitResult()

        monthly = [e / 12 for e in earnings]
        kept, dropped = apply_general_dropout(monthly)
        ampe = sum(kept) / len(kept) if kept else 0.0

        base_cpp = apply_early_late_adjustment(calculate_base_cpp(ampe), inputs.cpp_start_age)
        enhanced_cpp = self.calculate_enhanced_cpp(years, kept)
        salary_by_year = {year: self._salary_for_year(inputs, year) for year in years}
        cpp2_benefit = self.calculate_cpp2_benefit(years, salary_by_year)

        total = base_cpp + enhanced_cpp + cpp2_benefit
        return CPPBenefitResult(
            base_cpp=base_cpp,
            enhanced_cpp=enhanced_cpp,
            cpp2_benefit=cpp2_benefit,
            total_annual_benefit=total,
            monthly_benefit=total / 12,
            ampe=ampe,
            contributory_months=len(kept),
            dropped_months=dropped,
        )
