from dataclasses import dataclass, fields
from typing import Optional

STRATEGIES = ("dynamic", "fixed", "dividends-only")
PROVINCE_CODES = ("AB", "BC", "MB", "NB", "NL", "NS", "NT", "NU", "ON", "PE", "QC", "SK", "YT")


@dataclass(frozen=True)
class UserInputs:
    """Everything a projection run needs from the user.

    Built from a program's spec.json via from_spec; spec keys are the camelCase
    form of these field names (e.g. requiredIncome, eRDTOHBalance).
    """
    province: str = "ON"
    required_income: float = 100000  # After-tax, year 1 dollars
    planning_horizon: int = 5
    starting_year: int = 2026
    expected_inflation_rate: Optional[float] = None  # None uses the CRA indexation factor
    inflate_spending_needs: bool = True

    # Starting balances
    corporate_investment_balance: float = 500000
    corporate_acb: Optional[float] = None  # None treats the whole balance as cost
    tfsa_room: float = 0
    rrsp_room: float = 0
    cda_balance: float = 0
    erdtoh_balance: float = 0
    nrdtoh_balance: float = 0
    grip_balance: float = 0

    # Portfolio; None derives a blended rate from the allocation
    investment_return_rate: Optional[float] = 0.0431
    canadian_equity_percent: float = 33.33
    us_equity_percent: float = 33.33
    international_equity_percent: float = 33.33
    fixed_income_percent: float = 0

    # Active business income earned by the corporation each year
    annual_corporate_retained_earnings: float = 50000

    maximize_tfsa: bool = False
    contribute_to_rrsp: bool = False
    contribute_to_resp: bool = False
    resp_contribution_amount: float = 0
    pay_down_debt: bool = False
    debt_paydown_amount: float = 0

    salary_strategy: str = "dynamic"
    fixed_salary_amount: float = 0

    consider_ipp: bool = False
    ipp_member_age: int = 45
    ipp_years_of_service: int = 0

    # Spouse / second shareholder
    has_spouse: bool = False
    spouse_required_income: float = 0
    spouse_salary_strategy: str = "dynamic"
    spouse_fixed_salary_amount: float = 0
    spouse_rrsp_room: float = 0
    spouse_tfsa_room: float = 0
    spouse_maximize_tfsa: bool = False
    spouse_contribute_to_rrsp: bool = False
    spouse_consider_ipp: bool = False
    spouse_ipp_age: int = 45
    spouse_ipp_years_of_service: int = 0

    # Lifetime fields used by the retirement outlook
    current_age: int = 45
    retirement_age: int = 65
    planning_end_age: int = 90
    cpp_start_age: int = 65
    salary_start_age: int = 22
    average_historical_salary: float = 60000
    oas_eligible: bool = True
    oas_start_age: int = 65
    actual_rrsp_balance: float = 0

    @classmethod
    def from_spec(cls, spec: dict) -> "UserInputs":
        """Build inputs from a spec.json dictionary.

        Unknown keys are ignored. Raises ValueError for an unknown province or
        salary strategy.
        """
        by_key = {_camel_case(f.name): f.name for f in fields(cls)}
        # Names that don't follow the plain camelCase rule
        by_key.update({
            "eRDTOHBalance": "erdtoh_balance",
            "nRDTOHBalance": "nrdtoh_balance",
            "cdaBalance": "cda_balance",
            "gripBalance": "grip_balance",
            "corporateACB": "corporate_acb",
            "tfsaBalance": "tfsa_room",
            "rrspBalance": "rrsp_room",
            "maximizeTFSA": "maximize_tfsa",
            "contributeToRRSP": "contribute_to_rrsp",
            "contributeToRESP": "contribute_to_resp",
            "considerIPP": "consider_ipp",
            "ippMemberAge": "ipp_member_age",
            "ippYearsOfService": "ipp_years_of_service",
            "spouseRRSPRoom": "spouse_rrsp_room",
            "spouseTFSARoom": "spouse_tfsa_room",
            "spouseMaximizeTFSA": "spouse_maximize_tfsa",
            "spouseContributeToRRSP": "spouse_contribute_to_rrsp",
            "spouseConsiderIPP": "spouse_consider_ipp",
            "spouseIPPAge": "spouse_ipp_age",
            "spouseIPPYearsOfService": "spouse_ipp_years_of_service",
            "cppStartAge": "cpp_start_age",
            "oasEligible": "oas_eligible",
            "oasStartAge": "oas_start_age",
            "actualRRSPBalance": "actual_rrsp_balance",
        })

        values = {}
        for key, value in spec.items():
            if key in by_key:
                values[by_key[key]] = value

        inputs = cls(**values)
        inputs.validate()
        return inputs

    def validate(self):
        if self.province not in PROVINCE_CODES:
            raise ValueError(f"Unknown province '{self.province}'. Expected one of: {', '.join(PROVINCE_CODES)}")
        for strategy in (self.salary_strategy, self.spouse_salary_strategy):
            if strategy not in STRATEGIES:
                raise ValueError(f"Unknown salary strategy '{strategy}'. Expected one of: {', '.join(STRATEGIES)}")
        if self.planning_horizon < 1:
            raise ValueError("planningHorizon must be at least 1")

    @property
    def final_year(self) -> int:
        return self.starting_year + self.planning_horizon - 1


def _camel_case(name: str) -> str:
    parts = name.split('_')
    return parts[0] + ''.join(part.capitalize() for part in parts[1:])
