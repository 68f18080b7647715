import logging
from typing import Optional

from model.TaxYearData import (
    Bracket,
    DividendRates,
    HealthPremiumBracket,
    PayrollParameters,
    Surtax,
    TaxDataUnavailableError,
    TaxYearData,
)
from model.UserInputs import PROVINCE_CODES
from tax.FederalDetails import FederalDetails
from tax.ProvincialDetails import ProvincialDetails
from tax.QuebecPayrollDetails import QuebecPayrollDetails

logger = logging.getLogger(__name__)


class TaxYearProvider:
    """Assembles TaxYearData snapshots from the federal, provincial and Quebec
    payroll reference files.

    Snapshots are immutable and cached per (year, province).
    """

    def __init__(self, inflation_rate: Optional[float] = None, final_year: Optional[int] = None,
                 reference_dir: Optional[str] = None):
        """
        Args:
            inflation_rate: Indexation rate for years past the published tables.
                Defaults to the latest CRA indexation factor.
            final_year: Last year to pre-build projections for (inclusive).
            reference_dir: Directory holding the reference JSON files.
        """
        self.federal = FederalDetails(inflation_rate, final_year, reference_dir)
        self.inflation_rate = self.federal.inflation_rate
        self.provincial = ProvincialDetails(self.inflation_rate, final_year, reference_dir)
        self.quebec_payroll = QuebecPayrollDetails(self.inflation_rate, final_year, reference_dir)
        self._cache = {}

    def default_inflation_rate(self) -> float:
        return self.federal.default_inflation_rate()

    def contribution_limits(self, year: int) -> dict:
        return self.federal.contribution_limits(year)

    def employer_health_tax(self, province: str, payroll: float, year: int) -> float:
        return self.provincial.employer_health_tax(province, payroll, year)

    def province_name(self, province: str) -> str:
        return self.provincial.get_province(province)["name"]

    def get_tax_year_data(self, year: int, province: str) -> TaxYearData:
        """Return the tax snapshot for a year and province.

        Raises:
            TaxDataUnavailableError: For an unknown province, or a year before the
                earliest published year.
        """
        key = (year, province)
        if key in self._cache:
            return self._cache[key]

        if province not in PROVINCE_CODES:
            raise TaxDataUnavailableError(f"No tax data available for province {province}")

        fed = self.federal.get_data_for_year(year)
        prov = self.provincial.get_data_for_year(province, year)
        info = self.provincial.get_province(province)

        if province == "QC":
            payroll = self._quebec_payroll(year)
        else:
            payroll = PayrollParameters(
                pension_rate=fed["cpp"]["rate"],
                ympe=fed["cpp"]["ympe"],
                basic_exemption=fed["cpp"]["basicExemption"],
                pension_max=fed["cpp"]["maxContribution"],
                second_rate=fed["cpp2"]["rate"],
                yampe=fed["cpp2"]["yampe"],
                second_max=fed["cpp2"]["maxContribution"],
                ei_rate=fed["ei"]["rate"],
                ei_max_insurable=fed["ei"]["maxInsurableEarnings"],
                ei_max_premium=fed["ei"]["maxPremium"],
                ei_employer_multiplier=fed["ei"].get("employerMultiplier", 1.4),
            )

        surtax = None
        if prov.get("surtax"):
            s = prov["surtax"]
            surtax = Surtax(
                first_threshold=s["firstThreshold"],
                first_rate=s["firstRate"],
                second_threshold=s.get("secondThreshold"),
                second_rate=s.get("secondRate", 0.0),
            )

        health_premium = ()
        if prov.get("healthPremium"):
            health_premium = tuple(
                HealthPremiumBracket(b["threshold"], b["base"], b["rate"], b["max"])
                for b in prov["healthPremium"]["brackets"]
            )

        div = fed["dividend"]
        credits = prov["dividendCredits"]
        data = TaxYearData(
            year=year,
            province=province,
            federal_brackets=tuple(Bracket(b["threshold"], b["rate"]) for b in fed["brackets"]),
            federal_basic_personal_amount=fed["basicPersonalAmount"],
            provincial_brackets=tuple(Bracket(b["threshold"], b["rate"]) for b in prov["brackets"]),
            provincial_basic_personal_amount=prov["basicPersonalAmount"],
            payroll=payroll,
            dividends=DividendRates(
                eligible_gross_up=div["eligibleGrossUp"],
                eligible_federal_credit=div["eligibleCredit"],
                eligible_provincial_credit=credits["eligible"],
                non_eligible_gross_up=div["nonEligibleGrossUp"],
                non_eligible_federal_credit=div["nonEligibleCredit"],
                non_eligible_provincial_credit=credits["nonEligible"],
            ),
            small_business_rate=fed["corporate"]["smallBusinessRate"] + prov["corporate"]["smallBusinessRate"],
            general_rate=fed["corporate"]["generalRate"] + prov["corporate"]["generalRate"],
            passive_investment_rate=info["passiveInvestmentRate"],
            top_combined_rate=info["topCombinedRate"],
            rrsp_rate=fed["rrspRate"],
            rrsp_limit=fed["rrspLimit"],
            tfsa_limit=fed["tfsaLimit"],
            rdtoh_refund_rate=fed["rdtohRefundRate"],
            surtax=surtax,
            health_premium=health_premium,
        )
        logger.debug("Built tax data for %s %d", province, year)
        self._cache[key] = data
        return data

    def _quebec_payroll(self, year: int) -> PayrollParameters:
        qc = self.quebec_payroll.get_data_for_year(year)
        return PayrollParameters(
            pension_rate=qc["qpp"]["rate"],
            ympe=qc["qpp"]["ympe"],
            basic_exemption=qc["qpp"]["basicExemption"],
            pension_max=qc["qpp"]["maxContribution"],
            second_rate=qc["qpp2"]["rate"],
            yampe=qc["qpp2"]["yampe"],
            second_max=qc["qpp2"]["maxContribution"],
            ei_rate=qc["ei"]["rate"],
            ei_max_insurable=qc["ei"]["maxInsurableEarnings"],
            ei_max_premium=qc["ei"]["maxPremium"],
            ei_employer_multiplier=qc["ei"].get("employerMultiplier", 1.4),
            qpip_employee_rate=qc["qpip"]["employeeRate"],
            qpip_employer_rate=qc["qpip"]["employerRate"],
            qpip_max_insurable=qc["qpip"]["maxInsurableEarnings"],
            qpip_max_employee=qc["qpip"]["maxEmployeePremium"],
            qpip_max_employer=qc["qpip"]["maxEmployerPremium"],
            is_quebec=True,
        )
