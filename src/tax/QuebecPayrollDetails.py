import json
import os
from typing import Optional

from model.TaxYearData import TaxDataUnavailableError
from tax.indexation import (
    inflation_factor,
    round_cents,
    round_dollars,
    validate_tax_years,
)
from tax.FederalDetails import YAMPE_TO_YMPE_RATIO


class QuebecPayrollDetails:
    """Holds Quebec payroll details (QPP, QPP2, QPIP and reduced EI).

    Loads statutory values from reference/quebec-payroll.json. For years beyond
    those in the file, ceilings and maximum insurable earnings are indexed and
    the maximum contributions are recomputed from them.
    """

    def __init__(self, inflation_rate: float, final_year: Optional[int] = None,
                 reference_dir: Optional[str] = None):
        self.inflation_rate = inflation_rate
        self.final_year = final_year
        self.reference_dir = reference_dir or os.path.join(os.path.dirname(__file__), '../../reference')
        self.data_by_year = {}
        self._load_and_build_data()

    def _load_and_build_data(self):
        ref_path = os.path.join(self.reference_dir, 'quebec-payroll.json')
        with open(ref_path, 'r') as f:
            data = json.load(f)

        tax_years = validate_tax_years(data.get("taxYears", []), "quebec-payroll.json")
        for year_data in tax_years:
            self.data_by_year[year_data["year"]] = year_data

        self.first_known_year = tax_years[0]["year"]
        self.last_known_year = tax_years[-1]["year"]

        if self.final_year is not None:
            for year in range(self.last_known_year + 1, self.final_year + 1):
                self.get_data_for_year(year)

    def _project(self, year: int) -> dict:
        base = self.data_by_year[self.last_known_year]
        factor = inflation_factor(self.inflation_rate, year - self.last_known_year)

        qpp = base["qpp"]
        ympe = round_dollars(qpp["ympe"] * factor)
        exemption = qpp["basicExemption"]
        qpp2 = base["qpp2"]
        yampe = round_dollars(ympe * YAMPE_TO_YMPE_RATIO)
        qpip = base["qpip"]
        qpip_mie = round_dollars(qpip["maxInsurableEarnings"] * factor)
        ei = base["ei"]
        ei_mie = round_dollars(ei["maxInsurableEarnings"] * factor)

        return {
            "year": year,
            "qpp": {
                "rate": qpp["rate"],
                "ympe": ympe,
                "basicExemption": exemption,
                "maxContribution": round_cents((ympe - exemption) * qpp["rate"]),
            },
            "qpp2": {
                "rate": qpp2["rate"],
                "yampe": yampe,
                "maxContribution": round_cents((yampe - ympe) * qpp2["rate"]),
            },
            "qpip": {
                "employeeRate": qpip["employeeRate"],
                "employerRate": qpip["employerRate"],
                "maxInsurableEarnings": qpip_mie,
                "maxEmployeePremium": round_cents(qpip_mie * qpip["employeeRate"]),
                "maxEmployerPremium": round_cents(qpip_mie * qpip["employerRate"]),
            },
            "ei": {
                "rate": ei["rate"],
                "maxInsurableEarnings": ei_mie,
                "maxPremium": round_cents(ei_mie * ei["rate"]),
                "employerMultiplier": ei.get("employerMultiplier", 1.4),
            },
        }

    def get_data_for_year(self, year: int) -> dict:
        """Get the Quebec payroll data for a specific year.

        Raises:
            TaxDataUnavailableError: If the year precedes the earliest published year.
        """
        if year in self.data_by_year:
            return self.data_by_year[year]
        if year < self.first_known_year:
            raise TaxDataUnavailableError(f"No Quebec payroll data available for year {year}")
        projected = self._project(year)
        self.data_by_year[year] = projected
        return projected
