import json
import os
from typing import Optional

from model.TaxYearData import TaxDataUnavailableError
from tax.indexation import (
    index_threshold,
    inflation_factor,
    round_dollars,
    validate_tax_years,
)


class ProvincialDetails:
    """Holds provincial and territorial tax details by province and year.

    Loads published values from reference/provincial-details.json. Years after the
    last published year are projected with the inflation rate, except for
    brackets flagged "indexed": false and non-indexed health premiums.
    """

    def __init__(self, inflation_rate: float, final_year: Optional[int] = None,
                 reference_dir: Optional[str] = None):
        """Initialize by loading from reference file.

        Args:
            inflation_rate: Annual indexation rate for projected years.
            final_year: Last year to pre-build projections for (inclusive).
            reference_dir: Directory holding provincial-details.json.
        """
        self.inflation_rate = inflation_rate
        self.final_year = final_year
        self.reference_dir = reference_dir or os.path.join(os.path.dirname(__file__), '../../reference')
        self.provinces = {}
        self.data_by_province = {}
        self._load_and_build_data()

    def _load_and_build_data(self):
        ref_path = os.path.join(self.reference_dir, 'provincial-details.json')
        with open(ref_path, 'r') as f:
            data = json.load(f)

        provinces = data.get("provinces", {})
        if not provinces:
            raise ValueError("provincial-details.json must contain a 'provinces' object with at least one entry")

        for code, province in provinces.items():
            tax_years = validate_tax_years(province.get("taxYears", []), f"provincial-details.json ({code})")
            self.provinces[code] = {
                "name": province.get("name", code),
                "passiveInvestmentRate": province["passiveInvestmentRate"],
                "topCombinedRate": province.get("topCombinedRate", 0.0),
                "employerHealthTax": province.get("employerHealthTax"),
                "firstKnownYear": tax_years[0]["year"],
                "lastKnownYear": tax_years[-1]["year"],
            }
            self.data_by_province[code] = {y["year"]: y for y in tax_years}

        if self.final_year is not None:
            for code in self.provinces:
                last = self.provinces[code]["lastKnownYear"]
                for year in range(last + 1, self.final_year + 1):
                    self.get_data_for_year(code, year)

    def province_codes(self) -> list:
        return sorted(self.provinces.keys())

    def get_province(self, province: str) -> dict:
        """Return the year-independent details for a province."""
        if province not in self.provinces:
            raise TaxDataUnavailableError(f"No tax data available for province {province}")
        return self.provinces[province]

    def _project(self, province: str, year: int) -> dict:
        info = self.provinces[province]
        base = self.data_by_province[province][info["lastKnownYear"]]
        factor = inflation_factor(self.inflation_rate, year - info["lastKnownYear"])

        brackets = []
        for b in base["brackets"]:
            indexed = b.get("indexed", True)
            brackets.append({
                "threshold": index_threshold(b["threshold"], factor) if indexed else b["threshold"],
                "rate": b["rate"],
                "indexed": indexed,
            })

        projected = {
            "year": year,
            "brackets": brackets,
            "basicPersonalAmount": round_dollars(base["basicPersonalAmount"] * factor),
            "dividendCredits": dict(base["dividendCredits"]),
            "corporate": dict(base["corporate"]),
        }

        surtax = base.get("surtax")
        if surtax:
            projected["surtax"] = {
                "firstThreshold": index_threshold(surtax["firstThreshold"], factor),
                "firstRate": surtax["firstRate"],
                "secondThreshold": index_threshold(surtax.get("secondThreshold"), factor),
                "secondRate": surtax.get("secondRate", 0.0),
            }

        premium = base.get("healthPremium")
        if premium:
            if premium.get("indexed", False):
                projected["healthPremium"] = {
                    "indexed": True,
                    "brackets": [
                        dict(b, threshold=index_threshold(b["threshold"], factor))
                        for b in premium["brackets"]
                    ],
                }
            else:
                projected["healthPremium"] = premium
        return projected

    def get_data_for_year(self, province: str, year: int) -> dict:
        """Get a province's data for a year, projecting past the last published year.

        Raises:
            TaxDataUnavailableError: For an unknown province or a year before the
                earliest published year.
        """
        info = self.get_province(province)
        by_year = self.data_by_province[province]
        if year in by_year:
            return by_year[year]
        if year < info["firstKnownYear"]:
            raise TaxDataUnavailableError(f"No {info['name']} tax data available for year {year}")
        projected = self._project(province, year)
        by_year[year] = projected
        return projected

    def employer_health_tax(self, province: str, payroll: float, year: int) -> float:
        """Calculate employer health tax (BC EHT, Manitoba HE levy) on total payroll.

        Payroll at or under the exemption pays nothing. Between the exemption and the
        upper threshold the notch rate applies to the excess; above it the full
        rate applies to all payroll. Provinces without a levy return 0.
        """
        info = self.get_province(province)
        eht = info.get("employerHealthTax")
        if not eht or payroll <= 0:
            return 0.0

        thresholds = eht["thresholds"][0]
        for entry in eht["thresholds"]:
            if entry["fromYear"] <= year:
                thresholds = entry

        exemption = thresholds["exemption"]
        upper = thresholds["upperThreshold"]
        if payroll <= exemption:
            return 0.0
        if payroll <= upper:
            return (payroll - exemption) * eht["notchRate"]
        return payroll * eht["fullRate"]
