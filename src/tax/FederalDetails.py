import json
import math
import os
from typing import Optional

from model.TaxYearData import TaxDataUnavailableError
from tax.indexation import (
    index_threshold,
    inflation_factor,
    round_cents,
    round_dollars,
    validate_tax_years,
)

# YAMPE sits roughly 14% above the YMPE once CPP2 is fully phased in
YAMPE_TO_YMPE_RATIO = 1.14


class FederalDetails:
    """Holds federal income tax, CPP/EI and contribution limit details by year.

    Loads published values from reference/federal-details.json. Years after the
    last published year are projected from it with the inflation rate; rates
    are never indexed.
    """

    def __init__(self, inflation_rate: Optional[float] = None, final_year: Optional[int] = None,
                 reference_dir: Optional[str] = None):
        """Initialize by loading from reference file and building year data.

        Args:
            inflation_rate: Annual indexation rate for projected years. Defaults to
                the most recent CRA indexation factor.
            final_year: Last year to pre-build projections for (inclusive).
            reference_dir: Directory holding federal-details.json.
        """
        self.reference_dir = reference_dir or os.path.join(os.path.dirname(__file__), '../../reference')
        self.final_year = final_year
        self.data_by_year = {}
        self.indexation_factors = {}
        self._load_and_build_data()
        self.inflation_rate = self.default_inflation_rate() if inflation_rate is None else inflation_rate
        if final_year is not None:
            for year in range(self.last_known_year + 1, final_year + 1):
                self.get_data_for_year(year)

    def _load_and_build_data(self):
        ref_path = os.path.join(self.reference_dir, 'federal-details.json')
        with open(ref_path, 'r') as f:
            data = json.load(f)

        self.indexation_factors = {int(k): v for k, v in data.get("craIndexationFactors", {}).items()}
        tax_years = validate_tax_years(data.get("taxYears", []), "federal-details.json")

        for year_data in tax_years:
            self.data_by_year[year_data["year"]] = year_data

        self.first_known_year = tax_years[0]["year"]
        self.last_known_year = tax_years[-1]["year"]

    def default_inflation_rate(self) -> float:
        """Return the most recent CRA indexation factor (2% if none are listed)."""
        if not self.indexation_factors:
            return 0.02
        return self.indexation_factors[max(self.indexation_factors)]

    def _project(self, year: int) -> dict:
        base = self.data_by_year[self.last_known_year]
        factor = inflation_factor(self.inflation_rate, year - self.last_known_year)

        cpp = base["cpp"]
        ympe = round_dollars(cpp["ympe"] * factor)
        exemption = cpp["basicExemption"]  # Frozen at $3,500
        cpp2 = base["cpp2"]
        yampe = round_dollars(ympe * YAMPE_TO_YMPE_RATIO)
        ei = base["ei"]
        ei_mie = round_dollars(ei["maxInsurableEarnings"] * factor)

        return {
            "year": year,
            "brackets": [
                {"threshold": index_threshold(b["threshold"], factor), "rate": b["rate"]}
                for b in base["brackets"]
            ],
            "basicPersonalAmount": round_dollars(base["basicPersonalAmount"] * factor),
            "cpp": {
                "rate": cpp["rate"],
                "ympe": ympe,
                "basicExemption": exemption,
                "maxContribution": round_cents((ympe - exemption) * cpp["rate"]),
            },
            "cpp2": {
                "rate": cpp2["rate"],
                "yampe": yampe,
                "maxContribution": round_cents((yampe - ympe) * cpp2["rate"]),
            },
            "ei": {
                "rate": ei["rate"],
                "maxInsurableEarnings": ei_mie,
                "maxPremium": round_cents(ei_mie * ei["rate"]),
                "employerMultiplier": ei.get("employerMultiplier", 1.4),
            },
            "dividend": dict(base["dividend"]),
            "corporate": dict(base["corporate"]),
            "rrspRate": base["rrspRate"],
            "rrspLimit": round_dollars(base["rrspLimit"] * factor),
            # TFSA limit moves in $500 steps
            "tfsaLimit": math.floor(base["tfsaLimit"] * factor / 500) * 500,
            "rdtohRefundRate": base["rdtohRefundRate"],
        }

    def get_data_for_year(self, year: int) -> dict:
        """Get the federal data for a specific year, projecting if needed.

        Raises:
            TaxDataUnavailableError: If the year precedes the earliest published year.
        """
        if year in self.data_by_year:
            return self.data_by_year[year]
        if year < self.first_known_year:
            raise TaxDataUnavailableError(f"No federal tax data available for year {year}")
        projected = self._project(year)
        self.data_by_year[year] = projected
        return projected

    def contribution_limits(self, year: int) -> dict:
        """Return the TFSA limit, RRSP dollar limit and RRSP earned-income rate."""
        data = self.get_data_for_year(year)
        return {
            "tfsaLimit": data["tfsaLimit"],
            "rrspLimit": data["rrspLimit"],
            "rrspRate": data["rrspRate"],
        }
