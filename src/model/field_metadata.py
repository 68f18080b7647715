"""Field metadata for YearlyResult fields.

This module provides descriptions and short names for YearlyResult fields,
including nested values addressed with a dotted path such as
"notional_accounts.cda". Short names are used as column headers in tables
and by the MCP search tool.
"""

from dataclasses import dataclass
from typing import Dict


@dataclass
class FieldInfo:
    """Metadata for a single field."""
    short_name: str  # Column header (unique, concise)
    description: str  # Full description of the field


# Field metadata dictionary mapping field paths to their info
FIELD_METADATA: Dict[str, FieldInfo] = {
    # Year Info
    "year": FieldInfo("Year #", "Position of the year in the projection (1-based)"),
    "calendar_year": FieldInfo("Year", "Calendar year"),
    "required_income": FieldInfo("Required Income", "After-tax income needed, including TFSA, RESP and debt"),

    # Compensation
    "salary": FieldInfo("Salary", "Salary paid by the corporation"),
    "dividends.capital_dividends": FieldInfo("Capital Divs", "Tax-free capital dividends from the CDA"),
    "dividends.eligible_dividends": FieldInfo("Eligible Divs", "Eligible dividends paid"),
    "dividends.non_eligible_dividends": FieldInfo("Non-Eligible Divs", "Non-eligible dividends paid"),
    "dividends.regular_dividends": FieldInfo("Regular Divs", "Taxable dividends paid without an RDTOH refund"),
    "dividends.gross_dividends": FieldInfo("Total Divs", "Total dividends paid"),

    # Personal Tax
    "federal_tax": FieldInfo("Federal Tax", "Federal personal income tax"),
    "provincial_tax": FieldInfo("Provincial Tax", "Provincial personal income tax, including surtax"),
    "provincial_surtax": FieldInfo("Surtax", "Provincial surtax"),
    "health_premium": FieldInfo("Health Premium", "Provincial health premium"),
    "personal_tax": FieldInfo("Personal Tax", "Total personal income tax"),

    # Payroll
    "cpp": FieldInfo("CPP", "Employee CPP (or QPP) base contribution"),
    "cpp2": FieldInfo("CPP2", "Employee second additional CPP contribution"),
    "ei": FieldInfo("EI", "Employee EI premium"),
    "qpip": FieldInfo("QPIP", "Employee Quebec parental insurance premium"),
    "employer_payroll_cost": FieldInfo("Employer Payroll", "Employer CPP, EI and QPIP contributions"),
    "employer_health_tax": FieldInfo("EHT", "Employer health tax on total payroll"),

    # Corporate
    "taxable_business_income": FieldInfo("Taxable Business Inc", "Active business income after salaries and deductions"),
    "corporate_tax_on_active": FieldInfo("Corp Tax Active", "Corporate tax on active business income"),
    "corporate_tax_on_passive": FieldInfo("Corp Tax Passive", "Corporate tax on investment income"),
    "corporate_tax": FieldInfo("Corp Tax", "Total corporate tax"),
    "rdtoh_refund": FieldInfo("RDTOH Refund", "Dividend refund from eRDTOH and nRDTOH"),
    "passive_income_grind.reduced_sbd_limit": FieldInfo("SBD Limit", "Small business limit after the passive income grind"),
    "passive_income_grind.additional_tax_from_grind": FieldInfo("Grind Tax", "Extra corporate tax caused by the grind"),

    # Totals
    "total_tax": FieldInfo("Total Tax", "Personal + corporate + payroll tax"),
    "after_tax_income": FieldInfo("After-Tax Income", "Salary and dividends less personal tax and payroll"),
    "effective_integrated_rate": FieldInfo("Integrated Rate", "Personal tax plus attributed corporate tax over compensation"),

    # Registered accounts and other uses
    "rrsp_room_generated": FieldInfo("RRSP Room", "RRSP room generated by salary"),
    "rrsp_contribution": FieldInfo("RRSP Contrib", "RRSP contribution made"),
    "tfsa_contribution": FieldInfo("TFSA Contrib", "TFSA contribution made"),
    "resp_contribution": FieldInfo("RESP Contrib", "RESP contribution made"),
    "debt_paydown": FieldInfo("Debt Paydown", "Debt repaid from after-tax income"),

    # Notional accounts (end of year)
    "notional_accounts.cda": FieldInfo("CDA", "Capital Dividend Account balance"),
    "notional_accounts.erdtoh": FieldInfo("eRDTOH", "Eligible RDTOH balance"),
    "notional_accounts.nrdtoh": FieldInfo("nRDTOH", "Non-eligible RDTOH balance"),
    "notional_accounts.grip": FieldInfo("GRIP", "General Rate Income Pool balance"),
    "notional_accounts.corporate_investments": FieldInfo("Corp Balance", "Corporate investment balance"),
    "notional_accounts.corporate_acb": FieldInfo("Corp ACB", "Adjusted cost base of corporate investments"),

    # Investment returns
    "investment_returns.total_return": FieldInfo("Total Return", "Total return on corporate investments"),
    "investment_returns.canadian_dividends": FieldInfo("Cdn Dividends", "Canadian dividends received"),
    "investment_returns.foreign_income": FieldInfo("Foreign Income", "Foreign dividends and interest"),
    "investment_returns.realized_capital_gain": FieldInfo("Realized Gain", "Realized capital gains"),
    "investment_returns.unrealized_capital_gain": FieldInfo("Unrealized Gain", "Unrealized appreciation"),

    # IPP
    "ipp.contribution": FieldInfo("IPP Contrib", "Individual Pension Plan contribution"),
    "ipp.admin_costs": FieldInfo("IPP Admin", "IPP setup, actuarial and admin costs"),
    "ipp.pension_adjustment": FieldInfo("Pension Adj", "Pension adjustment reducing RRSP room"),

    # Spouse
    "spouse.salary": FieldInfo("Spouse Salary", "Salary paid to the spouse"),
    "spouse.dividends.gross_dividends": FieldInfo("Spouse Divs", "Dividends paid to the spouse"),
    "spouse.personal_tax": FieldInfo("Spouse Tax", "Spouse personal income tax"),
    "spouse.after_tax_income": FieldInfo("Spouse After-Tax", "Spouse after-tax income"),
}


def get_short_name(field_name: str) -> str:
    """Get the short name for a field, or the field name if not found."""
    info = FIELD_METADATA.get(field_name)
    return info.short_name if info else field_name


def get_description(field_name: str) -> str:
    """Get the description for a field, or empty string if not found."""
    info = FIELD_METADATA.get(field_name)
    return info.description if info else ""


def get_field_value(result, field_name: str):
    """Resolve a dotted field path against a YearlyResult.

    Returns None when any step of the path is missing or None (for example
    "ipp.contribution" in a year without an IPP).
    """
    value = result
    for part in field_name.split('.'):
        if value is None:
            return None
        value = getattr(value, part, None)
    return value


def wrap_header(text: str, max_width: int) -> list[str]:
    """Wrap a header text into multiple lines to fit within max_width.

    Words are split on spaces and distributed across lines to minimize
    the total number of lines while staying within max_width.

    Args:
        text: The header text to wrap
        max_width: Maximum width per line

    Returns:
        List of strings, each representing a line
    """
    if len(text) <= max_width:
        return [text]

    words = text.split()
    lines = []
    current_line = ""

    for word in words:
        if not current_line:
            current_line = word
        elif len(current_line) + 1 + len(word) <= max_width:
            current_line += " " + word
        else:
            lines.append(current_line)
            current_line = word

    if current_line:
        lines.append(current_line)

    return lines
