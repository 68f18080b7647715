"""Employee payroll deductions and employer payroll cost.

Rest of Canada: CPP, CPP2 and EI. Quebec: QPP, QPP2, QPIP and the reduced
EI rate. TaxYearData.payroll carries whichever set applies.
"""

from dataclasses import dataclass

from model.TaxYearData import PayrollParameters, TaxYearData


@dataclass
class PayrollDeductions:
    cpp: float = 0.0  # CPP or QPP base contribution
    cpp2: float = 0.0  # CPP2 or QPP2
    ei: float = 0.0
    qpip: float = 0.0  # Quebec only
    employer_cost: float = 0.0  # Employer's matching contributions

    @property
    def total_employee(self) -> float:
        return self.cpp + self.cpp2 + self.ei + self.qpip


def calculate_cpp(salary: float, params: PayrollParameters) -> float:
    if salary <= params.basic_exemption:
        return 0.0
    pensionable = min(salary - params.basic_exemption, params.ympe - params.basic_exemption)
    return pensionable * params.pension_rate


def calculate_cpp2(salary: float, params: PayrollParameters) -> float:
    if salary <= params.ympe:
        return 0.0
    return min(salary - params.ympe, params.yampe - params.ympe) * params.second_rate


def calculate_ei(salary: float, params: PayrollParameters) -> float:
    if salary <= 0:
        return 0.0
    return min(salary, params.ei_max_insurable) * params.ei_rate


def calculate_qpip(salary: float, params: PayrollParameters) -> float:
    if not params.is_quebec or salary <= 0:
        return 0.0
    return min(salary, params.qpip_max_insurable) * params.qpip_employee_rate


def calculate_payroll(salary: float, tax_data: TaxYearData) -> PayrollDeductions:
    """Calculate employee deductions and the employer's cost for a salary.

    The employer matches CPP/CPP2 (or QPP/QPP2) and pays EI at 1.4x the employee
    premium. In Quebec the employer also pays QPIP at the employer rate.
    """
    params = tax_data.payroll
    if salary <= 0:
        return PayrollDeductions()

    cpp = calculate_cpp(salary, params)
    cpp2 = calculate_cpp2(salary, params)
    ei = calculate_ei(salary, params)
    qpip = calculate_qpip(salary, params)

    employer_cost = cpp + cpp2 + ei * params.ei_employer_multiplier
    if params.is_quebec:
        employer_cost += min(salary, params.qpip_max_insurable) * params.qpip_employer_rate

    return PayrollDeductions(cpp=cpp, cpp2=cpp2, ei=ei, qpip=qpip, employer_cost=employer_cost)
