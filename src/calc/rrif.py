"""RRIF minimum withdrawals (CRA prescribed rates by age at January 1)."""

from dataclasses import dataclass

RRIF_CONVERSION_AGE = 71
RRIF_MAX_RATE_AGE = 95
RRIF_MAX_RATE = 0.20

RRIF_MINIMUM_RATES = {
    55: 0.0286, 56: 0.0294, 57: 0.0303, 58: 0.0313, 59: 0.0323,
    60: 0.0333, 61: 0.0345, 62: 0.0356, 63: 0.0370, 64: 0.0385,
    65: 0.0400, 66: 0.0417, 67: 0.0435, 68: 0.0455, 69: 0.0476,
    70: 0.0500, 71: 0.0528, 72: 0.0540, 73: 0.0553, 74: 0.0567,
    75: 0.0582, 76: 0.0598, 77: 0.0617, 78: 0.0636, 79: 0.0658,
    80: 0.0682, 81: 0.0708, 82: 0.0738, 83: 0.0771, 84: 0.0808,
    85: 0.0851, 86: 0.0899, 87: 0.0955, 88: 0.1021, 89: 0.1099,
    90: 0.1192, 91: 0.1306, 92: 0.1449, 93: 0.1634, 94: 0.1879,
}


@dataclass
class RRIFYear:
    age: int
    opening_balance: float
    minimum: float
    withdrawal: float
    balance_after_withdrawal: float
    balance_after_growth: float


def rrif_minimum_rate(age: int) -> float:
    if age >= RRIF_MAX_RATE_AGE:
        return RRIF_MAX_RATE
    return RRIF_MINIMUM_RATES.get(age, 0.0)


def calculate_rrif_minimum(balance: float, age: int) -> float:
    if balance <= 0:
        return 0.0
    return balance * rrif_minimum_rate(age)


def must_convert_to_rrif(age: int) -> bool:
    return age >= RRIF_CONVERSION_AGE


def calculate_rrif_year(balance: float, age: int, return_rate: float, extra_withdrawal: float = 0.0) -> RRIFYear:
    """Withdraw the minimum (plus any extra) then grow what's left for a year."""
    minimum = calculate_rrif_minimum(balance, age)
    withdrawal = min(max(0.0, balance), minimum + max(0.0, extra_withdrawal))
    after_withdrawal = max(0.0, balance - withdrawal)
    return RRIFYear(
        age=age,
        opening_balance=balance,
        minimum=minimum,
        withdrawal=withdrawal,
        balance_after_withdrawal=after_withdrawal,
        balance_after_growth=after_withdrawal * (1 + return_rate),
    )
