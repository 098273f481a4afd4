"""
IRR and Rate Conversions

Monthly IRR by Newton-Raphson over periodic cash flows, plus conversions
between effective monthly and annual rates.
"""

import math
from typing import List, Sequence

MAX_ITERATIONS = 1000
TOLERANCE = 1e-7
DEFAULT_GUESS = 0.01  # 1% per month


def calculate_npv(cash_flows: Sequence[float], discount_rate: float) -> float:
    """
    Calculate NPV (Net Present Value) of periodic cash flows.

    Args:
        cash_flows: Cash flow per period (negative = outflow, positive = inflow)
        discount_rate: Rate per period (e.g., 0.01 for 1% a month)

    Returns:
        NPV value
    """
    npv = 0.0
    for period, cf in enumerate(cash_flows):
        npv += cf / ((1 + discount_rate) ** period)
    return npv


def _npv_derivative(cash_flows: Sequence[float], rate: float) -> float:
    """Calculate derivative of NPV with respect to rate (for Newton-Raphson)."""
    dnpv = 0.0
    for period, cf in enumerate(cash_flows):
        dnpv -= (period * cf) / ((1 + rate) ** (period + 1))
    return dnpv


def calculate_irr(cash_flows: Sequence[float], guess: float = DEFAULT_GUESS) -> float:
    """
    Calculate IRR (Internal Rate of Return) using Newton-Raphson method.

    The rate is per period of the input, so monthly flows give a monthly IRR.

    Args:
        cash_flows: Array of periodic cash flows
        guess: Initial guess for rate

    Returns:
        IRR per period as decimal

    Raises:
        ValueError: If IRR cannot be calculated
    """
    if len(cash_flows) < 2:
        raise ValueError("At least 2 cash flows required")

    has_positive = any(cf > 0 for cf in cash_flows)
    has_negative = any(cf < 0 for cf in cash_flows)

    if not has_positive or not has_negative:
        raise ValueError("Cash flows must contain both positive and negative values")

    rate = guess

    for _ in range(MAX_ITERATIONS):
        npv = calculate_npv(cash_flows, rate)
        dnpv = _npv_derivative(cash_flows, rate)

        if abs(dnpv) < TOLERANCE:
            raise ValueError("IRR calculation failed: derivative too small")

        new_rate = rate - npv / dnpv

        if not math.isfinite(new_rate):
            raise ValueError("IRR calculation diverged")

        if new_rate <= -1:
            # Keep the discount factor positive
            new_rate = (rate - 1) / 2

        if abs(new_rate - rate) < TOLERANCE:
            return new_rate

        rate = new_rate

    raise ValueError("IRR calculation did not converge")


def monthly_flows(amounts_by_month: dict, length: int) -> List[float]:
    """Spread {month offset: amount} onto a dense list of monthly flows."""
    flows = [0.0] * length
    for month, amount in amounts_by_month.items():
        flows[month] += amount
    return flows


def monthly_to_annual_irr(monthly_irr: float) -> float:
    """Convert monthly IRR to annual IRR."""
    return ((1 + monthly_irr) ** 12) - 1


def annual_to_monthly_irr(annual_irr: float) -> float:
    """Convert annual IRR to monthly IRR."""
    return ((1 + annual_irr) ** (1 / 12)) - 1
