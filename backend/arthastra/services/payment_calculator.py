"""Financial primitives for loan illustrations.

Calculates EMI, debt-to-income and the principal a given EMI can service.
All amounts are whole rupees.
"""

import logging
import math

logger = logging.getLogger(__name__)


class ZeroIncomeError(ValueError):
    """Raised when a ratio against income is requested for zero income."""


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def _growth_factor(r: float, months: int) -> float:
    """(1+r)^n, or inf once it no longer fits in a float."""
    try:
        return (1 + r) ** months
    except OverflowError:
        return math.inf


def calculate_emi(principal: float, annual_rate: float, months: int) -> int:
    """Equated monthly instalment for a fully amortizing loan.

    Uses standard amortization: EMI = P * [r(1+r)^n] / [(1+r)^n - 1]
    with r the monthly rate. Returns 0 for a non-positive principal or term.
    Very long terms converge to the interest-only payment P * r.
    """
    if principal <= 0 or months <= 0:
        return 0
    r = annual_rate / 12 / 100
    if r == 0:
        return round_half_up(principal / months)
    # Same formula divided through by (1+r)^n, so huge n cannot overflow
    emi = principal * r / (1 - 1 / _growth_factor(r, months))
    return round_half_up(emi)


def calculate_dti(
    monthly_income: float,
    existing_emi: float,
    monthly_expenses: float = 0,
) -> float:
    """Debt-to-income ratio as a percentage.

    Pass ``monthly_expenses=0`` for the bank-style FOIR that only counts
    debt obligations.
    """
    if monthly_income <= 0:
        raise ZeroIncomeError("Debt-to-income is undefined without monthly income")
    return (existing_emi + monthly_expenses) / monthly_income * 100


def max_principal_for_emi(emi: float, annual_rate: float, months: int) -> float:
    """Invert the amortization formula: the principal an EMI can repay.

    P = EMI * [(1+r)^n - 1] / [r(1+r)^n]
    """
    if emi <= 0 or months <= 0:
        return 0.0
    r = annual_rate / 12 / 100
    if r == 0:
        return float(emi * months)
    return emi * (1 - 1 / _growth_factor(r, months)) / r


def calculate_payment(principal: float, annual_rate: float, term_months: int) -> dict:
    """Payment summary for an offer illustration."""
    monthly = calculate_emi(principal, annual_rate, term_months)
    total_payable = monthly * term_months if term_months > 0 else principal
    return {
        "monthly_payment": monthly,
        "total_interest": total_payable - principal if term_months > 0 else 0,
        "total_payable": total_payable,
        "effective_annual_rate": round(annual_rate, 2),
    }
