"""Applicant profile value type shared by every calculator.

Raw profiles arrive half-filled from onboarding, settings edits or the chat
context. ``normalize()`` substitutes the documented defaults exactly once at
the boundary so the calculators can rely on complete, non-negative values.
"""

import math
from dataclasses import dataclass, asdict, replace
from typing import Any, Optional

from arthastra.services.payment_calculator import round_half_up

DEFAULT_MONTHLY_INCOME = 30000
DEFAULT_LOAN_AMOUNT = 500000
DEFAULT_TENURE_YEARS = 3
DEFAULT_CREDIT_SCORE = 650
DEFAULT_EMPLOYMENT_TYPE = "salaried"
DEFAULT_EMPLOYMENT_TENURE = "1-2yr"
DEFAULT_EXPENSE_RATIO = 0.3

MIN_CREDIT_SCORE = 300
MAX_CREDIT_SCORE = 900

# Ceilings keep the float maths finite and the values inside the int4 columns
MAX_AMOUNT = 1_000_000_000
MAX_TENURE_YEARS = 30

# camelCase keys sent by the web client → profile field names
_ALIASES = {
    "monthlyIncome": "monthly_income",
    "existingEMI": "existing_emi",
    "existingEmi": "existing_emi",
    "monthlyExpenses": "monthly_expenses",
    "creditScore": "credit_score",
    "hasCreditHistory": "has_credit_history",
    "employmentType": "employment_type",
    "employmentTenure": "employment_tenure",
    "loanAmount": "loan_amount",
    "isJointApplication": "is_joint_application",
    "coborrowerIncome": "coborrower_income",
    "yearsWithEmployer": "years_with_employer",
}


def coerce_amount(value: Any) -> Optional[int]:
    """Coerce loosely typed input to a whole number in [0, MAX_AMOUNT], or None."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        number = float(str(value).replace(",", ""))
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return min(MAX_AMOUNT, max(0, int(round(number))))


@dataclass(frozen=True)
class ApplicantProfile:
    """Financial attributes of a (possibly joint) loan applicant."""
    monthly_income: Optional[int] = None
    existing_emi: Optional[int] = None
    monthly_expenses: Optional[int] = None
    credit_score: Optional[int] = None
    has_credit_history: Optional[bool] = None
    employment_type: Optional[str] = None     # salaried, self_employed, freelancer
    employment_tenure: Optional[str] = None   # <6_months, 6m-1yr, 1-2yr, 2-5yr, 5+yr
    loan_amount: Optional[int] = None
    tenure: Optional[int] = None              # years
    is_joint_application: bool = False
    coborrower_income: Optional[int] = None
    years_with_employer: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Optional[dict]) -> "ApplicantProfile":
        """Build a raw profile from a request body or stored document.

        Accepts both snake_case and the client's camelCase keys; unknown keys
        are ignored.
        """
        if not data:
            return cls()
        fields: dict[str, Any] = {}
        for key, value in data.items():
            name = _ALIASES.get(key, key)
            if name in cls.__dataclass_fields__:
                fields[name] = value

        has_history = fields.get("has_credit_history")
        years = fields.get("years_with_employer")
        return cls(
            monthly_income=coerce_amount(fields.get("monthly_income")),
            existing_emi=coerce_amount(fields.get("existing_emi")),
            monthly_expenses=coerce_amount(fields.get("monthly_expenses")),
            credit_score=coerce_amount(fields.get("credit_score")),
            has_credit_history=None if has_history is None else bool(has_history),
            employment_type=fields.get("employment_type") or None,
            employment_tenure=fields.get("employment_tenure") or None,
            loan_amount=coerce_amount(fields.get("loan_amount")),
            tenure=coerce_amount(fields.get("tenure")),
            is_joint_application=bool(fields.get("is_joint_application") or False),
            coborrower_income=coerce_amount(fields.get("coborrower_income")),
            years_with_employer=None if years in (None, "") else str(years),
        )

    @classmethod
    def from_user(cls, user: Any) -> "ApplicantProfile":
        """Build a raw profile from a persisted ``User`` row."""
        return cls.from_mapping({
            name: getattr(user, name, None) for name in cls.__dataclass_fields__
        })

    def normalize(self) -> "ApplicantProfile":
        """Return a copy with every default substituted.

        Zero or missing income, loan amount, tenure and credit score fall back
        to the defaults; expenses default to 30% of income; co-borrower income
        only counts for joint applications; the score is clamped to 300-900 and
        the tenure to 30 years.
        """
        income = self.monthly_income or DEFAULT_MONTHLY_INCOME
        expenses = self.monthly_expenses or round_half_up(income * DEFAULT_EXPENSE_RATIO)
        score = self.credit_score or DEFAULT_CREDIT_SCORE
        score = min(MAX_CREDIT_SCORE, max(MIN_CREDIT_SCORE, score))
        coborrower = (self.coborrower_income or 0) if self.is_joint_application else 0
        return replace(
            self,
            monthly_income=income,
            existing_emi=self.existing_emi or 0,
            monthly_expenses=expenses,
            credit_score=score,
            has_credit_history=True if self.has_credit_history is None else self.has_credit_history,
            employment_type=self.employment_type or DEFAULT_EMPLOYMENT_TYPE,
            employment_tenure=self.employment_tenure or DEFAULT_EMPLOYMENT_TENURE,
            loan_amount=self.loan_amount or DEFAULT_LOAN_AMOUNT,
            tenure=min(MAX_TENURE_YEARS, self.tenure or DEFAULT_TENURE_YEARS),
            coborrower_income=coborrower,
        )

    @property
    def total_income(self) -> int:
        return (self.monthly_income or 0) + (self.coborrower_income or 0)

    @property
    def tenure_months(self) -> int:
        return (self.tenure or 0) * 12

    def to_dict(self) -> dict:
        return asdict(self)
