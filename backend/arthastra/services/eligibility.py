"""Loan eligibility calculator.

Combines the financial primitives with the applicant profile into a scored
report: four factors, approval odds, the maximum eligible amount, an overall
status and a list of recommendations. Deterministic and side-effect free:
every call recomputes the report from the (normalized) profile.
"""

import math
from dataclasses import dataclass, field, asdict

from arthastra.services.applicant_profile import ApplicantProfile
from arthastra.services.payment_calculator import (
    calculate_emi,
    max_principal_for_emi,
    round_half_up,
)

# Share of total income banks allow for all EMIs together
EMI_CAPACITY_RATIO = 0.5
MIN_ELIGIBLE_AMOUNT = 50000
MAX_INCOME_MULTIPLE = 60

MIN_APPROVAL_ODDS = 15
MAX_APPROVAL_ODDS = 95
ODDS_SCALE = 0.85

REJECT_DTI = 60
REVIEW_DTI = 50
HEALTHY_DTI = 40
MIN_INCOME = 15000
INCOME_THRESHOLD = 25000
REVIEW_SCORE = 650

# (minimum score, annual rate %); first match wins
RATE_BRACKETS = [
    (800, 9.5),
    (750, 10.5),
    (700, 11.5),
    (650, 12.5),
]
FALLBACK_RATE = 14.0

EMPLOYMENT_RATE_LOADING = {
    "self_employed": 0.5,
    "freelancer": 1.0,
}

TENURE_MULTIPLIERS = {
    "<6_months": 0.7,
    "6m-1yr": 0.85,
    "1-2yr": 0.95,
    "2-5yr": 1.0,
}
LONG_TENURE_MULTIPLIER = 1.1

STATUS_MESSAGES = {
    "approved": "You meet all eligibility criteria for the requested loan",
    "review": "Your application needs additional review. Consider the recommendations below.",
    "rejected": "Current profile doesn't meet minimum requirements. Follow recommendations to improve.",
}

EMPLOYMENT_LABELS = {
    "salaried": "Salaried",
    "self_employed": "Self-employed",
}


@dataclass
class EligibilityFactor:
    name: str
    score: int
    status: str  # pass, warning, fail
    description: str


@dataclass
class Recommendation:
    title: str
    description: str
    impact: str  # high, medium


@dataclass
class Financials:
    monthly_income: int
    existing_emi: int
    monthly_expenses: int
    available_for_emi: int
    dti: float
    total_obligation_ratio: float
    estimated_emi: int
    interest_rate: float
    tenure: int


@dataclass
class EligibilityReport:
    overall_status: str  # approved, review, rejected
    status_message: str
    max_amount: int
    requested_amount: int
    approval_odds: int
    factors: list[EligibilityFactor] = field(default_factory=list)
    financials: Financials | None = None
    recommendations: list[Recommendation] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def format_inr(amount: float) -> str:
    """Format a rupee amount with Indian digit grouping (12,34,567)."""
    digits = str(int(round(amount)))
    sign = ""
    if digits.startswith("-"):
        sign, digits = "-", digits[1:]
    if len(digits) <= 3:
        return sign + digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return sign + ",".join(groups + [tail])


def base_interest_rate(credit_score: int, employment_type: str) -> float:
    """Annual rate for the score bracket plus the employment loading."""
    rate = FALLBACK_RATE
    for minimum, bracket_rate in RATE_BRACKETS:
        if credit_score >= minimum:
            rate = bracket_rate
            break
    return rate + EMPLOYMENT_RATE_LOADING.get(employment_type, 0.0)


def credit_multiplier(credit_score: int, has_credit_history: bool) -> float:
    if not has_credit_history:
        return 0.6
    if credit_score >= 750:
        return 1.2
    if credit_score >= 700:
        return 1.0
    if credit_score >= 650:
        return 0.85
    return 0.7


def tenure_multiplier(employment_tenure: str) -> float:
    return TENURE_MULTIPLIERS.get(employment_tenure, LONG_TENURE_MULTIPLIER)


def max_eligible_amount(profile: ApplicantProfile, rate: float | None = None) -> int:
    """Largest principal the profile can service, after multipliers and caps.

    ``profile`` must already be normalized.
    """
    total_income = profile.total_income
    available = max(0, total_income * EMI_CAPACITY_RATIO - profile.existing_emi)
    if rate is None:
        rate = base_interest_rate(profile.credit_score, profile.employment_type)

    amount = max_principal_for_emi(available, rate, profile.tenure_months)
    amount = math.floor(
        amount
        * credit_multiplier(profile.credit_score, profile.has_credit_history)
        * tenure_multiplier(profile.employment_tenure)
    )
    amount = min(amount, total_income * MAX_INCOME_MULTIPLE)
    return max(amount, MIN_ELIGIBLE_AMOUNT)


def _income_factor(income: int) -> EligibilityFactor:
    if income >= INCOME_THRESHOLD:
        status = "pass"
        description = f"₹{format_inr(income)}/month - Meets requirements"
    else:
        status = "warning" if income >= MIN_INCOME else "fail"
        description = f"₹{format_inr(income)}/month - Below ₹{format_inr(INCOME_THRESHOLD)} threshold"
    return EligibilityFactor(
        name="Income Level",
        score=min(100, round_half_up(income / 100000 * 100)),
        status=status,
        description=description,
    )


def _dti_factor(dti: float) -> EligibilityFactor:
    if dti <= HEALTHY_DTI:
        status, advice = "pass", "Healthy ratio"
    else:
        status = "warning" if dti <= REVIEW_DTI else "fail"
        advice = "Consider reducing debt"
    return EligibilityFactor(
        name="Debt-to-Income Ratio",
        score=max(0, round_half_up(100 - dti * 1.5)),
        status=status,
        description=f"{dti:.1f}% of income goes to obligations. {advice}",
    )


def _credit_factor(score: int, has_history: bool) -> EligibilityFactor:
    if not has_history:
        return EligibilityFactor(
            name="Credit Score",
            score=40,
            status="warning",
            description="No credit history found - Building credit recommended",
        )
    if score >= 750:
        status, label = "pass", "Excellent"
    elif score >= 700:
        status, label = "warning", "Good"
    elif score >= 650:
        status, label = "warning", "Fair"
    else:
        status, label = "fail", "Needs improvement"
    return EligibilityFactor(
        name="Credit Score",
        score=min(100, round_half_up((score - 300) / 6)),
        status=status,
        description=f"CIBIL Score: {score} - {label}",
    )


def _employment_factor(employment_type: str, employment_tenure: str) -> EligibilityFactor:
    if employment_type == "salaried":
        score = {"5+yr": 100, "2-5yr": 90}.get(employment_tenure, 75)
    else:
        score = 65
    label = EMPLOYMENT_LABELS.get(employment_type, "Freelancer")
    return EligibilityFactor(
        name="Employment Stability",
        score=score,
        status="warning" if employment_tenure == "<6_months" else "pass",
        description=f"{label} - {employment_tenure} tenure",
    )


def _recommendations(profile: ApplicantProfile, dti: float) -> list[Recommendation]:
    recs: list[Recommendation] = []

    if dti > HEALTHY_DTI:
        payoff = round_half_up(profile.existing_emi * 0.3)
        recs.append(Recommendation(
            title="Reduce Existing Debt",
            description=(
                f"Your DTI is {dti:.1f}%. Paying off ₹{format_inr(payoff)} in existing loans "
                f"could increase eligibility by 20%."
            ),
            impact="high",
        ))

    if not profile.has_credit_history or profile.credit_score < 750:
        if profile.credit_score < 700:
            text = "A score above 750 can reduce your interest rate by 2-3% and increase loan amount."
        else:
            text = "Your score is good. Maintaining it above 750 ensures best rates."
        recs.append(Recommendation(title="Improve Credit Score", description=text, impact="high"))

    if not profile.is_joint_application and profile.total_income < 50000:
        recs.append(Recommendation(
            title="Consider Joint Application",
            description=(
                "Adding a co-applicant can increase your eligible amount by 40-60% "
                "and improve approval chances."
            ),
            impact="high",
        ))

    tenure = profile.tenure
    if tenure < 5:
        extended = min(tenure + 2, 7)
        reduction = round_half_up(((tenure + 2) / tenure - 1) * 30)
        recs.append(Recommendation(
            title="Extend Loan Tenure",
            description=(
                f"Increasing tenure from {tenure} to {extended} years reduces EMI by "
                f"~{reduction}% making larger loans affordable."
            ),
            impact="medium",
        ))

    recs.append(Recommendation(
        title="Maintain Stable Employment",
        description=(
            "2+ years in current job and consistent income deposits strengthen "
            "your application significantly."
        ),
        impact="medium",
    ))
    return recs


def approval_odds(factors: list[EligibilityFactor], profile: ApplicantProfile, dti: float) -> int:
    """Weighted factor average scaled down, then rule adjustments, clamped to 15-95."""
    average = sum(f.score for f in factors) / len(factors)
    odds = round_half_up(average * ODDS_SCALE)

    if dti > REVIEW_DTI:
        odds -= 15
    if not profile.has_credit_history:
        odds -= 10
    if profile.has_credit_history and profile.credit_score < REVIEW_SCORE:
        odds -= 10
    if profile.coborrower_income > 0:
        odds += 10

    return min(MAX_APPROVAL_ODDS, max(MIN_APPROVAL_ODDS, odds))


def overall_status(profile: ApplicantProfile, dti: float) -> str:
    if dti > REJECT_DTI or profile.monthly_income < MIN_INCOME:
        return "rejected"
    if dti > REVIEW_DTI or not profile.has_credit_history or profile.credit_score < REVIEW_SCORE:
        return "review"
    return "approved"


def calculate_eligibility(raw_profile: ApplicantProfile) -> EligibilityReport:
    """Build the full eligibility report for an applicant.

    Never fails: missing inputs are defaulted by ``normalize()``.
    """
    profile = raw_profile.normalize()
    total_income = profile.total_income

    # Bank-style FOIR: debt obligations only, living expenses excluded
    dti = profile.existing_emi / total_income * 100
    total_obligation_ratio = (profile.existing_emi + profile.monthly_expenses) / total_income * 100
    available = max(0, total_income * EMI_CAPACITY_RATIO - profile.existing_emi)

    rate = base_interest_rate(profile.credit_score, profile.employment_type)
    max_amount = max_eligible_amount(profile, rate)
    estimated_emi = calculate_emi(max_amount, rate, profile.tenure_months)

    factors = [
        _income_factor(profile.monthly_income),
        _dti_factor(dti),
        _credit_factor(profile.credit_score, profile.has_credit_history),
        _employment_factor(profile.employment_type, profile.employment_tenure),
    ]
    odds = approval_odds(factors, profile, dti)
    status = overall_status(profile, dti)

    return EligibilityReport(
        overall_status=status,
        status_message=STATUS_MESSAGES[status],
        max_amount=max_amount,
        requested_amount=profile.loan_amount,
        approval_odds=odds,
        factors=factors,
        financials=Financials(
            monthly_income=profile.monthly_income,
            existing_emi=profile.existing_emi,
            monthly_expenses=profile.monthly_expenses,
            available_for_emi=round_half_up(available),
            dti=round(dti, 1),
            total_obligation_ratio=round(total_obligation_ratio, 1),
            estimated_emi=estimated_emi,
            interest_rate=rate,
            tenure=profile.tenure,
        ),
        recommendations=_recommendations(profile, dti),
    )
