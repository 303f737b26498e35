"""Lender offer generator.

Prices a static catalog of personal-loan products for one applicant. Offers
are stateless projections recomputed on every request and returned sorted by
effective rate, cheapest first.
"""

from dataclasses import dataclass, field, asdict

from arthastra.services.applicant_profile import ApplicantProfile
from arthastra.services.payment_calculator import calculate_payment, round_half_up

MIN_RATE = 8.5
MAX_RATE = 18.0
MIN_APPROVAL = 30
MAX_APPROVAL = 95


@dataclass(frozen=True)
class CatalogProduct:
    bank_name: str
    product_name: str
    base_rate: float
    processing_fee_percent: float
    processing_time: int  # days
    approval_bonus: int
    category: str  # recommended, budget, premium
    features: tuple[str, ...]
    is_recommended: bool = False


@dataclass
class LoanOffer:
    bank_name: str
    product_name: str
    base_rate: float
    processing_fee_percent: float
    processing_time: int
    category: str
    is_recommended: bool
    features: list[str] = field(default_factory=list)
    rate: float = 0.0
    tenure: int = 0
    emi: int = 0
    principal: int = 0
    total_interest: int = 0
    total_cost: int = 0
    processing_fee: int = 0
    approval_odds: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


LOAN_CATALOG: tuple[CatalogProduct, ...] = (
    CatalogProduct(
        bank_name="HDFC Bank",
        product_name="Personal Loan - Premium",
        base_rate=10.5,
        processing_fee_percent=1.5,
        processing_time=2,
        approval_bonus=5,
        category="recommended",
        is_recommended=True,
        features=(
            "Zero prepayment charges after 12 months",
            "Instant disbursal to account",
            "Flexible tenure 1-7 years",
            "No collateral required",
        ),
    ),
    CatalogProduct(
        bank_name="ICICI Bank",
        product_name="Express Personal Loan",
        base_rate=10.75,
        processing_fee_percent=2.0,
        processing_time=3,
        approval_bonus=3,
        category="recommended",
        features=(
            "Quick 24-hour approval",
            "100% digital process",
            "Minimal documentation",
            "Balance transfer option",
        ),
    ),
    CatalogProduct(
        bank_name="Axis Bank",
        product_name="Quick Personal Loan",
        base_rate=11.0,
        processing_fee_percent=1.75,
        processing_time=3,
        approval_bonus=2,
        category="budget",
        features=(
            "No income proof for existing customers",
            "Part-prepayment allowed",
            "Doorstep service available",
        ),
    ),
    CatalogProduct(
        bank_name="Kotak Mahindra Bank",
        product_name="SuperCash Loan",
        base_rate=10.25,
        processing_fee_percent=2.5,
        processing_time=4,
        approval_bonus=-2,
        category="premium",
        features=(
            "Lowest interest rates",
            "Premium customer support",
            "Relationship benefits",
            "Top-up loan facility",
        ),
    ),
    CatalogProduct(
        bank_name="SBI",
        product_name="Xpress Credit",
        base_rate=11.15,
        processing_fee_percent=1.0,
        processing_time=5,
        approval_bonus=4,
        category="budget",
        features=(
            "Lowest processing fee",
            "Trusted public sector bank",
            "Wide branch network",
            "Simple documentation",
        ),
    ),
    CatalogProduct(
        bank_name="Bajaj Finserv",
        product_name="Personal Loan",
        base_rate=11.5,
        processing_fee_percent=2.0,
        processing_time=1,
        approval_bonus=0,
        category="budget",
        features=(
            "Same day disbursal",
            "Flexi loan option",
            "No foreclosure charges",
            "EMI holiday option",
        ),
    ),
)


def credit_rate_adjustment(credit_score: int, has_credit_history: bool) -> float:
    """Rate delta (percentage points) for the applicant's credit standing."""
    if not has_credit_history:
        return 2.0
    if credit_score >= 800:
        return -1.5
    if credit_score >= 750:
        return -0.75
    if credit_score >= 700:
        return 0.0
    if credit_score >= 650:
        return 0.5
    return 1.5


def employment_rate_adjustment(employment_type: str) -> float:
    if employment_type == "self_employed":
        return 0.5
    if employment_type == "freelancer":
        return 1.0
    return 0.0


def base_approval(credit_score: int, has_credit_history: bool) -> int:
    if credit_score >= 750:
        approval = 85
    elif credit_score >= 700:
        approval = 78
    elif credit_score >= 650:
        approval = 68
    else:
        approval = 55
    if not has_credit_history:
        approval -= 15
    return approval


def price_offer(product: CatalogProduct, profile: ApplicantProfile, rate_adjustment: float,
                approval: int) -> LoanOffer:
    """Apply the applicant's adjustments to one catalog product."""
    rate = min(MAX_RATE, max(MIN_RATE, product.base_rate + rate_adjustment))
    odds = min(MAX_APPROVAL, max(MIN_APPROVAL, approval + product.approval_bonus))
    months = profile.tenure_months
    payment = calculate_payment(profile.loan_amount, rate, months)

    return LoanOffer(
        bank_name=product.bank_name,
        product_name=product.product_name,
        base_rate=product.base_rate,
        processing_fee_percent=product.processing_fee_percent,
        processing_time=product.processing_time,
        category=product.category,
        is_recommended=product.is_recommended,
        features=list(product.features),
        rate=round(rate, 2),
        tenure=profile.tenure,
        emi=payment["monthly_payment"],
        principal=profile.loan_amount,
        total_interest=payment["total_interest"],
        total_cost=payment["total_payable"],
        processing_fee=round_half_up(profile.loan_amount * product.processing_fee_percent / 100),
        approval_odds=odds,
    )


def generate_loan_offers(raw_profile: ApplicantProfile) -> list[LoanOffer]:
    """Price every catalog product for the applicant, cheapest rate first."""
    profile = raw_profile.normalize()
    adjustment = (
        credit_rate_adjustment(profile.credit_score, profile.has_credit_history)
        + employment_rate_adjustment(profile.employment_type)
    )
    approval = base_approval(profile.credit_score, profile.has_credit_history)

    offers = [price_offer(p, profile, adjustment, approval) for p in LOAN_CATALOG]
    return sorted(offers, key=lambda o: o.rate)
