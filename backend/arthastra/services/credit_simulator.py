"""What-if credit/recovery simulator.

Projects how hypothetical actions (paying off debt, raising income, improving
the credit score, waiting, applying jointly) change the maximum eligible
amount and approval odds. Both sides of the comparison run through the
eligibility calculator so the amortization and multiplier rules stay in one
place.
"""

from dataclasses import dataclass, field, asdict, replace

from arthastra.services.applicant_profile import ApplicantProfile, MAX_CREDIT_SCORE
from arthastra.services.eligibility import calculate_eligibility, format_inr

# Income assumed for an unnamed co-applicant
JOINT_APPLICANT_INCOME = 40000
SEASONING_MONTHS = 6
SEASONING_BONUS = 1.05
LARGE_PAYOFF = 50000

RECOMMENDATIONS = {
    "Joint Application": (
        "Adding a joint applicant has the highest impact. Consider applying with a "
        "spouse or family member with stable income."
    ),
    "Debt Reduction": (
        "Focus on paying off existing high-interest loans first. This will significantly "
        "improve your DTI ratio and eligibility."
    ),
    "Income Growth": (
        "Negotiate a raise or consider additional income sources. Higher income directly "
        "increases your loan eligibility."
    ),
    "Credit Score": (
        "Work on building your credit score by paying bills on time and using credit "
        "responsibly for the next few months."
    ),
}
DEFAULT_RECOMMENDATION = (
    "Consider a combination of strategies for maximum impact on your loan eligibility."
)


@dataclass(frozen=True)
class SimulationScenario:
    """Hypothetical actions to evaluate."""
    pay_off_debt: int = 0        # lump sum, rupees
    increase_income: int = 0     # monthly, rupees
    improve_score: int = 0       # points
    wait_months: int = 0
    joint_application: bool = False


@dataclass
class EligibilitySnapshot:
    max_amount: int
    approval_odds: int
    dti: float


@dataclass
class Impact:
    factor: str
    change: float
    description: str


@dataclass
class SimulationResult:
    current: EligibilitySnapshot
    projected: EligibilitySnapshot
    improvement_amount: int
    improvement_percentage: float
    impacts: list[Impact] = field(default_factory=list)
    recommendation: str = DEFAULT_RECOMMENDATION
    timeline: str = "Immediate"

    def to_dict(self) -> dict:
        return asdict(self)


def project_profile(profile: ApplicantProfile, scenario: SimulationScenario) -> ApplicantProfile:
    """Apply the scenario to a normalized profile."""
    paid_off = min(max(0, scenario.pay_off_debt), profile.existing_emi * 12)
    reduced_emi = max(0, profile.existing_emi - paid_off / 12)

    coborrower = profile.coborrower_income
    if scenario.joint_application:
        coborrower += JOINT_APPLICANT_INCOME

    score = profile.credit_score
    has_history = profile.has_credit_history
    if scenario.improve_score > 0:
        score = min(MAX_CREDIT_SCORE, score + scenario.improve_score)
        has_history = True

    return replace(
        profile,
        monthly_income=profile.monthly_income + max(0, scenario.increase_income),
        existing_emi=int(round(reduced_emi)),
        credit_score=score,
        has_credit_history=has_history,
        is_joint_application=profile.is_joint_application or scenario.joint_application,
        coborrower_income=coborrower,
    )


def _snapshot(profile: ApplicantProfile, bonus: float = 1.0) -> EligibilitySnapshot:
    report = calculate_eligibility(profile)
    return EligibilitySnapshot(
        max_amount=int(report.max_amount * bonus),
        approval_odds=report.approval_odds,
        dti=report.financials.dti,
    )


def _impacts(profile: ApplicantProfile, scenario: SimulationScenario,
             current: EligibilitySnapshot, projected: EligibilitySnapshot,
             projected_score: int) -> list[Impact]:
    impacts = [
        Impact(
            factor="Debt Reduction",
            change=min(20, scenario.pay_off_debt / 100000 * 10) if scenario.pay_off_debt > 0 else 0,
            description=f"Improves DTI from {current.dti:.0f}% to {projected.dti:.0f}%",
        ),
        Impact(
            factor="Income Growth",
            change=min(25, scenario.increase_income / 10000 * 5) if scenario.increase_income > 0 else 0,
            description=f"Increases available income by ₹{format_inr(scenario.increase_income)}",
        ),
        Impact(
            factor="Credit Score",
            change=min(15, scenario.improve_score / 5) if scenario.improve_score > 0 else 0,
            description=f"Boosts score from {profile.credit_score} to {projected_score}",
        ),
        Impact(
            factor="Joint Application",
            change=30 if scenario.joint_application else 0,
            description="Combines household income",
        ),
    ]
    return [i for i in impacts if i.change > 0]


def best_recommendation(scenario: SimulationScenario, impacts: list[Impact]) -> str:
    """Pick the single highest-leverage action."""
    if scenario.joint_application:
        return RECOMMENDATIONS["Joint Application"]
    if not impacts:
        return DEFAULT_RECOMMENDATION
    strongest = max(impacts, key=lambda i: i.change)
    return RECOMMENDATIONS.get(strongest.factor, DEFAULT_RECOMMENDATION)


def timeline_bucket(scenario: SimulationScenario) -> str:
    months = max(0, scenario.wait_months)
    if scenario.improve_score > 0:
        months = max(months, 3)
    if scenario.pay_off_debt > LARGE_PAYOFF:
        months = max(months, 6)
    if scenario.joint_application:
        months = max(months, 1)

    if months == 0:
        return "Immediate"
    if months <= 3:
        return "1-3 months"
    if months <= 6:
        return "3-6 months"
    return "6-12 months"


def simulate_optimization(raw_profile: ApplicantProfile,
                          scenario: SimulationScenario) -> SimulationResult:
    """Compare current eligibility with the eligibility after ``scenario``."""
    profile = raw_profile.normalize()
    projected_profile = project_profile(profile, scenario)

    current = _snapshot(profile)
    bonus = SEASONING_BONUS if scenario.wait_months >= SEASONING_MONTHS else 1.0
    projected = _snapshot(projected_profile, bonus)

    delta = projected.max_amount - current.max_amount
    percentage = delta / current.max_amount * 100 if current.max_amount else 0.0

    impacts = _impacts(profile, scenario, current, projected, projected_profile.credit_score)
    return SimulationResult(
        current=current,
        projected=projected,
        improvement_amount=delta,
        improvement_percentage=round(percentage, 1),
        impacts=impacts,
        recommendation=best_recommendation(scenario, impacts),
        timeline=timeline_bucket(scenario),
    )
