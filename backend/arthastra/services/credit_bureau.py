"""Simulated CIBIL bureau pull.

The advisor reads the score the applicant already shared during onboarding
and packages it as a bureau-style report for the recovery agent. No network
call is made.
"""

import random
from dataclasses import dataclass, field, asdict
from datetime import date
from typing import Optional

from arthastra.services.applicant_profile import ApplicantProfile

NO_HISTORY_SCORE = -1


class CreditReportUnavailable(Exception):
    """No profile is linked, so there is nothing to report on."""


@dataclass
class CreditReport:
    report_id: str
    score: int
    score_band: str  # Excellent, Good, Fair, Poor
    summary: str
    factors: list[str] = field(default_factory=list)
    last_updated: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


def score_band(score: int) -> str:
    if score >= 750:
        return "Excellent"
    if score >= 700:
        return "Good"
    if score >= 650:
        return "Fair"
    return "Poor"


def _report_id() -> str:
    return f"CIBIL-{random.randint(0, 99999)}"


def fetch_credit_report(profile: Optional[ApplicantProfile],
                        today: Optional[date] = None) -> CreditReport:
    """Return the applicant's bureau report.

    Uses the raw (un-normalized) profile: a missing score with no declared
    history is reported as "No Credit History Found (NH)".
    """
    if profile is None:
        raise CreditReportUnavailable("ACCESS_DENIED: No user profile linked.")

    today = today or date.today()
    score = profile.credit_score or 0
    has_history = bool(profile.has_credit_history)

    if score == 0 and not has_history:
        return CreditReport(
            report_id=_report_id(),
            score=NO_HISTORY_SCORE,
            score_band="Poor",
            summary="No Credit History Found (NH)",
            factors=["No active loans", "No credit cards"],
            last_updated=today.isoformat(),
        )

    return CreditReport(
        report_id=_report_id(),
        score=score,
        score_band=score_band(score),
        summary=f"Active credit profile found with score {score}",
        factors=[
            "Payment history verified",
            "Active loans present" if (profile.existing_emi or 0) > 0 else "No active loans detected",
        ],
        last_updated=today.isoformat(),
    )
