"""Financial council: two advocates argue a loan, a judge decides.

The optimist and the pessimist see the same normalized profile and argue
concurrently; the judge reads both arguments and returns a JSON verdict.
An unreadable verdict is not an error: the council falls back to a
non-approval with neutral confidence.
"""

import asyncio
import json
import logging
import math
from dataclasses import dataclass, asdict, field

from arthastra.services.agents import prompts
from arthastra.services.agents.base import BaseAgent
from arthastra.services.ai.errors import MalformedModelOutput
from arthastra.services.ai.llm_client import LLMClient
from arthastra.services.ai.output_parser import parse_model_json
from arthastra.services.applicant_profile import ApplicantProfile
from arthastra.services.payment_calculator import calculate_dti, round_half_up

logger = logging.getLogger(__name__)

DEFAULT_VERDICT = "Decision pending"
DEFAULT_CONFIDENCE = 50
VERDICT_PREVIEW_CHARS = 200
JUDGE_TEMPERATURE = 0.3
COUNCIL_MEMBERS = ["optimist", "pessimist", "judge"]


@dataclass
class CouncilDecision:
    optimist_argument: str
    pessimist_argument: str
    judge_verdict: str
    approved: bool = False
    confidence: int = DEFAULT_CONFIDENCE
    agents: list[str] = field(default_factory=lambda: list(COUNCIL_MEMBERS))

    def to_dict(self) -> dict:
        return asdict(self)


def _confidence(value) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return DEFAULT_CONFIDENCE
    if not math.isfinite(number):
        return DEFAULT_CONFIDENCE
    return max(0, min(100, round_half_up(number)))


def _approved(value) -> bool:
    # Models sometimes answer "true" as a string
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "approved")
    return value is True


def read_judgment(text: str) -> tuple[str, bool, int]:
    """(verdict, approved, confidence) from the judge's reply."""
    try:
        data = parse_model_json(text)
    except MalformedModelOutput:
        logger.warning("[Council] Judge verdict was not JSON, using the default decision")
        preview = (text or "").strip()[:VERDICT_PREVIEW_CHARS]
        return preview or DEFAULT_VERDICT, False, DEFAULT_CONFIDENCE
    verdict = str(data.get("verdict") or "").strip() or DEFAULT_VERDICT
    return verdict, _approved(data.get("approved")), _confidence(data.get("confidence"))


def applicant_summary(profile: ApplicantProfile) -> dict:
    """The facts both advocates argue from."""
    return {
        "monthly_income": profile.monthly_income,
        "existing_emi": profile.existing_emi,
        "monthly_expenses": profile.monthly_expenses,
        "credit_score": profile.credit_score if profile.has_credit_history else None,
        "employment_type": profile.employment_type,
        "employment_tenure": profile.employment_tenure,
        "loan_amount": profile.loan_amount,
        "tenure_years": profile.tenure,
    }


class CouncilAgent(BaseAgent):
    def __init__(self, llm: LLMClient):
        super().__init__("Council", "Debates a loan application and issues a verdict", llm)

    async def convene(self, raw_profile: ApplicantProfile) -> dict:
        profile = raw_profile.normalize()
        applicant = json.dumps(applicant_summary(profile))

        optimist, pessimist = await asyncio.gather(
            self.generate(prompts.render(prompts.COUNCIL_OPTIMIST, applicant=applicant)),
            self.generate(prompts.render(prompts.COUNCIL_PESSIMIST, applicant=applicant)),
        )

        judge_prompt = prompts.render(
            prompts.COUNCIL_JUDGE,
            optimist=optimist.strip(),
            pessimist=pessimist.strip(),
            monthly_income=profile.monthly_income,
            existing_emi=profile.existing_emi,
            dti=round_half_up(calculate_dti(profile.monthly_income, profile.existing_emi)),
            loan_amount=profile.loan_amount,
            credit_score=profile.credit_score if profile.has_credit_history else "N/A",
        )
        verdict, approved, confidence = read_judgment(
            await self.generate(judge_prompt, temperature=JUDGE_TEMPERATURE)
        )
        logger.info("[Council] %s with %d%% confidence", "Approved" if approved else "Rejected", confidence)

        return CouncilDecision(
            optimist_argument=optimist.strip(),
            pessimist_argument=pessimist.strip(),
            judge_verdict=verdict,
            approved=approved,
            confidence=confidence,
        ).to_dict()
