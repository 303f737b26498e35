"""Loan officer agent: deterministic offers and eligibility, narrated by the LLM."""

import json
import logging

from arthastra.services.agents import prompts
from arthastra.services.agents.base import BaseAgent
from arthastra.services.ai.llm_client import LLMClient
from arthastra.services.applicant_profile import ApplicantProfile
from arthastra.services.eligibility import calculate_eligibility
from arthastra.services.loan_offers import generate_loan_offers

logger = logging.getLogger(__name__)

PROMPT_OFFERS = 3


class LoanOfficerAgent(BaseAgent):
    def __init__(self, llm: LLMClient):
        super().__init__("LoanOfficer", "Specialist in loan eligibility and bank recommendations", llm)

    async def recommend_loans(self, raw_profile: ApplicantProfile) -> dict:
        """Price every catalog product, then ask the model to pick and explain.

        Returns ``{"offers": [...], "analysis": {...}}``. The offers are the
        computed ones; the model only contributes the narrative.
        """
        profile = raw_profile.normalize()
        offers = [o.to_dict() for o in generate_loan_offers(profile)]

        prompt = prompts.render(
            prompts.RECOMMENDATION,
            monthly_income=profile.monthly_income,
            existing_emi=profile.existing_emi,
            credit_score=raw_profile.credit_score or "Not available",
            employment_type=profile.employment_type,
            loan_amount=profile.loan_amount,
            tenure=profile.tenure,
            available_offers=json.dumps(offers[:PROMPT_OFFERS]),
        )
        analysis = await self.generate_json(prompt)
        return {"offers": offers, "analysis": analysis}

    async def analyze_eligibility(self, raw_profile: ApplicantProfile) -> dict:
        """Returns ``{"report": {...}, "insights": {...}}``."""
        report = calculate_eligibility(raw_profile)
        profile = raw_profile.normalize()

        prompt = prompts.render(
            prompts.ELIGIBILITY,
            monthly_income=profile.monthly_income,
            existing_emi=profile.existing_emi,
            credit_score=raw_profile.credit_score or "Not provided",
            employment_type=profile.employment_type,
            years_with_employer=profile.years_with_employer or "Not provided",
            dti=f"{report.financials.dti:.2f}",
            tool_result=json.dumps(report.to_dict()),
        )
        insights = await self.generate_json(prompt)
        return {"report": report.to_dict(), "insights": insights}
