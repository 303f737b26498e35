"""Rejection-recovery agent.

Pulls the bureau report, simulates a standard improvement scenario and asks
the model for a roadmap grounded in both.
"""

import json
import logging

from arthastra.services.agents import prompts
from arthastra.services.agents.base import BaseAgent
from arthastra.services.ai.llm_client import LLMClient
from arthastra.services.applicant_profile import ApplicantProfile
from arthastra.services.credit_bureau import fetch_credit_report
from arthastra.services.credit_simulator import SimulationScenario, simulate_optimization
from arthastra.services.payment_calculator import calculate_dti, round_half_up

logger = logging.getLogger(__name__)

PAYOFF_EMI_MULTIPLE = 3
SCORE_IMPROVEMENT = 30
WAIT_MONTHS = 3


def recovery_scenario(profile: ApplicantProfile) -> SimulationScenario:
    """Pay off three months of EMI, gain 30 points, wait a quarter."""
    return SimulationScenario(
        pay_off_debt=round_half_up((profile.existing_emi or 0) * PAYOFF_EMI_MULTIPLE),
        improve_score=SCORE_IMPROVEMENT,
        wait_months=WAIT_MONTHS,
    )


class RecoveryAgent(BaseAgent):
    def __init__(self, llm: LLMClient):
        super().__init__("RecoveryAgent", "Specialist in credit rehabilitation and rejection recovery", llm)

    async def generate_recovery_plan(self, raw_profile: ApplicantProfile) -> dict:
        profile = raw_profile.normalize()
        dti = round_half_up(calculate_dti(profile.monthly_income, profile.existing_emi))

        report = fetch_credit_report(raw_profile)
        simulation = simulate_optimization(profile, recovery_scenario(profile))
        upside = {
            "potential_max_loan": simulation.projected.max_amount,
            "potential_approval_odds": simulation.projected.approval_odds,
        }

        prompt = prompts.render(
            prompts.RECOVERY,
            monthly_income=profile.monthly_income,
            existing_emi=profile.existing_emi,
            credit_score=raw_profile.credit_score or "No History",
            employment_type=profile.employment_type,
            dti=dti,
            simulation=json.dumps({"cibil_report": report.to_dict(), "simulation_result": upside}),
        )
        plan = await self.generate_json(prompt)
        weaknesses = plan.get("analysis")
        logger.info(
            "Recovery plan generated with %d weaknesses",
            len(weaknesses) if isinstance(weaknesses, list) else 0,
        )
        return {
            **plan,
            "credit_report": report.to_dict(),
            "simulation": upside,
        }
