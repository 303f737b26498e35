"""Deterministic calculators exposed over HTTP.

These never fail on missing profile data: absent values are defaulted.
"""

from fastapi import APIRouter

from arthastra.schemas import ProfileInput, SimulateRequest
from arthastra.services.applicant_profile import ApplicantProfile, coerce_amount
from arthastra.services.credit_bureau import fetch_credit_report
from arthastra.services.credit_simulator import SimulationScenario, simulate_optimization
from arthastra.services.eligibility import calculate_eligibility
from arthastra.services.loan_offers import generate_loan_offers

router = APIRouter()


def to_profile(data: ProfileInput) -> ApplicantProfile:
    return ApplicantProfile.from_mapping(data.model_dump(exclude_none=True))


@router.post("/eligibility")
async def eligibility(data: ProfileInput):
    return calculate_eligibility(to_profile(data)).to_dict()


@router.post("/offers")
async def offers(data: ProfileInput):
    return {"offers": [o.to_dict() for o in generate_loan_offers(to_profile(data))]}


@router.post("/simulate")
async def simulate(data: SimulateRequest):
    s = data.scenario
    scenario = SimulationScenario(
        pay_off_debt=coerce_amount(s.pay_off_debt) or 0,
        increase_income=coerce_amount(s.increase_income) or 0,
        improve_score=coerce_amount(s.improve_score) or 0,
        wait_months=s.wait_months,
        joint_application=s.joint_application,
    )
    return simulate_optimization(to_profile(data.profile), scenario).to_dict()


@router.post("/credit-report")
async def credit_report(data: ProfileInput):
    return fetch_credit_report(to_profile(data)).to_dict()
