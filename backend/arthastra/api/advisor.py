"""AI advisor endpoints.

Each handler runs the deterministic tools first and lets the LLM narrate the
result. Provider failures map onto HTTP statuses: quota 429, unusable output
or provider error 502, no API key 503.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from arthastra.config import settings
from arthastra.schemas import ProfileInput, ChatRequest, ChatResponse
from arthastra.services.agents.chat import ChatResponder
from arthastra.services.agents.council import CouncilAgent
from arthastra.services.agents.loan_officer import LoanOfficerAgent
from arthastra.services.agents.recovery import RecoveryAgent
from arthastra.services.ai.errors import (
    LLMError,
    LLMNotConfiguredError,
    MalformedModelOutput,
    QuotaExceededError,
)
from arthastra.services.ai.llm_client import LLMClient, get_llm
from arthastra.api.tools import to_profile

logger = logging.getLogger(__name__)
router = APIRouter()
limiter = Limiter(key_func=get_remote_address)


def llm_http_error(exc: LLMError) -> HTTPException:
    if isinstance(exc, QuotaExceededError):
        return HTTPException(status_code=429, detail="AI quota exceeded. Please wait a moment and try again.")
    if isinstance(exc, LLMNotConfiguredError):
        return HTTPException(status_code=503, detail="AI advisor is not configured")
    if isinstance(exc, MalformedModelOutput):
        return HTTPException(status_code=502, detail="Failed to parse AI response")
    return HTTPException(status_code=502, detail=str(exc) or "AI provider error")


@router.post("/loan-recommendations")
@limiter.limit(settings.ai_rate_limit)
async def loan_recommendations(
    data: ProfileInput,
    request: Request,
    llm: LLMClient = Depends(get_llm),
):
    try:
        return await LoanOfficerAgent(llm).recommend_loans(to_profile(data))
    except LLMError as exc:
        logger.warning("Loan recommendation failed: %s", exc)
        raise llm_http_error(exc)


@router.post("/eligibility-analysis")
@limiter.limit(settings.ai_rate_limit)
async def eligibility_analysis(
    data: ProfileInput,
    request: Request,
    llm: LLMClient = Depends(get_llm),
):
    try:
        return await LoanOfficerAgent(llm).analyze_eligibility(to_profile(data))
    except LLMError as exc:
        logger.warning("Eligibility analysis failed: %s", exc)
        raise llm_http_error(exc)


@router.post("/rejection-recovery")
@limiter.limit(settings.ai_rate_limit)
async def rejection_recovery(
    data: ProfileInput,
    request: Request,
    llm: LLMClient = Depends(get_llm),
):
    try:
        return await RecoveryAgent(llm).generate_recovery_plan(to_profile(data))
    except LLMError as exc:
        logger.warning("Recovery plan failed: %s", exc)
        raise llm_http_error(exc)


@router.post("/chat", response_model=ChatResponse)
@limiter.limit(settings.ai_rate_limit)
async def chat(
    data: ChatRequest,
    request: Request,
    llm: LLMClient = Depends(get_llm),
):
    messages = [m.model_dump() for m in data.messages]
    try:
        return await ChatResponder(llm).reply(messages, language=data.language, context=data.context)
    except LLMError as exc:
        logger.warning("Chat failed: %s", exc)
        raise llm_http_error(exc)


@router.post("/council-meeting")
@limiter.limit(settings.ai_rate_limit)
async def council_meeting(
    data: ProfileInput,
    request: Request,
    llm: LLMClient = Depends(get_llm),
):
    try:
        return await CouncilAgent(llm).convene(to_profile(data))
    except LLMError as exc:
        logger.warning("Council meeting failed: %s", exc)
        raise llm_http_error(exc)
