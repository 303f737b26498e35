"""Applicant account endpoints: register, login, profile, documents."""

import logging
import re
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from arthastra.auth_utils import clear_session_cookie, get_current_user, set_session_cookie
from arthastra.database import get_db
from arthastra.models.user import User, ONBOARDING_COMPLETE_STEP
from arthastra.schemas import (
    RegisterRequest, LoginRequest, UserUpdate, UserResponse, SessionResponse,
    DocumentTextRequest,
)
from arthastra.services.alert_engine import (
    create_welcome_alerts, record_score, seed_credit_history, seed_emi_schedule,
    seed_spending_categories,
)
from arthastra.services.applicant_profile import ApplicantProfile
from arthastra.services.document_fields import extract_identity_numbers
from arthastra.services.error_logger import log_error

logger = logging.getLogger(__name__)
router = APIRouter()
limiter = Limiter(key_func=get_remote_address)

_NON_DIGITS = re.compile(r"\D")


def clean_phone(phone: str) -> str:
    return _NON_DIGITS.sub("", phone or "")


async def _user_by_phone(db: AsyncSession, phone: str) -> User | None:
    result = await db.execute(select(User).where(User.phone == phone))
    return result.scalar_one_or_none()


@router.post("/register", response_model=SessionResponse, status_code=201)
@limiter.limit("10/minute")
async def register(
    data: RegisterRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    phone = clean_phone(data.phone)
    if not phone:
        raise HTTPException(status_code=400, detail="Phone number is required")
    if await _user_by_phone(db, phone):
        raise HTTPException(status_code=409, detail={"error": "User already exists", "code": "USER_EXISTS"})

    try:
        # Stored values are the normalized profile so every tool sees the same numbers
        profile = ApplicantProfile.from_mapping(data.model_dump()).normalize()
        now = datetime.now(timezone.utc)

        user = User(
            phone=phone,
            name=data.name,
            age=data.age or 0,
            city=data.city,
            state=data.state,
            language=data.language,
            employment_type=data.employment_type or "",
            monthly_income=profile.monthly_income,
            employment_tenure=data.employment_tenure or "",
            company_name=data.company_name,
            existing_emi=profile.existing_emi,
            monthly_expenses=profile.monthly_expenses,
            savings_range=data.savings_range,
            has_credit_history=profile.has_credit_history,
            credit_score=profile.credit_score,
            loan_purpose=data.loan_purpose,
            loan_amount=profile.loan_amount,
            preferred_emi=int(data.preferred_emi or 0),
            tenure=profile.tenure,
            is_joint_application=profile.is_joint_application,
            coborrower_income=profile.coborrower_income,
            coborrower_relationship=data.coborrower_relationship,
            onboarding_step=(
                ONBOARDING_COMPLETE_STEP if data.onboarding_step is None else data.onboarding_step
            ),
            credit_score_history=seed_credit_history(profile.credit_score, now),
            emi_schedule=seed_emi_schedule(profile.loan_amount, profile.tenure, now),
            spending_categories=seed_spending_categories(profile.monthly_expenses),
            last_active_at=now,
        )
        db.add(user)
        await db.flush()

        for alert in create_welcome_alerts(user):
            db.add(alert)
    except Exception as e:
        await log_error(e, db=db, module="api.users", function_name="register")
        raise

    token = set_session_cookie(response, user.id)
    logger.info("Registered user %s", user.id)
    return SessionResponse(user_id=user.id, token=token)


@router.post("/login")
@limiter.limit("30/minute")
async def login(
    data: LoginRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    user = await _user_by_phone(db, clean_phone(data.phone))
    if user is None:
        raise HTTPException(status_code=404, detail="No account found. Please Sign Up first.")

    user.last_active_at = datetime.now(timezone.utc)
    await db.flush()
    token = set_session_cookie(response, user.id)
    return {
        "success": True,
        "user_id": user.id,
        "token": token,
        "user": UserResponse.model_validate(user),
    }


@router.get("/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user)):
    return user


@router.put("/update")
async def update_me(
    data: UserUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    now = datetime.now(timezone.utc)
    updates = data.model_dump(exclude_unset=True)

    new_score = updates.get("credit_score")
    for field, value in updates.items():
        if value is not None:
            setattr(user, field, value)
    if new_score:
        record_score(user, new_score, now)
    user.last_active_at = now
    await db.flush()
    await db.refresh(user)

    return {"success": True, "user": UserResponse.model_validate(user)}


@router.delete("/me")
async def delete_me(
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await db.delete(user)
    clear_session_cookie(response)
    logger.info("Deleted user %s and their alerts", user.id)
    return {"success": True}


@router.post("/documents")
async def submit_document_text(
    data: DocumentTextRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Store the PAN/Aadhaar numbers found in a document's OCR text."""
    found = extract_identity_numbers(data.text)
    if data.document_type == "pan":
        found["aadhaar_number"] = None
    elif data.document_type == "aadhaar":
        found["pan_number"] = None

    if not any(found.values()):
        raise HTTPException(status_code=422, detail="No PAN or Aadhaar number found in document")

    for field, value in found.items():
        if value:
            setattr(user, field, value)
    user.last_active_at = datetime.now(timezone.utc)
    await db.flush()
    return {"success": True, "extracted": found}
