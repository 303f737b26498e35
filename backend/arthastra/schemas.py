"""Pydantic schemas for request/response validation."""

from datetime import datetime
from typing import Any, Optional, Literal
from pydantic import BaseModel, Field

from arthastra.models.alert import AlertType, AlertSeverity
from arthastra.services.applicant_profile import (
    MAX_AMOUNT, MAX_CREDIT_SCORE, MAX_TENURE_YEARS, MIN_CREDIT_SCORE,
)


# ── Applicant profile ────────────────────────────────

class ProfileInput(BaseModel):
    """Financial profile as sent by the client; every field may be missing.

    Missing values are defaulted by ``ApplicantProfile.normalize()``, never
    rejected.
    """
    monthly_income: Optional[float] = None
    existing_emi: Optional[float] = None
    monthly_expenses: Optional[float] = None
    credit_score: Optional[float] = None
    has_credit_history: Optional[bool] = None
    employment_type: Optional[str] = None  # salaried, self_employed, freelancer
    employment_tenure: Optional[str] = None  # <6_months, 6m-1yr, 1-2yr, 2-5yr, 5+yr
    loan_amount: Optional[float] = None
    tenure: Optional[float] = None  # years
    is_joint_application: Optional[bool] = None
    coborrower_income: Optional[float] = None
    years_with_employer: Optional[str] = None

    model_config = {"extra": "ignore"}


class ScenarioInput(BaseModel):
    pay_off_debt: float = Field(0, ge=0)
    increase_income: float = Field(0, ge=0)
    improve_score: float = Field(0, ge=0)
    wait_months: int = Field(0, ge=0)
    joint_application: bool = False


class SimulateRequest(BaseModel):
    profile: ProfileInput = Field(default_factory=ProfileInput)
    scenario: ScenarioInput = Field(default_factory=ScenarioInput)


# ── Users ────────────────────────────────────────────

class RegisterRequest(ProfileInput):
    phone: str = Field(min_length=1, max_length=20)
    name: str = Field("", max_length=200)
    age: Optional[int] = Field(None, ge=0, le=120)
    city: str = ""
    state: str = ""
    language: str = "en"
    company_name: str = ""
    savings_range: str = ""
    loan_purpose: str = ""
    preferred_emi: Optional[float] = None
    coborrower_relationship: str = ""
    onboarding_step: Optional[int] = Field(None, ge=0)


class LoginRequest(BaseModel):
    phone: str = Field(min_length=1, max_length=20)


class UserUpdate(BaseModel):
    """Optional fields for updating the current user's profile."""
    name: Optional[str] = Field(None, max_length=200)
    age: Optional[int] = Field(None, ge=0, le=120)
    city: Optional[str] = None
    state: Optional[str] = None
    language: Optional[str] = None
    employment_type: Optional[str] = None
    monthly_income: Optional[int] = Field(None, ge=0, le=MAX_AMOUNT)
    employment_tenure: Optional[str] = None
    company_name: Optional[str] = None
    existing_emi: Optional[int] = Field(None, ge=0, le=MAX_AMOUNT)
    monthly_expenses: Optional[int] = Field(None, ge=0, le=MAX_AMOUNT)
    savings_range: Optional[str] = None
    has_credit_history: Optional[bool] = None
    credit_score: Optional[int] = Field(None, ge=MIN_CREDIT_SCORE, le=MAX_CREDIT_SCORE)
    loan_purpose: Optional[str] = None
    loan_amount: Optional[int] = Field(None, ge=0, le=MAX_AMOUNT)
    preferred_emi: Optional[int] = Field(None, ge=0, le=MAX_AMOUNT)
    tenure: Optional[int] = Field(None, ge=0, le=MAX_TENURE_YEARS)
    is_joint_application: Optional[bool] = None
    coborrower_income: Optional[int] = Field(None, ge=0, le=MAX_AMOUNT)
    coborrower_relationship: Optional[str] = None
    onboarding_step: Optional[int] = Field(None, ge=0)
    selected_loan: Optional[dict[str, Any]] = None
    emi_schedule: Optional[list[dict[str, Any]]] = None


class UserResponse(BaseModel):
    id: int
    name: str
    age: int
    phone: str
    city: str
    state: str
    language: str
    employment_type: str
    monthly_income: int
    employment_tenure: str
    company_name: str
    existing_emi: int
    monthly_expenses: int
    savings_range: str
    has_credit_history: bool
    credit_score: int
    loan_purpose: str
    loan_amount: int
    preferred_emi: int
    tenure: int
    is_joint_application: bool
    coborrower_income: int
    coborrower_relationship: str
    pan_number: Optional[str] = None
    aadhaar_number: Optional[str] = None
    onboarding_step: int
    selected_loan: Optional[dict[str, Any]] = None
    credit_score_history: list[dict[str, Any]] = []
    emi_schedule: list[dict[str, Any]] = []
    spending_categories: dict[str, Any] = {}
    last_active_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SessionResponse(BaseModel):
    success: bool = True
    user_id: int
    token: str


class DocumentTextRequest(BaseModel):
    """OCR text of an uploaded KYC document."""
    document_type: Literal["pan", "aadhaar", "any"] = "any"
    text: str = Field(min_length=1, max_length=20000)


# ── Alerts ───────────────────────────────────────────

class AlertResponse(BaseModel):
    id: int
    alert_type: AlertType
    severity: AlertSeverity
    title: str
    message: str
    read: bool
    meta: dict[str, Any] = Field(default_factory=dict, serialization_alias="metadata")
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class AlertListResponse(BaseModel):
    alerts: list[AlertResponse]
    unread_count: int


class AlertReadRequest(BaseModel):
    alert_id: Optional[int] = None
    mark_all: bool = False


# ── Advisor ──────────────────────────────────────────

class ChatMessage(BaseModel):
    role: str = "user"
    content: str = ""
    context: Optional[dict[str, Any]] = None


class ChatRequest(BaseModel):
    messages: list[ChatMessage] = Field(min_length=1)
    language: Literal["en", "hi"] = "en"
    context: Optional[dict[str, Any]] = None


class ChatResponse(BaseModel):
    response: str
    agent: str


# ── Notifications ────────────────────────────────────

class NotifyRequest(BaseModel):
    stage: str = Field(min_length=1, max_length=50)
    user_data: dict[str, Any] = Field(default_factory=dict)


class TestWhatsAppRequest(BaseModel):
    phone: str = Field(min_length=1, max_length=20)
    message: Optional[str] = None
