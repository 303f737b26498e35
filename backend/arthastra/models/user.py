"""User model: the applicant profile captured during onboarding."""

import enum
from datetime import datetime

from sqlalchemy import String, Boolean, Integer, DateTime, JSON, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from arthastra.database import Base


class EmploymentType(str, enum.Enum):
    SALARIED = "salaried"
    SELF_EMPLOYED = "self_employed"
    FREELANCER = "freelancer"


class EmploymentTenure(str, enum.Enum):
    UNDER_6_MONTHS = "<6_months"
    SIX_TO_12_MONTHS = "6m-1yr"
    ONE_TO_2_YEARS = "1-2yr"
    TWO_TO_5_YEARS = "2-5yr"
    OVER_5_YEARS = "5+yr"


# Onboarding is complete once the applicant reaches this step
ONBOARDING_COMPLETE_STEP = 5


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Basic profile
    name: Mapped[str] = mapped_column(String(200), default="", nullable=False)
    age: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    phone: Mapped[str] = mapped_column(String(20), unique=True, index=True, nullable=False)
    city: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    state: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    language: Mapped[str] = mapped_column(String(10), default="en", nullable=False)

    # Employment
    employment_type: Mapped[str] = mapped_column(String(30), default="", nullable=False)
    monthly_income: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    employment_tenure: Mapped[str] = mapped_column(String(20), default="", nullable=False)
    company_name: Mapped[str] = mapped_column(String(200), default="", nullable=False)

    # Financials
    existing_emi: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    monthly_expenses: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    savings_range: Mapped[str] = mapped_column(String(30), default="", nullable=False)
    has_credit_history: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    credit_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Loan requirement
    loan_purpose: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    loan_amount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    preferred_emi: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    tenure: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Joint application
    is_joint_application: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    coborrower_income: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    coborrower_relationship: Mapped[str] = mapped_column(String(50), default="", nullable=False)

    # Identity numbers extracted from uploaded documents
    pan_number: Mapped[str | None] = mapped_column(String(10), nullable=True)
    aadhaar_number: Mapped[str | None] = mapped_column(String(12), nullable=True)

    # App state
    onboarding_step: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    selected_loan: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    # Alert source data
    credit_score_history: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    emi_schedule: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    spending_categories: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    last_active_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False,
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True,
    )

    alerts = relationship(
        "Alert", back_populates="user", cascade="all, delete-orphan", passive_deletes=True,
    )

    @property
    def onboarding_complete(self) -> bool:
        return self.onboarding_step >= ONBOARDING_COMPLETE_STEP
