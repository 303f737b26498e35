"""Alert model.

Notifications shown in the applicant's dashboard. Alerts are immutable once
created apart from the ``read`` flag.
"""

import enum
from datetime import datetime
from sqlalchemy import (
    String, Enum, DateTime, ForeignKey, Text, Boolean, JSON, Index, func
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from arthastra.database import Base


class AlertType(str, enum.Enum):
    CREDIT_SCORE_CHANGE = "credit_score_change"
    DROP_OFF = "drop_off"
    EMI_REMINDER = "emi_reminder"
    SPENDING_INSIGHT = "spending_insight"
    SYSTEM = "system"


class AlertSeverity(str, enum.Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class Alert(Base):
    __tablename__ = "alerts"
    __table_args__ = (
        Index("ix_alerts_user_read_created", "user_id", "read", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    alert_type: Mapped[AlertType] = mapped_column(
        Enum(AlertType, values_callable=lambda e: [i.value for i in e]),
        nullable=False, index=True
    )
    severity: Mapped[AlertSeverity] = mapped_column(
        Enum(AlertSeverity, values_callable=lambda e: [i.value for i in e]),
        nullable=False, default=AlertSeverity.INFO
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Trigger details; also carries the dedup discriminator (e.g. history_date)
    meta: Mapped[dict] = mapped_column("metadata", JSON, default=dict, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    user = relationship("User", back_populates="alerts")
