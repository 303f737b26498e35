"""Rows written by ``services.error_logger``: one per failed request or job."""

import enum
from datetime import datetime

from sqlalchemy import String, Text, Integer, DateTime, Enum, Float, Index, func
from sqlalchemy.orm import Mapped, mapped_column

from arthastra.database import Base


class ErrorSeverity(str, enum.Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorLog(Base):
    __tablename__ = "error_logs"
    __table_args__ = (
        Index("ix_error_logs_severity_created", "severity", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    severity: Mapped[ErrorSeverity] = mapped_column(
        Enum(ErrorSeverity, values_callable=lambda e: [i.value for i in e]),
        nullable=False, default=ErrorSeverity.ERROR,
    )

    error_type: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    traceback: Mapped[str | None] = mapped_column(Text)

    # Source file (or caller label) and function that raised
    module: Mapped[str | None] = mapped_column(String(300))
    function_name: Mapped[str | None] = mapped_column(String(200))

    # Empty for Celery jobs
    request_method: Mapped[str | None] = mapped_column(String(10))
    request_path: Mapped[str | None] = mapped_column(String(500))
    status_code: Mapped[int | None] = mapped_column(Integer)
    response_time_ms: Mapped[float | None] = mapped_column(Float)

    # No foreign key: logs outlive deleted accounts
    user_id: Mapped[int | None] = mapped_column(Integer, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
