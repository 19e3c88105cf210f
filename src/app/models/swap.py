"""Shift swap request and history models."""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UTCDateTime, utcnow


class SwapRequest(Base, TimestampMixin):
    """Shift swap request table (one row per exchange attempt)."""

    __tablename__ = "swap_requests"

    # Primary key
    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    swap_code: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)

    # Parties
    requestor_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    target_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    manager_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # Shifts
    swap_type: Mapped[str] = mapped_column(String(30), nullable=False)
    requestor_date: Mapped[date] = mapped_column(Date, nullable=False)
    requestor_shift_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    target_date: Mapped[date] = mapped_column(Date, nullable=False)
    target_shift_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # Request details
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_emergency: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    requires_cross_approval: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    # Workflow
    status: Mapped[str] = mapped_column(
        String(20), default="pending_target", nullable=False, index=True
    )
    version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Target response
    target_response: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    target_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    target_actor_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    target_responded_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(), nullable=True
    )

    # Manager response
    manager_response: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    manager_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    manager_actor_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    manager_responded_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(), nullable=True
    )

    # HR (cross-department) response
    hr_response: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    hr_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    hr_actor_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    hr_responded_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(), nullable=True
    )

    __table_args__ = (
        Index("idx_swap_requestor_date", "requestor_id", "requestor_date"),
        Index("idx_swap_target_date", "target_id", "target_date"),
        CheckConstraint(
            "status IN ('pending_target', 'pending_manager', 'pending_hr', "
            "'approved', 'completed', 'rejected', 'expired')",
            name="swap_status",
        ),
        CheckConstraint(
            "swap_type IN ('direct_swap', 'one_way_coverage')",
            name="swap_type",
        ),
        CheckConstraint("version >= 0", name="swap_version"),
    )


class SwapHistory(Base):
    """Append-only transition log for swap requests."""

    __tablename__ = "swap_history"

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    swap_request_id: Mapped[str] = mapped_column(
        String(50), ForeignKey("swap_requests.id"), nullable=False, index=True
    )
    sequence_number: Mapped[int] = mapped_column(Integer, nullable=False)

    action: Mapped[str] = mapped_column(String(20), nullable=False)
    actor_id: Mapped[str] = mapped_column(String(64), nullable=False)
    actor_role: Mapped[str] = mapped_column(String(20), nullable=False)
    previous_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    new_status: Mapped[str] = mapped_column(String(20), nullable=False)
    detail: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, nullable=False, index=True
    )

    __table_args__ = (
        UniqueConstraint(
            "swap_request_id", "sequence_number", name="uq_swap_history_sequence"
        ),
        CheckConstraint(
            "action IN ('created', 'accepted', 'rejected', 'approved', "
            "'escalated', 'expired', 'completed')",
            name="swap_history_action",
        ),
    )
