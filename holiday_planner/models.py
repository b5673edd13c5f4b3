from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from holiday_planner.db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PlannerDocument(Base):
    """Whole planner state stored as one JSON value per key."""

    __tablename__ = "planner_documents"

    key: Mapped[str] = mapped_column(String(120), primary_key=True)
    payload_json: Mapped[dict] = mapped_column(JSON, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
