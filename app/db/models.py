"""Database models."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Call(Base):
    """Call metadata model."""

    __tablename__ = "calls"

    id = Column(Integer, primary_key=True, index=True)
    call_sid = Column(String, unique=True, index=True, nullable=False)
    flow = Column(String, default="ivr", nullable=False)  # ivr, agent
    started_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    ended_at = Column(DateTime, nullable=True)
    # in_progress, completed, transferred, abandoned, failed
    status = Column(String, default="in_progress", nullable=False)

    # Relationships
    intake_requests = relationship("IntakeRequest", back_populates="call")


class IntakeRequest(Base):
    """Caller details collected by a finished IVR flow."""

    __tablename__ = "intake_requests"

    id = Column(Integer, primary_key=True, index=True)
    call_id = Column(Integer, ForeignKey("calls.id"), nullable=False)
    path = Column(String, nullable=False)  # new, reschedule, cancel
    caller_name = Column(String, nullable=False)
    date_of_birth = Column(String(8), nullable=False)  # MMDDYYYY
    preferred_when = Column(String, nullable=False)
    status = Column(String, default="pending", nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    call = relationship("Call", back_populates="intake_requests")
