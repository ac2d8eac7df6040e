from datetime import datetime, timezone
from sqlalchemy import (
    Column, Integer, String, Text, DateTime, ForeignKey, JSON, Boolean
)
from sqlalchemy.orm import relationship

from flashcards.database import Base


class StudySession(Base):
    """A fixed-size practice set. Item list and quotas never change after creation."""

    __tablename__ = "study_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    domain = Column(String(20), nullable=False)  # questions/alphabet/qcodes
    section_filter = Column(Text, nullable=True)
    item_ids_json = Column(JSON, nullable=False)
    quota_json = Column(JSON, nullable=False)  # section -> quota
    target_size = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), index=True)
    completed_at = Column(DateTime, nullable=True)

    attempts = relationship("Attempt", back_populates="session")


class Attempt(Base):
    """One answer to one item. Rows are only ever inserted."""

    __tablename__ = "attempts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    item_id = Column(String(50), nullable=False, index=True)  # Q123 / AL-NATO-A / QC-QTH
    session_id = Column(Integer, ForeignKey("study_sessions.id"), nullable=True, index=True)
    selected_answer = Column(Text, nullable=False)
    is_correct = Column(Boolean, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), index=True)

    session = relationship("StudySession", back_populates="attempts")
