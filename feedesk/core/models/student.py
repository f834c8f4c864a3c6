"""Student record: enrollment, carried-over pending fees and the live current-year fee."""

from datetime import datetime

from sqlalchemy import Column, Date, DateTime, Integer, Numeric, String, Text
from sqlalchemy.types import JSON

from feedesk.db.session import Base


class StudentRecord(Base):
    """
    One row per student, keyed by admission number.
    sessions / previous_pending are JSON lists; amounts inside them are stored as strings.
    version is bumped on every save and guards against lost updates.
    """

    __tablename__ = "students"

    admission_number = Column(String(50), primary_key=True)
    student_name = Column(String(255), nullable=False)
    father_name = Column(String(255), nullable=True)
    mother_name = Column(String(255), nullable=True)
    dob = Column(Date, nullable=True)
    sessions = Column(JSON, nullable=False, default=list)  # [{"session_label", "class_name"}]
    previous_pending = Column(JSON, nullable=False, default=list)  # [{"year_label", "amount"}]
    current_year_fees = Column(Numeric(12, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)
    version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
