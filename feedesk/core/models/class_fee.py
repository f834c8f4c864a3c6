"""Class fee configuration: annual fee per session label for one class."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.types import JSON

from feedesk.db.session import Base


class ClassFeeRecord(Base):
    """fee_structure maps free-text session labels ("2025-26") to amount strings."""

    __tablename__ = "class_fees"

    class_name = Column(String(50), primary_key=True)
    fee_structure = Column(JSON, nullable=False, default=dict)
    display_order = Column(Integer, nullable=True)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
