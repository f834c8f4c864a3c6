import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text

from feedesk.db.session import Base


class User(Base):
    """Staff or parent account. role is one of ADMIN, ACCOUNTANT, TEACHER, PARENT."""

    __tablename__ = "users"

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    username = Column(String(100), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    password_hash = Column(Text, nullable=False)
    role = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default="ACTIVE")
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
