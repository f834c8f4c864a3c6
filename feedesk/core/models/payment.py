"""Payment record: append-only history of money received against a student."""

from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.types import JSON

from feedesk.db.session import Base


class PaymentRecord(Base):
    """
    A payment and its allocation across year buckets.
    recorded_by is a {"id", "name"} snapshot, not a FK, so receipts survive user deletion.
    """

    __tablename__ = "payments"

    id = Column(String(64), primary_key=True)
    student_admission_number = Column(
        String(50),
        ForeignKey("students.admission_number", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Index in the student's payment list; history order is preserved by it.
    position = Column(Integer, nullable=False)
    paid_on = Column(Date, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    mode = Column(String(20), nullable=False)  # CASH, CHEQUE, TRANSFER, CARD
    applied_to = Column(JSON, nullable=False)  # [{"year_label", "amount"}]
    receipt_no = Column(String(64), nullable=False, unique=True)
    recorded_by = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
