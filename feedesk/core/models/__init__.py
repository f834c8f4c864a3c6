from feedesk.core.models.student import StudentRecord
from feedesk.core.models.payment import PaymentRecord
from feedesk.core.models.class_fee import ClassFeeRecord

__all__ = [
    "StudentRecord",
    "PaymentRecord",
    "ClassFeeRecord",
]
