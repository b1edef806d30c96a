"""Order submission journal model."""
from sqlalchemy import Column, BigInteger, Integer, String, Numeric, Boolean, Text, DateTime, Enum
from sqlalchemy.sql import func
from orderdesk.database import Base
import enum


class SubmissionAction(enum.Enum):
    """What was sent to the backend."""
    CREATE = "CREATE"
    UPDATE = "UPDATE"


class SubmissionStatus(enum.Enum):
    """Outcome of the backend call."""
    SUBMITTED = "SUBMITTED"
    FAILED = "FAILED"


class OrderSubmission(Base):
    """
    One attempt to send an order to the ERP backend.

    Keeps the previewed grand total next to the total the backend answered
    with. The backend total is the authoritative one.
    """

    __tablename__ = 'order_submission'

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    order_type = Column(String(20), nullable=False, index=True)  # 'purchase' | 'sales'
    action = Column(Enum(SubmissionAction, name='submission_action'), nullable=False)
    status = Column(Enum(SubmissionStatus, name='submission_status'), nullable=False, index=True)

    backend_order_id = Column(BigInteger, nullable=True)
    backend_order_code = Column(String(50), nullable=True)

    preview_total = Column(Numeric(18, 4), nullable=True)
    backend_total = Column(Numeric(18, 4), nullable=True)
    has_discrepancy = Column(Boolean, nullable=False, default=False)

    error_message = Column(Text, nullable=True)
    request_payload = Column(Text, nullable=True)  # JSON body sent to the backend

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def to_dict(self):
        return {
            'id': self.id,
            'order_type': self.order_type,
            'action': self.action.value if self.action else None,
            'status': self.status.value if self.status else None,
            'backend_order_id': self.backend_order_id,
            'backend_order_code': self.backend_order_code,
            'preview_total': str(self.preview_total) if self.preview_total is not None else None,
            'backend_total': str(self.backend_total) if self.backend_total is not None else None,
            'has_discrepancy': bool(self.has_discrepancy),
            'error_message': self.error_message,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<OrderSubmission(id={self.id}, order_type={self.order_type}, status={self.status})>"
