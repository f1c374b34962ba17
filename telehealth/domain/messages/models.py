from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Text, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from telehealth.infrastructure.database import Base
import uuid


class Message(Base):
    """Direct message between two users"""
    __tablename__ = "messages"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    sender_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    recipient_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    # Denormalized for inbox display
    sender_name = Column(String(200), nullable=False)

    subject = Column(String(255))
    content = Column(Text, nullable=False)

    is_read = Column(Boolean, default=False, nullable=False, index=True)
    sent_at = Column(DateTime, default=func.now(), index=True)
    read_at = Column(DateTime)

    # Relationships
    sender = relationship("User", foreign_keys=[sender_id])
    recipient = relationship("User", foreign_keys=[recipient_id])
