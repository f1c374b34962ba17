from typing import Optional, List, Dict
from datetime import datetime
from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session
import uuid

from telehealth.domain.messages.models import Message
from telehealth.infrastructure.database import commit_or_raise


class MessageRepository:
    """Repository for user-to-user messages"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, message_data: dict) -> Message:
        message = Message(**message_data)
        self.db.add(message)
        commit_or_raise(self.db, "send message")
        self.db.refresh(message)
        return message

    def get_by_id(self, message_id: uuid.UUID) -> Optional[Message]:
        return self.db.query(Message).filter(Message.id == message_id).first()

    def _inbox_query(self, recipient_id: uuid.UUID, unread_only: bool):
        query = self.db.query(Message).filter(Message.recipient_id == recipient_id)
        if unread_only:
            query = query.filter(Message.is_read == False)  # noqa: E712
        return query

    def get_inbox(
        self,
        recipient_id: uuid.UUID,
        unread_only: bool = False,
        skip: int = 0,
        limit: int = 20
    ) -> List[Message]:
        return self._inbox_query(recipient_id, unread_only).order_by(
            Message.sent_at.desc()
        ).offset(skip).limit(limit).all()

    def count_inbox(self, recipient_id: uuid.UUID, unread_only: bool = False) -> int:
        return self._inbox_query(recipient_id, unread_only).with_entities(
            func.count(Message.id)
        ).scalar() or 0

    def _thread_query(self, user_id: uuid.UUID, contact_id: uuid.UUID):
        """Messages exchanged between two users, in either direction"""
        return self.db.query(Message).filter(
            or_(
                and_(Message.sender_id == user_id, Message.recipient_id == contact_id),
                and_(Message.sender_id == contact_id, Message.recipient_id == user_id)
            )
        )

    def get_thread(
        self,
        user_id: uuid.UUID,
        contact_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50
    ) -> List[Message]:
        return self._thread_query(user_id, contact_id).order_by(
            Message.sent_at.desc()
        ).offset(skip).limit(limit).all()

    def count_thread(self, user_id: uuid.UUID, contact_id: uuid.UUID) -> int:
        return self._thread_query(user_id, contact_id).with_entities(
            func.count(Message.id)
        ).scalar() or 0

    def get_latest_per_counterpart(self, user_id: uuid.UUID) -> Dict[uuid.UUID, Message]:
        """Most recent message of each thread the user takes part in, keyed by the other party"""
        messages = self.db.query(Message).filter(
            or_(Message.sender_id == user_id, Message.recipient_id == user_id)
        ).order_by(Message.sent_at.desc()).all()

        latest = {}
        for message in messages:
            counterpart = message.recipient_id if message.sender_id == user_id else message.sender_id
            latest.setdefault(counterpart, message)
        return latest

    def count_unread_by_sender(self, recipient_id: uuid.UUID) -> Dict[uuid.UUID, int]:
        rows = self.db.query(Message.sender_id, func.count(Message.id)).filter(
            and_(
                Message.recipient_id == recipient_id,
                Message.is_read == False  # noqa: E712
            )
        ).group_by(Message.sender_id).all()
        return {sender_id: count for sender_id, count in rows}

    def mark_thread_read(self, recipient_id: uuid.UUID, sender_id: uuid.UUID, read_at: datetime) -> int:
        """Mark every unread message from sender to recipient read; returns how many changed"""
        updated = self.db.query(Message).filter(
            and_(
                Message.sender_id == sender_id,
                Message.recipient_id == recipient_id,
                Message.is_read == False  # noqa: E712
            )
        ).update({"is_read": True, "read_at": read_at}, synchronize_session="fetch")
        commit_or_raise(self.db, "mark conversation read")
        return updated

    def save(self, message: Message, operation: str) -> Message:
        commit_or_raise(self.db, operation)
        self.db.refresh(message)
        return message
