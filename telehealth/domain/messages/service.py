from typing import Optional, List, Tuple, Dict, Any
from datetime import datetime
import logging
import uuid

from sqlalchemy.orm import Session

from telehealth.core.exceptions import ValidationError, NotFoundError, AuthorizationError
from telehealth.core.permissions import CurrentUser
from telehealth.domain.appointments.service import utc_now
from telehealth.domain.auth.models import User, UserRole
from telehealth.domain.auth.repository import UserRepository
from telehealth.domain.messages.models import Message
from telehealth.domain.messages.repository import MessageRepository

logger = logging.getLogger(__name__)

# Roles listed as contacts for each caller role
CONTACT_ROLES = {
    UserRole.PATIENT: (UserRole.PROVIDER,),
    UserRole.PROVIDER: (UserRole.PATIENT, UserRole.PROVIDER),
    UserRole.ADMIN: (UserRole.PATIENT, UserRole.PROVIDER, UserRole.ADMIN),
}


class MessageService:
    """Service layer for the provider and patient inbox"""

    def __init__(self, db: Session):
        self.db = db
        self.message_repo = MessageRepository(db)
        self.user_repo = UserRepository(db)

    def send_message(
        self,
        caller: CurrentUser,
        recipient_id: uuid.UUID,
        content: str,
        subject: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Message:
        if not content or not content.strip():
            raise ValidationError("Message content is required", field="content")

        if recipient_id == caller.id:
            raise ValidationError("Cannot send a message to yourself", field="recipient_id")

        recipient = self.user_repo.get_active(recipient_id)
        if not recipient:
            raise ValidationError("Recipient not found", field="recipient_id")

        if caller.is_patient and recipient.role != UserRole.PROVIDER:
            raise AuthorizationError("Patients can only message providers")

        sender = self.user_repo.get_active(caller.id)
        if not sender:
            raise NotFoundError("Sender account not found")

        message = self.message_repo.create({
            "sender_id": sender.id,
            "recipient_id": recipient.id,
            "sender_name": sender.full_name,
            "subject": subject,
            "content": content.strip(),
            "sent_at": now or utc_now(),
        })
        logger.info(f"Message {message.id} sent from {sender.id} to {recipient.id}")
        return message

    def list_inbox(
        self,
        caller: CurrentUser,
        unread_only: bool = False,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Message], int]:
        """Messages addressed to the caller, newest first"""
        messages = self.message_repo.get_inbox(caller.id, unread_only, skip, limit)
        total = self.message_repo.count_inbox(caller.id, unread_only)
        return messages, total

    def mark_read(self, caller: CurrentUser, message_id: uuid.UUID, now: Optional[datetime] = None) -> Message:
        message = self.message_repo.get_by_id(message_id)
        if not message or message.recipient_id != caller.id:
            raise NotFoundError("Message not found")

        if message.is_read:
            return message

        message.is_read = True
        message.read_at = now or utc_now()
        return self.message_repo.save(message, "mark message read")

    def count_unread(self, user_id: uuid.UUID) -> int:
        return self.message_repo.count_inbox(user_id, unread_only=True)

    def list_contacts(self, caller: CurrentUser) -> List[Dict[str, Any]]:
        """People the caller can message, most recent conversation first.

        Each entry carries the last message exchanged (or None) and how many
        messages from that contact the caller has not read. Contacts without
        any conversation follow, by name.
        """
        users = self.user_repo.get_active_by_roles(CONTACT_ROLES[caller.role], exclude_id=caller.id)
        latest = self.message_repo.get_latest_per_counterpart(caller.id)
        unread = self.message_repo.count_unread_by_sender(caller.id)

        contacts = []
        for user in users:
            last = latest.get(user.id)
            contacts.append({
                "id": user.id,
                "full_name": user.full_name,
                "email": user.email,
                "role": user.role,
                "last_message": {
                    "content": last.content,
                    "sent_at": last.sent_at,
                    "is_read": last.is_read,
                    "sender_id": last.sender_id,
                    "sender_name": last.sender_name,
                } if last else None,
                "unread_count": unread.get(user.id, 0),
            })

        talked = [c for c in contacts if c["last_message"]]
        talked.sort(key=lambda c: c["last_message"]["sent_at"], reverse=True)
        return talked + [c for c in contacts if not c["last_message"]]

    def _get_contact(self, contact_id: uuid.UUID) -> User:
        contact = self.user_repo.get_active(contact_id)
        if not contact:
            raise NotFoundError("Contact not found")
        return contact

    def get_conversation(
        self,
        caller: CurrentUser,
        contact_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[User, List[Message], int]:
        """Messages exchanged with one contact, newest first"""
        contact = self._get_contact(contact_id)
        messages = self.message_repo.get_thread(caller.id, contact.id, skip, limit)
        total = self.message_repo.count_thread(caller.id, contact.id)
        return contact, messages, total

    def mark_conversation_read(
        self,
        caller: CurrentUser,
        contact_id: uuid.UUID,
        now: Optional[datetime] = None
    ) -> int:
        """Mark everything the contact sent to the caller as read"""
        contact = self._get_contact(contact_id)
        updated = self.message_repo.mark_thread_read(caller.id, contact.id, now or utc_now())
        logger.info(f"{updated} messages from {contact.id} marked read by {caller.id}")
        return updated
