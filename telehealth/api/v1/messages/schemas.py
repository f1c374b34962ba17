from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime
import uuid

from telehealth.domain.auth.models import UserRole


class MessageCreate(BaseModel):
    recipient_id: uuid.UUID
    subject: Optional[str] = Field(None, max_length=255)
    content: str = Field(..., max_length=5000)


class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    sender_id: uuid.UUID
    sender_name: str
    recipient_id: uuid.UUID
    subject: Optional[str] = None
    content: str
    is_read: bool
    sent_at: Optional[datetime] = None
    read_at: Optional[datetime] = None


class InboxResponse(BaseModel):
    items: List[MessageResponse]
    total: int
    unread: int


class LastMessage(BaseModel):
    content: str
    sent_at: Optional[datetime] = None
    is_read: bool
    sender_id: uuid.UUID
    sender_name: str


class ContactSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    full_name: str
    email: str
    role: UserRole


class ContactResponse(ContactSummary):
    last_message: Optional[LastMessage] = None
    unread_count: int = 0


class ContactListResponse(BaseModel):
    contacts: List[ContactResponse]


class ConversationResponse(BaseModel):
    contact: ContactSummary
    items: List[MessageResponse]
    total: int


class ConversationReadResponse(BaseModel):
    marked_read: int
