from fastapi import APIRouter, Depends, Query, status
import uuid

from telehealth.infrastructure.database import get_db
from telehealth.core.permissions import require_permissions, Permissions
from telehealth.domain.messages.service import MessageService
from telehealth.api.v1.messages.schemas import (
    MessageCreate, MessageResponse, InboxResponse, ContactListResponse,
    ConversationResponse, ConversationReadResponse
)

router = APIRouter()


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def send_message(
    message_data: MessageCreate,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.MESSAGES_SEND]))
):
    service = MessageService(db)
    return service.send_message(
        current_user,
        recipient_id=message_data.recipient_id,
        content=message_data.content,
        subject=message_data.subject
    )


@router.get("/inbox", response_model=InboxResponse)
def get_inbox(
    unread_only: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.MESSAGES_READ]))
):
    """Messages addressed to the caller, newest first"""
    service = MessageService(db)
    messages, total = service.list_inbox(current_user, unread_only, skip=(page - 1) * limit, limit=limit)
    return InboxResponse(items=messages, total=total, unread=service.count_unread(current_user.id))


@router.post("/{message_id}/read", response_model=MessageResponse)
def mark_message_read(
    message_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.MESSAGES_READ]))
):
    service = MessageService(db)
    return service.mark_read(current_user, message_id)


@router.get("/contacts", response_model=ContactListResponse)
def list_contacts(
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.MESSAGES_READ]))
):
    """People the caller can message, with the last message and unread count"""
    service = MessageService(db)
    return ContactListResponse(contacts=service.list_contacts(current_user))


@router.get("/conversations/{contact_id}", response_model=ConversationResponse)
def get_conversation(
    contact_id: uuid.UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.MESSAGES_READ]))
):
    service = MessageService(db)
    contact, messages, total = service.get_conversation(
        current_user, contact_id, skip=(page - 1) * limit, limit=limit
    )
    return ConversationResponse(contact=contact, items=messages, total=total)


@router.post("/conversations/{contact_id}/read", response_model=ConversationReadResponse)
def mark_conversation_read(
    contact_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.MESSAGES_READ]))
):
    service = MessageService(db)
    return ConversationReadResponse(marked_read=service.mark_conversation_read(current_user, contact_id))
