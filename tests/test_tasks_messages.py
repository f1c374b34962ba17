import uuid
import pytest
from datetime import datetime
from fastapi.testclient import TestClient

from telehealth.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from telehealth.domain.auth.models import UserRole
from telehealth.domain.messages.service import MessageService
from telehealth.domain.tasks.models import TaskStatus
from telehealth.domain.tasks.service import TaskService
from tests.factories import FIXED_NOW, auth_headers, caller_for, make_user


@pytest.mark.integration
class TestTasks:
    """Test provider task management."""

    def test_provider_task_assigned_to_self(self, db_session, provider, other_provider):
        task = TaskService(db_session).create_task(
            caller_for(provider), "Review bloodwork", assigned_to_id=other_provider.id
        )
        assert task.assigned_to_id == provider.id
        assert task.status == TaskStatus.PENDING

    def test_admin_must_name_assignee(self, db_session, admin_user, provider):
        service = TaskService(db_session)
        with pytest.raises(ValidationError) as exc_info:
            service.create_task(caller_for(admin_user), "Audit charts")
        assert exc_info.value.field == "assigned_to_id"

        task = service.create_task(caller_for(admin_user), "Audit charts", assigned_to_id=provider.id)
        assert task.assigned_to_id == provider.id

    def test_blank_description(self, db_session, provider):
        with pytest.raises(ValidationError) as exc_info:
            TaskService(db_session).create_task(caller_for(provider), "")
        assert exc_info.value.field == "description"

    def test_complete(self, db_session, provider, other_provider):
        service = TaskService(db_session)
        task = service.create_task(caller_for(provider), "Call patient back")

        with pytest.raises(NotFoundError):
            service.complete_task(caller_for(other_provider), task.id)

        completed = service.complete_task(caller_for(provider), task.id, now=FIXED_NOW)
        assert completed.status == TaskStatus.COMPLETED
        assert completed.completed_at == FIXED_NOW

        with pytest.raises(ConflictError):
            service.complete_task(caller_for(provider), task.id)

    def test_api(self, client: TestClient, provider_headers, patient_headers):
        response = client.post(
            "/api/v1/tasks",
            json={"description": "Sign discharge summary", "due_date": "2030-01-10T12:00:00"},
            headers=provider_headers
        )
        assert response.status_code == 201
        task_id = response.json()["id"]

        assert client.post(f"/api/v1/tasks/{task_id}/complete", headers=patient_headers).status_code == 403
        done = client.post(f"/api/v1/tasks/{task_id}/complete", headers=provider_headers)
        assert done.status_code == 200
        assert done.json()["status"] == "completed"


@pytest.mark.integration
class TestMessages:
    """Test the inbox."""

    def test_inbox_newest_first(self, db_session, provider, patient_user):
        service = MessageService(db_session)
        sender = caller_for(patient_user)
        service.send_message(sender, provider.id, "First", now=datetime(2030, 1, 9, 9, 0))
        service.send_message(sender, provider.id, "Second", subject="Re: results", now=datetime(2030, 1, 9, 10, 0))

        messages, total = service.list_inbox(caller_for(provider))
        assert total == 2
        assert [m.content for m in messages] == ["Second", "First"]
        assert messages[0].sender_name == "John Smith"

    def test_unread_filter_and_mark_read(self, db_session, provider, patient_user):
        service = MessageService(db_session)
        message = service.send_message(caller_for(patient_user), provider.id, "Hello")
        service.send_message(caller_for(patient_user), provider.id, "Are you there?")

        with pytest.raises(NotFoundError):
            service.mark_read(caller_for(patient_user), message.id)

        read = service.mark_read(caller_for(provider), message.id, now=FIXED_NOW)
        assert read.is_read is True
        assert read.read_at == FIXED_NOW

        unread, unread_total = service.list_inbox(caller_for(provider), unread_only=True)
        assert unread_total == 1
        assert unread[0].content == "Are you there?"
        assert service.count_unread(provider.id) == 1

    def test_unknown_recipient(self, db_session, provider):
        with pytest.raises(ValidationError) as exc_info:
            MessageService(db_session).send_message(caller_for(provider), uuid.uuid4(), "Hi")
        assert exc_info.value.field == "recipient_id"

    def test_api(self, client: TestClient, provider, patient_user, patient_headers):
        sent = client.post(
            "/api/v1/messages",
            json={"recipient_id": str(provider.id), "content": "Can I reschedule?"},
            headers=patient_headers
        )
        assert sent.status_code == 201

        inbox = client.get("/api/v1/messages/inbox", headers=auth_headers(provider))
        assert inbox.status_code == 200
        body = inbox.json()
        assert body["total"] == 1
        assert body["unread"] == 1

        message_id = body["items"][0]["id"]
        read = client.post(f"/api/v1/messages/{message_id}/read", headers=auth_headers(provider))
        assert read.json()["is_read"] is True


def at(hour: int) -> datetime:
    return datetime(2030, 1, 9, hour, 0)


@pytest.mark.integration
class TestConversations:
    """Test contacts and two-way threads."""

    def test_contacts_most_recent_first(self, db_session, provider, other_provider, admin_user, patient_user):
        service = MessageService(db_session)
        quiet = make_user(db_session, UserRole.PROVIDER, "Dr. Allison Cameron")
        service.send_message(caller_for(patient_user), provider.id, "Hello", now=at(9))
        service.send_message(caller_for(patient_user), provider.id, "Any news?", now=at(10))
        service.send_message(caller_for(other_provider), patient_user.id, "Your results are in", now=at(11))

        contacts = service.list_contacts(caller_for(patient_user))

        assert [c["id"] for c in contacts] == [other_provider.id, provider.id, quiet.id]
        assert contacts[0]["unread_count"] == 1
        assert contacts[0]["last_message"]["sender_name"] == "Dr. Lisa Cuddy"
        assert contacts[1]["unread_count"] == 0
        assert contacts[1]["last_message"]["content"] == "Any news?"
        assert contacts[2]["last_message"] is None

    def test_contacts_by_role(self, db_session, provider, other_provider, admin_user, patient_user):
        service = MessageService(db_session)

        provider_contacts = {c["id"] for c in service.list_contacts(caller_for(provider))}
        assert provider_contacts == {other_provider.id, patient_user.id}

        admin_contacts = {c["id"] for c in service.list_contacts(caller_for(admin_user))}
        assert admin_contacts == {provider.id, other_provider.id, patient_user.id}

    def test_conversation_newest_first(self, db_session, provider, other_provider, patient_user):
        service = MessageService(db_session)
        service.send_message(caller_for(provider), patient_user.id, "How are you feeling?", now=at(9))
        service.send_message(caller_for(patient_user), provider.id, "Much better", now=at(10))
        service.send_message(caller_for(other_provider), patient_user.id, "Unrelated", now=at(11))

        contact, messages, total = service.get_conversation(caller_for(patient_user), provider.id)
        assert contact.id == provider.id
        assert total == 2
        assert [m.content for m in messages] == ["Much better", "How are you feeling?"]

        _, page, _ = service.get_conversation(caller_for(patient_user), provider.id, skip=1, limit=1)
        assert [m.content for m in page] == ["How are you feeling?"]

    def test_conversation_unknown_contact(self, db_session, patient_user):
        with pytest.raises(NotFoundError):
            MessageService(db_session).get_conversation(caller_for(patient_user), uuid.uuid4())

    def test_mark_conversation_read(self, db_session, provider, other_provider, patient_user):
        service = MessageService(db_session)
        service.send_message(caller_for(provider), patient_user.id, "One", now=at(9))
        service.send_message(caller_for(provider), patient_user.id, "Two", now=at(10))
        service.send_message(caller_for(other_provider), patient_user.id, "Elsewhere", now=at(11))

        assert service.mark_conversation_read(caller_for(patient_user), provider.id, now=FIXED_NOW) == 2
        assert service.count_unread(patient_user.id) == 1
        assert service.mark_conversation_read(caller_for(patient_user), provider.id, now=FIXED_NOW) == 0

        _, messages, _ = service.get_conversation(caller_for(patient_user), provider.id)
        assert all(m.is_read and m.read_at == FIXED_NOW for m in messages)

    def test_patient_messages_providers_only(self, db_session, patient_user):
        other_patient = make_user(db_session, UserRole.PATIENT, "Mary Major")
        with pytest.raises(AuthorizationError):
            MessageService(db_session).send_message(caller_for(patient_user), other_patient.id, "Hi")

    def test_api(self, client: TestClient, provider, patient_user, patient_headers):
        client.post(
            "/api/v1/messages",
            json={"recipient_id": str(provider.id), "content": "Can I reschedule?"},
            headers=patient_headers
        )
        provider_headers = auth_headers(provider)

        contacts = client.get("/api/v1/messages/contacts", headers=provider_headers)
        assert contacts.status_code == 200
        entry = contacts.json()["contacts"][0]
        assert entry["id"] == str(patient_user.id)
        assert entry["unread_count"] == 1
        assert entry["last_message"]["content"] == "Can I reschedule?"

        thread = client.get(f"/api/v1/messages/conversations/{patient_user.id}", headers=provider_headers)
        assert thread.status_code == 200
        assert thread.json()["total"] == 1
        assert thread.json()["contact"]["role"] == "patient"

        read = client.post(f"/api/v1/messages/conversations/{patient_user.id}/read", headers=provider_headers)
        assert read.json() == {"marked_read": 1}
