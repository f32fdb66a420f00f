"""
Conversations, messages and unread tracking.
"""
import pytest

from app.core.exceptions import ForbiddenError, InvalidOperationError, NotFoundError, ValidationError
from app.models.chat import Conversation, Message
from app.services.chat_service import chat_service

API = "/api/v1"


def test_direct_conversation_is_reused(db, make_user):
    alice, bob = make_user("Alice"), make_user("Bob")

    first, existed = chat_service.start_direct_conversation(db, alice.id, bob.id)
    assert existed is False

    second, existed = chat_service.start_direct_conversation(db, bob.id, alice.id)
    assert existed is True
    assert second.id == first.id
    assert db.query(Conversation).count() == 1


def test_direct_conversation_with_self_is_invalid(db, make_user):
    alice = make_user()
    with pytest.raises(InvalidOperationError):
        chat_service.start_direct_conversation(db, alice.id, alice.id)


def test_direct_conversation_with_unknown_user(db, make_user):
    alice = make_user()
    with pytest.raises(ValidationError):
        chat_service.start_direct_conversation(db, alice.id, 404)


def test_direct_conversation_named_after_other_user(db, make_user):
    alice, bob = make_user("Alice"), make_user("Bob")
    conversation, _ = chat_service.start_direct_conversation(db, alice.id, bob.id)

    assert chat_service.to_response(db, conversation, alice.id).name == "Bob"
    assert chat_service.to_response(db, conversation, bob.id).name == "Alice"


def test_send_message_updates_activity_and_unread(db, make_user):
    alice, bob = make_user(), make_user()
    conversation, _ = chat_service.start_direct_conversation(db, alice.id, bob.id)

    message = chat_service.send_message(db, alice.id, conversation.id, "Hello")
    db.refresh(conversation)

    assert conversation.last_message_at == message.created_at
    assert chat_service.to_response(db, conversation, bob.id).unread_count == 1
    assert chat_service.to_response(db, conversation, alice.id).unread_count == 0

    messages, total = chat_service.get_messages(db, bob.id, conversation.id)
    assert total == 1
    assert messages[0].content == "Hello"
    db.expire_all()
    assert chat_service.to_response(db, conversation, bob.id).unread_count == 0


def test_outsider_cannot_read_or_post(db, make_user):
    alice, bob, eve = make_user(), make_user(), make_user()
    conversation, _ = chat_service.start_direct_conversation(db, alice.id, bob.id)

    with pytest.raises(NotFoundError):
        chat_service.get_messages(db, eve.id, conversation.id)
    with pytest.raises(NotFoundError):
        chat_service.send_message(db, eve.id, conversation.id, "hi")


def test_reply_must_be_in_same_conversation(db, make_user):
    alice, bob, carol = make_user(), make_user(), make_user()
    first, _ = chat_service.start_direct_conversation(db, alice.id, bob.id)
    second, _ = chat_service.start_direct_conversation(db, alice.id, carol.id)
    other_message = chat_service.send_message(db, alice.id, second.id, "elsewhere")

    with pytest.raises(ValidationError):
        chat_service.send_message(db, alice.id, first.id, "reply", reply_to_id=other_message.id)

    original = chat_service.send_message(db, bob.id, first.id, "question")
    reply = chat_service.send_message(db, alice.id, first.id, "answer", reply_to_id=original.id)
    assert chat_service.message_to_response(reply, alice.id).reply_to.content == "question"


def test_only_sender_can_edit(db, make_user):
    alice, bob = make_user(), make_user()
    conversation, _ = chat_service.start_direct_conversation(db, alice.id, bob.id)
    message = chat_service.send_message(db, alice.id, conversation.id, "typo")

    with pytest.raises(ForbiddenError):
        chat_service.edit_message(db, bob.id, message.id, "fixed")

    edited = chat_service.edit_message(db, alice.id, message.id, "fixed")
    assert edited.content == "fixed"
    assert edited.is_edited is True


def test_group_conversation_and_delete_by_creator(db, make_user):
    alice, bob, carol = make_user(), make_user(), make_user()
    conversation = chat_service.create_group_conversation(db, alice.id, "Study", [bob.id, carol.id])
    chat_service.send_message(db, bob.id, conversation.id, "hi all")

    assert len(conversation.participants) == 3

    with pytest.raises(ForbiddenError):
        chat_service.delete_conversation(db, bob.id, conversation.id)

    chat_service.delete_conversation(db, alice.id, conversation.id)
    assert db.query(Conversation).count() == 0
    assert db.query(Message).count() == 0


def test_conversations_ordered_by_latest_activity(db, make_user):
    alice, bob, carol = make_user(), make_user(), make_user()
    with_bob, _ = chat_service.start_direct_conversation(db, alice.id, bob.id)
    with_carol, _ = chat_service.start_direct_conversation(db, alice.id, carol.id)

    chat_service.send_message(db, alice.id, with_carol.id, "first")
    chat_service.send_message(db, alice.id, with_bob.id, "second")

    conversations, total = chat_service.list_conversations(db, alice.id)
    assert total == 2
    assert [c.id for c in conversations] == [with_bob.id, with_carol.id]


def test_chat_api_flow(client, make_user, auth_headers):
    alice, bob = make_user("Alice"), make_user("Bob")

    response = client.post(f"{API}/chat/conversations/direct", json={"user_id": bob.id}, headers=auth_headers(alice))
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["exists"] is False
    conversation_id = data["conversation"]["id"]

    response = client.post(
        f"{API}/chat/conversations/{conversation_id}/messages",
        json={"content": "Hey Bob"},
        headers=auth_headers(alice)
    )
    assert response.status_code == 201
    message = response.json()["data"]
    assert message["is_own_message"] is True

    response = client.get(f"{API}/chat/conversations", headers=auth_headers(bob))
    page = response.json()["data"]
    assert page["meta"]["total"] == 1
    assert page["items"][0]["unread_count"] == 1
    assert page["items"][0]["last_message"]["content"] == "Hey Bob"

    response = client.get(f"{API}/chat/conversations/{conversation_id}/messages", headers=auth_headers(bob))
    items = response.json()["data"]["items"]
    assert items[0]["is_own_message"] is False

    response = client.put(f"{API}/chat/messages/{message['id']}", json={"content": "Hi Bob"}, headers=auth_headers(bob))
    assert response.status_code == 403

    response = client.delete(f"{API}/chat/conversations/{conversation_id}", headers=auth_headers(alice))
    assert response.status_code == 200


def test_empty_message_is_rejected(client, make_user, auth_headers):
    alice, bob = make_user(), make_user()
    response = client.post(f"{API}/chat/conversations/direct", json={"user_id": bob.id}, headers=auth_headers(alice))
    conversation_id = response.json()["data"]["conversation"]["id"]

    response = client.post(
        f"{API}/chat/conversations/{conversation_id}/messages",
        json={"content": ""},
        headers=auth_headers(alice)
    )
    assert response.status_code == 422
    assert "content" in response.json()["errors"]
